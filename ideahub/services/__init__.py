"""Domain services: permission resolver, lifecycle operations and the access-controlled facade."""
