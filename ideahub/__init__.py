"""IdeaHub: ideas, workspaces and the access rules that bind them."""

__version__ = "0.1.0"
