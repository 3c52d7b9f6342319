"""Idea and workspace listings: visibility rules applied in the query, filters, paging."""

from __future__ import annotations

import pytest

from ideahub.models import CollaboratorRole, Visibility
from ideahub.services import access
from ideahub.services.collaborators import add_collaborator
from ideahub.services.errors import ErrorKind, ValidationError
from ideahub.services.ideas import set_archived
from ideahub.services.listing import MAX_PAGE_SIZE, IdeaFilters, list_ideas, parse_filters


def _titles(page) -> set[str]:
    return {idea.title for idea in page.items}


@pytest.fixture
def catalog(db, make_user, make_idea):
    """alice: two public, one private, one draft; bob: one public, one private shared with carol."""
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
    make_idea(alice, title="Solar kiosk", tags=["solar", "markets"])
    make_idea(alice, title="Rain barrels", category="water", tags=["water"])
    make_idea(alice, title="Alice secret", visibility="PRIVATE")
    make_idea(alice, title="Alice draft", status="DRAFT")
    make_idea(bob, title="Bike repair", description="Solar-lit workshop", category="transport")
    shared, _ = make_idea(bob, title="Bob secret", visibility="PRIVATE")
    add_collaborator(db, shared.id, bob.id, carol.id, CollaboratorRole.VIEWER)
    return alice, bob, carol


class TestVisibility:
    def test_anonymous_sees_public_published_only(self, db, catalog) -> None:
        page = list_ideas(db, None, IdeaFilters())
        assert _titles(page) == {"Solar kiosk", "Rain barrels", "Bike repair"}
        assert page.total == 3

    def test_owner_sees_own_private(self, db, catalog) -> None:
        alice, _, _ = catalog
        page = list_ideas(db, alice.id, IdeaFilters())
        assert "Alice secret" in _titles(page)
        assert "Bob secret" not in _titles(page)
        assert "Alice draft" not in _titles(page)

    def test_collaborator_sees_shared_private(self, db, catalog) -> None:
        _, _, carol = catalog
        page = list_ideas(db, carol.id, IdeaFilters(visibility=Visibility.PRIVATE))
        assert _titles(page) == {"Bob secret"}

    def test_other_authors_private_ideas_hidden(self, db, catalog) -> None:
        alice, bob, _ = catalog
        page = list_ideas(db, bob.id, IdeaFilters(author_id=alice.id))
        assert _titles(page) == {"Solar kiosk", "Rain barrels"}

    def test_anonymous_private_listing_is_unauthenticated(self, db, catalog) -> None:
        outcome = access.list_ideas(db, None, {"visibility": "PRIVATE"})
        assert outcome.error.kind is ErrorKind.UNAUTHENTICATED

    def test_archived_ideas_drop_out(self, db, catalog) -> None:
        alice, _, _ = catalog
        page = list_ideas(db, None, IdeaFilters(search="rain"))
        set_archived(db, page.items[0].id, alice.id)
        assert list_ideas(db, None, IdeaFilters(search="rain")).total == 0


class TestFilters:
    def test_category(self, db, catalog) -> None:
        assert _titles(list_ideas(db, None, IdeaFilters(category="water"))) == {"Rain barrels"}

    def test_tags_match_any(self, db, catalog) -> None:
        page = list_ideas(db, None, parse_filters({"tags": "water,markets"}))
        assert _titles(page) == {"Solar kiosk", "Rain barrels"}

    def test_tag_is_matched_whole(self, db, catalog) -> None:
        assert list_ideas(db, None, parse_filters({"tags": "sol"})).total == 0

    def test_search_title_and_description_case_insensitive(self, db, catalog) -> None:
        page = list_ideas(db, None, IdeaFilters(search="SOLAR"))
        assert _titles(page) == {"Solar kiosk", "Bike repair"}

    def test_search_wildcards_are_literal(self, db, catalog) -> None:
        assert list_ideas(db, None, IdeaFilters(search="%")).total == 0

    def test_paging_keeps_total(self, db, catalog) -> None:
        first = list_ideas(db, None, IdeaFilters(limit=2))
        rest = list_ideas(db, None, IdeaFilters(limit=2, offset=2))
        assert first.total == rest.total == 3
        assert len(first.items) == 2
        assert len(rest.items) == 1
        assert not _titles(first) & _titles(rest)

    def test_newest_first(self, db, catalog) -> None:
        page = list_ideas(db, None, IdeaFilters())
        assert [i.title for i in page.items][0] == "Bike repair"


class TestParseFilters:
    def test_defaults(self) -> None:
        assert parse_filters(None) == IdeaFilters()

    def test_limit_capped(self) -> None:
        assert parse_filters({"limit": "500"}).limit == MAX_PAGE_SIZE

    @pytest.mark.parametrize(
        "values",
        [{"limit": 0}, {"offset": -1}, {"limit": "many"}, {"visibility": "SECRET"}, {"owner": 1}],
    )
    def test_invalid(self, values) -> None:
        with pytest.raises(ValidationError):
            parse_filters(values)

    def test_blank_values_ignored(self) -> None:
        filters = parse_filters({"category": " ", "search": "", "tags": ", ,"})
        assert filters == IdeaFilters()


class TestWorkspaceListing:
    def test_own_workspaces_include_private(self, db, catalog) -> None:
        alice, _, _ = catalog
        rows = access.list_workspaces(db, alice.id).unwrap()
        assert {w.name for w in rows} == {
            "Solar kiosk",
            "Rain barrels",
            "Alice secret",
            "Alice draft",
        }

    def test_other_users_private_workspaces_hidden(self, db, catalog) -> None:
        alice, bob, carol = catalog
        assert {w.name for w in access.list_workspaces(db, alice.id, bob.id).unwrap()} == {
            "Bike repair"
        }
        assert {w.name for w in access.list_workspaces(db, carol.id, bob.id).unwrap()} == {
            "Bike repair",
            "Bob secret",
        }

    def test_anonymous_needs_user_id(self, db, catalog) -> None:
        _, bob, _ = catalog
        assert access.list_workspaces(db, None).error.kind is ErrorKind.UNAUTHENTICATED
        assert len(access.list_workspaces(db, None, bob.id).unwrap()) == 1

    def test_unknown_user(self, db, catalog) -> None:
        assert access.list_workspaces(db, None, 999).error.kind is ErrorKind.NOT_FOUND
