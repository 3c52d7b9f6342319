"""Idea lifecycle tests: create, update, archive, duplicate and delete."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from sqlalchemy import func, select

from ideahub.models import (
    EMPTY_WORKSPACE_CONTENT,
    Idea,
    IdeaCollaborator,
    IdeaStatus,
    Star,
    User,
    Visibility,
    Workspace,
)
from ideahub.services.collaborators import add_collaborator
from ideahub.services.errors import InvalidOperation, NotFound, PermissionDenied, ValidationError
from ideahub.services.ideas import (
    create_idea_with_workspace,
    delete_idea,
    duplicate_idea,
    get_workspace,
    set_archived,
    update_idea,
)
from ideahub.services.stars import toggle_star
from ideahub.services.workspaces import update_workspace_content


def _count(db, model, *where) -> int:
    return db.execute(select(func.count()).select_from(model).where(*where)).scalar_one()


class TestCreateIdeaWithWorkspace:
    def test_creates_idea_and_workspace(self, db, make_user) -> None:
        alice = make_user("alice")
        idea, workspace = create_idea_with_workspace(
            db,
            alice.id,
            {"title": " Solar kiosk ", "description": "d", "category": "energy"},
        )
        assert idea.title == "Solar kiosk"
        assert idea.owner_id == alice.id
        assert idea.visibility == Visibility.PUBLIC
        assert idea.status == IdeaStatus.PUBLISHED
        assert idea.star_count == 0 and idea.fork_count == 0
        assert workspace.idea_id == idea.id
        assert workspace.is_public is True
        assert workspace.content == EMPTY_WORKSPACE_CONTENT
        assert _count(db, Workspace, Workspace.idea_id == idea.id) == 1

    def test_initial_workspace_content(self, db, make_user) -> None:
        alice = make_user("alice")
        content = {"elements": [{"id": "a"}], "appState": {"zoom": 1}}
        idea, workspace = create_idea_with_workspace(
            db,
            alice.id,
            {
                "title": "t",
                "description": "d",
                "category": "c",
                "visibility": "PRIVATE",
                "workspace_content": content,
            },
        )
        assert workspace.content == content
        assert workspace.is_public is False
        assert idea.visibility == Visibility.PRIVATE

    @pytest.mark.parametrize("missing", ["title", "description", "category"])
    def test_missing_required_field(self, db, make_user, missing) -> None:
        alice = make_user("alice")
        fields = {"title": "t", "description": "d", "category": "c"}
        fields[missing] = "  "
        with pytest.raises(ValidationError) as exc_info:
            create_idea_with_workspace(db, alice.id, fields)
        assert missing in exc_info.value.reason
        assert _count(db, Idea) == 0

    def test_cannot_start_archived(self, db, make_user) -> None:
        alice = make_user("alice")
        with pytest.raises(ValidationError):
            create_idea_with_workspace(
                db, alice.id, {"title": "t", "description": "d", "category": "c", "status": "ARCHIVED"}
            )

    def test_unknown_owner(self, db) -> None:
        with pytest.raises(NotFound):
            create_idea_with_workspace(db, 999, {"title": "t", "description": "d", "category": "c"})

    def test_failure_after_idea_insert_leaves_nothing(self, db, make_user) -> None:
        """Workspace construction failing after the Idea flush rolls both back."""
        alice = make_user("alice")
        with patch(
            "ideahub.services.ideas._workspace_for",
            side_effect=RuntimeError("crash between inserts"),
        ):
            with pytest.raises(RuntimeError):
                create_idea_with_workspace(
                    db, alice.id, {"title": "t", "description": "d", "category": "c"}
                )
        assert _count(db, Idea) == 0
        assert _count(db, Workspace) == 0
        assert db.get(User, alice.id, populate_existing=True).idea_count == 0

    def test_idea_count_tracks_creates(self, db, make_user, make_idea) -> None:
        alice = make_user("alice")
        make_idea(alice)
        make_idea(alice, title="Second")
        db.refresh(alice)
        assert alice.idea_count == 2


class TestUpdateIdea:
    def test_owner_updates_fields(self, db, make_user, make_idea) -> None:
        alice = make_user("alice")
        idea, _ = make_idea(alice)
        updated = update_idea(db, idea.id, alice.id, {"title": "Wind kiosk", "tags": ["wind"]})
        assert updated.title == "Wind kiosk"
        assert updated.tags == ["wind"]

    def test_visibility_change_mirrors_workspace(self, db, make_user, make_idea) -> None:
        alice = make_user("alice")
        idea, workspace = make_idea(alice)
        update_idea(db, idea.id, alice.id, {"visibility": "PRIVATE"})
        db.refresh(workspace)
        assert workspace.is_public is False

    def test_non_owner_rejected(self, db, make_user, make_idea) -> None:
        alice, bob = make_user("alice"), make_user("bob")
        idea, _ = make_idea(alice)
        with pytest.raises(PermissionDenied):
            update_idea(db, idea.id, bob.id, {"title": "mine now"})

    def test_owner_id_not_updatable(self, db, make_user, make_idea) -> None:
        alice, bob = make_user("alice"), make_user("bob")
        idea, _ = make_idea(alice)
        with pytest.raises(ValidationError):
            update_idea(db, idea.id, alice.id, {"owner_id": bob.id})

    def test_blank_title_rejected(self, db, make_user, make_idea) -> None:
        alice = make_user("alice")
        idea, _ = make_idea(alice)
        with pytest.raises(ValidationError):
            update_idea(db, idea.id, alice.id, {"title": ""})

    def test_archive_through_update_rejected(self, db, make_user, make_idea) -> None:
        alice = make_user("alice")
        idea, _ = make_idea(alice)
        with pytest.raises(InvalidOperation):
            update_idea(db, idea.id, alice.id, {"status": "ARCHIVED"})

    @pytest.mark.parametrize("field", ["tags", "license", "visibility", "status", "title"])
    def test_null_on_required_column_rejected(self, db, make_user, make_idea, field) -> None:
        alice = make_user("alice")
        idea, _ = make_idea(alice, tags=["solar"])
        with pytest.raises(ValidationError):
            update_idea(db, idea.id, alice.id, {field: None})

        stored = db.get(Idea, idea.id, populate_existing=True)
        assert stored.tags == ["solar"]
        assert stored.license == "MIT"
        assert stored.visibility == Visibility.PUBLIC

    def test_null_clears_optional_fields(self, db, make_user, make_idea) -> None:
        alice = make_user("alice")
        idea, _ = make_idea(alice, content="notes", language="en")
        updated = update_idea(db, idea.id, alice.id, {"content": None, "language": None})
        assert updated.content is None
        assert updated.language is None

    def test_tags_must_be_strings(self, db, make_user, make_idea) -> None:
        alice = make_user("alice")
        idea, _ = make_idea(alice)
        with pytest.raises(ValidationError):
            update_idea(db, idea.id, alice.id, {"tags": "solar"})


class TestArchive:
    def test_archive_and_restore(self, db, make_user, make_idea) -> None:
        alice = make_user("alice")
        idea, workspace = make_idea(alice)
        archived = set_archived(db, idea.id, alice.id)
        db.refresh(workspace)
        assert archived.status == IdeaStatus.ARCHIVED
        assert workspace.archived is True

        with pytest.raises(InvalidOperation):
            update_workspace_content(db, idea.id, alice.id, {"elements": []})

        restored = set_archived(db, idea.id, alice.id, archived=False)
        db.refresh(workspace)
        assert restored.status == IdeaStatus.PUBLISHED
        assert workspace.archived is False

    def test_non_owner_cannot_archive(self, db, make_user, make_idea) -> None:
        alice, bob = make_user("alice"), make_user("bob")
        idea, _ = make_idea(alice)
        with pytest.raises(PermissionDenied):
            set_archived(db, idea.id, bob.id)


class TestDuplicate:
    def test_duplicate_is_independent_copy(self, db, make_user, make_idea) -> None:
        alice = make_user("alice")
        idea, _ = make_idea(alice, visibility="PRIVATE", workspace_content={"elements": [1]})
        copy, workspace = duplicate_idea(db, idea.id, alice.id)
        db.refresh(idea)
        db.refresh(alice)
        assert copy.id != idea.id
        assert copy.title == "Solar kiosk (Copy)"
        assert copy.is_fork is False
        assert copy.forked_from_id is None
        assert copy.visibility == Visibility.PRIVATE
        assert workspace.content == {"elements": [1]}
        assert idea.fork_count == 0
        assert alice.idea_count == 2

    def test_duplicate_does_not_copy_collaborators(self, db, make_user, make_idea) -> None:
        alice, bob = make_user("alice"), make_user("bob")
        idea, _ = make_idea(alice)
        add_collaborator(db, idea.id, alice.id, bob.id)
        copy, _ = duplicate_idea(db, idea.id, alice.id, {"title": "Kiosk v2"})
        assert copy.title == "Kiosk v2"
        assert _count(db, IdeaCollaborator, IdeaCollaborator.idea_id == copy.id) == 0

    def test_only_owner_duplicates(self, db, make_user, make_idea) -> None:
        alice, bob = make_user("alice"), make_user("bob")
        idea, _ = make_idea(alice)
        with pytest.raises(PermissionDenied):
            duplicate_idea(db, idea.id, bob.id)


class TestDelete:
    def test_delete_cascades(self, db, make_user, make_idea) -> None:
        alice, bob = make_user("alice"), make_user("bob")
        idea, _ = make_idea(alice)
        add_collaborator(db, idea.id, alice.id, bob.id)
        toggle_star(db, idea.id, bob.id, True)

        delete_idea(db, idea.id, alice.id)

        assert _count(db, Idea, Idea.id == idea.id) == 0
        assert _count(db, Workspace, Workspace.idea_id == idea.id) == 0
        assert _count(db, IdeaCollaborator, IdeaCollaborator.idea_id == idea.id) == 0
        assert _count(db, Star, Star.idea_id == idea.id) == 0
        assert get_workspace(db, idea.id) is None
        db.refresh(alice)
        assert alice.idea_count == 0

    def test_non_owner_cannot_delete(self, db, make_user, make_idea) -> None:
        alice, bob = make_user("alice"), make_user("bob")
        idea, _ = make_idea(alice)
        with pytest.raises(PermissionDenied):
            delete_idea(db, idea.id, bob.id)
        assert _count(db, Idea, Idea.id == idea.id) == 1

    def test_delete_missing_idea(self, db, make_user) -> None:
        import uuid

        alice = make_user("alice")
        with pytest.raises(NotFound):
            delete_idea(db, uuid.uuid4(), alice.id)
