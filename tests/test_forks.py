"""Fork tests: facade permission rules and the fork_count invariant."""

from __future__ import annotations

from sqlalchemy import select

from ideahub.models import Idea, IdeaStatus, Notification, NotificationKind, Visibility
from ideahub.services import access
from ideahub.services.errors import ErrorKind, PermissionDenied
from ideahub.services.ideas import delete_idea, fork_idea, set_archived, update_idea


def test_fork_public_idea(db, make_user, make_idea) -> None:
    """Another user forks a public idea: new independent idea, source fork_count + 1."""
    alice, bob = make_user("alice"), make_user("bob")
    source, _ = make_idea(alice, workspace_content={"elements": [{"id": "e1"}], "appState": {}})

    outcome = access.fork_idea(db, bob.id, source.id)

    assert outcome.ok, outcome.error
    fork, workspace = outcome.value
    db.refresh(source)
    assert source.fork_count == 1
    assert fork.owner_id == bob.id
    assert fork.is_fork is True
    assert fork.forked_from_id == source.id
    assert fork.visibility == Visibility.PUBLIC
    assert fork.title == "Solar kiosk (Fork)"
    assert fork.star_count == 0 and fork.fork_count == 0
    assert workspace.idea_id == fork.id
    assert workspace.content == {"elements": [{"id": "e1"}], "appState": {}}


def test_fork_is_independent_of_source(db, make_user, make_idea) -> None:
    alice, bob = make_user("alice"), make_user("bob")
    source, source_ws = make_idea(alice)
    fork, fork_ws = fork_idea(db, source.id, bob.id, {"title": "Bob's kiosk"})

    update_idea(db, fork.id, bob.id, {"description": "changed"})
    fork_ws.content["elements"].append({"id": "new"})

    db.refresh(source)
    assert fork.title == "Bob's kiosk"
    assert source.description == "Off-grid charging for markets"
    assert source_ws.content["elements"] == []


def test_owner_cannot_fork_own_idea(db, make_user, make_idea) -> None:
    alice = make_user("alice")
    source, _ = make_idea(alice)

    outcome = access.fork_idea(db, alice.id, source.id)

    assert not outcome.ok
    assert isinstance(outcome.error, PermissionDenied)
    assert outcome.error.kind is ErrorKind.FORBIDDEN
    db.refresh(source)
    assert source.fork_count == 0


def test_private_idea_cannot_be_forked_by_stranger(db, make_user, make_idea) -> None:
    alice, carol = make_user("alice"), make_user("carol")
    source, _ = make_idea(alice, visibility="PRIVATE")

    outcome = access.fork_idea(db, carol.id, source.id)

    assert isinstance(outcome.error, PermissionDenied)
    assert outcome.error.kind is ErrorKind.FORBIDDEN


def test_anonymous_fork_is_unauthenticated(db, make_user, make_idea) -> None:
    alice = make_user("alice")
    source, _ = make_idea(alice)

    outcome = access.fork_idea(db, None, source.id)

    assert outcome.error.kind is ErrorKind.UNAUTHENTICATED


def test_fork_of_archived_idea_starts_published(db, make_user, make_idea) -> None:
    alice, bob = make_user("alice"), make_user("bob")
    source, _ = make_idea(alice)
    set_archived(db, source.id, alice.id)

    fork, workspace = fork_idea(db, source.id, bob.id)

    assert fork.status == IdeaStatus.PUBLISHED
    assert workspace.archived is False


def test_fork_notifies_source_owner(db, make_user, make_idea) -> None:
    alice, bob = make_user("alice"), make_user("bob")
    source, _ = make_idea(alice)
    fork, _ = fork_idea(db, source.id, bob.id)

    notes = db.execute(
        select(Notification).where(Notification.recipient_user_id == alice.id)
    ).scalars().all()
    assert [n.kind for n in notes] == [NotificationKind.FORK]
    assert notes[0].related_idea_id == fork.id


def test_deleting_fork_gives_back_fork_count(db, make_user, make_idea) -> None:
    alice, bob = make_user("alice"), make_user("bob")
    source, _ = make_idea(alice)
    fork, _ = fork_idea(db, source.id, bob.id)

    delete_idea(db, fork.id, bob.id)

    db.refresh(source)
    db.refresh(bob)
    assert source.fork_count == 0
    assert bob.idea_count == 0


def test_deleting_source_keeps_forks(db, make_user, make_idea) -> None:
    alice, bob = make_user("alice"), make_user("bob")
    source, _ = make_idea(alice)
    fork, _ = fork_idea(db, source.id, bob.id)

    delete_idea(db, source.id, alice.id)

    survivor = db.execute(
        select(Idea).where(Idea.id == fork.id).execution_options(populate_existing=True)
    ).scalar_one()
    assert survivor.forked_from_id is None
    assert survivor.is_fork is True
