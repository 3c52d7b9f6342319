"""Concurrency tests with real threads, one session per thread.

The main test session is committed before work starts so it holds no lock
while the workers run.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from sqlalchemy import func, select

from ideahub.db import SessionLocal
from ideahub.models import Idea, IdeaCollaborator, Star, User
from ideahub.services import access
from ideahub.services.errors import ErrorKind
from ideahub.services.follows import set_follow
from ideahub.services.permissions import MAX_COLLABORATORS
from ideahub.services.stars import toggle_star


def _in_own_session(fn, *args):
    session = SessionLocal()
    try:
        return fn(session, *args)
    finally:
        session.close()


def test_concurrent_collaborator_adds_respect_cap(db, make_user, make_idea) -> None:
    alice = make_user("alice")
    idea, _ = make_idea(alice, visibility="PRIVATE")
    targets = [make_user(f"user{i}").id for i in range(6)]
    idea_id, owner_id = idea.id, alice.id
    db.commit()

    with ThreadPoolExecutor(max_workers=len(targets)) as pool:
        outcomes = list(
            pool.map(
                lambda uid: _in_own_session(access.add_collaborator, owner_id, idea_id, uid),
                targets,
            )
        )

    succeeded = [o for o in outcomes if o.ok]
    limited = [o for o in outcomes if not o.ok]
    assert len(succeeded) == MAX_COLLABORATORS
    assert len(limited) == len(targets) - MAX_COLLABORATORS
    assert all(o.error.kind is ErrorKind.LIMIT_EXCEEDED for o in limited)
    count = db.execute(
        select(func.count()).select_from(IdeaCollaborator).where(IdeaCollaborator.idea_id == idea_id)
    ).scalar_one()
    assert count == MAX_COLLABORATORS


def test_concurrent_stars_keep_count_exact(db, make_user, make_idea) -> None:
    alice = make_user("alice")
    idea, _ = make_idea(alice)
    fans = [make_user(f"fan{i}").id for i in range(5)]
    idea_id = idea.id
    db.commit()

    # Every fan stars twice at once: exactly one row and one increment each
    with ThreadPoolExecutor(max_workers=10) as pool:
        list(
            pool.map(
                lambda uid: _in_own_session(toggle_star, idea_id, uid, True),
                fans + fans,
            )
        )

    star_count = db.execute(
        select(Idea.star_count).where(Idea.id == idea_id)
    ).scalar_one()
    rows = db.execute(
        select(func.count()).select_from(Star).where(Star.idea_id == idea_id)
    ).scalar_one()
    assert star_count == rows == len(fans)


def test_concurrent_unstars_never_double_decrement(db, make_user, make_idea) -> None:
    alice, bob = make_user("alice"), make_user("bob")
    idea, _ = make_idea(alice)
    toggle_star(db, idea.id, bob.id, True)
    idea_id, bob_id = idea.id, bob.id
    db.commit()

    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(lambda _: _in_own_session(toggle_star, idea_id, bob_id, False), range(4)))

    assert db.execute(select(Idea.star_count).where(Idea.id == idea_id)).scalar_one() == 0


def test_concurrent_opposite_follows(db, make_user) -> None:
    alice, bob = make_user("alice"), make_user("bob")
    a, b = alice.id, bob.id
    db.commit()

    with ThreadPoolExecutor(max_workers=2) as pool:
        list(
            pool.map(
                lambda pair: _in_own_session(set_follow, pair[0], pair[1], True),
                [(a, b), (b, a)],
            )
        )

    rows = db.execute(
        select(User.follower_count, User.following_count).where(User.id.in_([a, b]))
    ).all()
    assert sorted(rows) == [(1, 1), (1, 1)]
