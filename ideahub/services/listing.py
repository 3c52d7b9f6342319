"""Idea and workspace listings.

The per-idea view rule (public, or the principal owns or collaborates on the
idea) is applied as a SQL filter so counts and pagination only ever see rows
the principal could open one by one.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, String, cast, func, or_, select
from sqlalchemy.orm import Session

from ideahub.models import Idea, IdeaCollaborator, IdeaStatus, Visibility, Workspace
from ideahub.services.errors import PermissionDenied, ValidationError
from ideahub.services.permissions import AUTH_REQUIRED
from ideahub.services.users import get_user

DEFAULT_PAGE_SIZE = 30
MAX_PAGE_SIZE = 100

FILTER_FIELDS = frozenset(
    {"visibility", "author_id", "category", "tags", "search", "limit", "offset"}
)


@dataclass(frozen=True)
class IdeaFilters:
    visibility: Visibility | None = None
    author_id: int | None = None
    category: str | None = None
    tags: tuple[str, ...] = ()
    search: str | None = None
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0


@dataclass(frozen=True)
class IdeaPage:
    items: list[Idea]
    total: int
    limit: int
    offset: int


def _as_int(values: Mapping[str, Any], name: str, default: int) -> int:
    value = values.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer") from None


def parse_filters(values: Mapping[str, Any] | None) -> IdeaFilters:
    """Build IdeaFilters from loose input. Blank strings count as absent.

    tags may be a list or a comma-separated string; limit is capped at
    MAX_PAGE_SIZE.
    """
    values = dict(values or {})
    unknown = set(values) - FILTER_FIELDS
    if unknown:
        raise ValidationError(f"Unknown filters: {', '.join(sorted(unknown))}")

    visibility = values.get("visibility") or None
    if visibility is not None:
        try:
            visibility = Visibility(visibility)
        except ValueError:
            raise ValidationError(f"Invalid visibility: {visibility!r}") from None

    tags = values.get("tags") or ()
    if isinstance(tags, str):
        tags = tags.split(",")
    tags = tuple(t.strip() for t in tags if isinstance(t, str) and t.strip())

    limit = _as_int(values, "limit", DEFAULT_PAGE_SIZE)
    offset = _as_int(values, "offset", 0)
    if limit < 1:
        raise ValidationError("limit must be at least 1")
    if offset < 0:
        raise ValidationError("offset cannot be negative")

    author_id = values.get("author_id")
    return IdeaFilters(
        visibility=visibility,
        author_id=None if author_id is None else _as_int(values, "author_id", 0),
        category=(values.get("category") or "").strip() or None,
        tags=tags,
        search=(values.get("search") or "").strip() or None,
        limit=min(limit, MAX_PAGE_SIZE),
        offset=offset,
    )


def viewable_by(principal: int | None) -> ColumnElement[bool]:
    """SQL form of can_view over the ideas table."""
    public = Idea.visibility == Visibility.PUBLIC
    if principal is None:
        return public
    member = (
        select(IdeaCollaborator.id)
        .where(IdeaCollaborator.idea_id == Idea.id, IdeaCollaborator.user_id == principal)
        .exists()
    )
    return or_(public, Idea.owner_id == principal, member)


def _idea_conditions(principal: int | None, filters: IdeaFilters) -> list[ColumnElement[bool]]:
    conditions = [Idea.status == IdeaStatus.PUBLISHED, viewable_by(principal)]
    if filters.visibility is not None:
        conditions.append(Idea.visibility == filters.visibility)
    if filters.author_id is not None:
        conditions.append(Idea.owner_id == filters.author_id)
    if filters.category is not None:
        conditions.append(Idea.category == filters.category)
    if filters.tags:
        # tags is a JSON array; match any tag on its serialized form
        stored = cast(Idea.tags, String)
        conditions.append(
            or_(*(stored.contains(json.dumps(tag), autoescape=True) for tag in filters.tags))
        )
    if filters.search is not None:
        conditions.append(
            or_(
                Idea.title.icontains(filters.search, autoescape=True),
                Idea.description.icontains(filters.search, autoescape=True),
            )
        )
    return conditions


def list_ideas(db: Session, principal: int | None, filters: IdeaFilters) -> IdeaPage:
    """Published ideas the principal can view, newest first.

    Asking for PRIVATE ideas anonymously is PermissionDenied (unauthenticated)
    rather than an empty page.
    """
    if filters.visibility is Visibility.PRIVATE and principal is None:
        raise PermissionDenied(
            "Authentication required to view private ideas", authenticated=False
        )
    conditions = _idea_conditions(principal, filters)
    total = db.execute(select(func.count()).select_from(Idea).where(*conditions)).scalar_one()
    items = list(
        db.execute(
            select(Idea)
            .where(*conditions)
            .order_by(Idea.created_at.desc(), Idea.id)
            .limit(filters.limit)
            .offset(filters.offset)
        ).scalars().all()
    )
    return IdeaPage(items=items, total=total, limit=filters.limit, offset=filters.offset)


def list_workspaces(
    db: Session, principal: int | None, user_id: int | None = None
) -> list[Workspace]:
    """Workspaces owned by user_id (default: the principal) that the principal can view.

    Archived workspaces are included; the owner still needs to find them.
    """
    if user_id is None:
        if principal is None:
            raise PermissionDenied(AUTH_REQUIRED, authenticated=False)
        user_id = principal
    get_user(db, user_id)
    return list(
        db.execute(
            select(Workspace)
            .join(Idea, Idea.id == Workspace.idea_id)
            .where(Workspace.owner_id == user_id, viewable_by(principal))
            .order_by(Workspace.updated_at.desc(), Workspace.id)
        ).scalars().all()
    )
