"""User profile, follow and notification API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ideahub.api.deps import get_principal
from ideahub.api.errors import http_error, unwrap
from ideahub.db.session import get_db
from ideahub.models import User
from ideahub.schemas.user import (
    FollowResponse,
    MeRead,
    NotificationList,
    NotificationRead,
    ProfileUpdate,
    UserRead,
)
from ideahub.services import access
from ideahub.services.errors import DomainError
from ideahub.services.follows import list_followers, list_following
from ideahub.services.users import get_user

router = APIRouter()
notifications_router = APIRouter()


@router.patch("/me", response_model=MeRead)
def api_update_me(
    data: ProfileUpdate,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> MeRead:
    fields = data.model_dump(exclude_unset=True)
    return MeRead.model_validate(unwrap(access.update_profile(db, principal, fields)))


@router.get("/{user_id}", response_model=UserRead)
def api_get_user(user_id: int, db: Session = Depends(get_db)) -> UserRead:
    try:
        return UserRead.model_validate(get_user(db, user_id))
    except DomainError as exc:
        raise http_error(exc) from None


@router.get("/{user_id}/followers", response_model=list[UserRead])
def api_list_followers(user_id: int, db: Session = Depends(get_db)) -> list[UserRead]:
    try:
        get_user(db, user_id)
    except DomainError as exc:
        raise http_error(exc) from None
    return [UserRead.model_validate(u) for u in list_followers(db, user_id)]


@router.get("/{user_id}/following", response_model=list[UserRead])
def api_list_following(user_id: int, db: Session = Depends(get_db)) -> list[UserRead]:
    try:
        get_user(db, user_id)
    except DomainError as exc:
        raise http_error(exc) from None
    return [UserRead.model_validate(u) for u in list_following(db, user_id)]


def _follow_response(db: Session, user_id: int, following: bool) -> FollowResponse:
    user = db.get(User, user_id, populate_existing=True)
    return FollowResponse(is_following=following, follower_count=user.follower_count)


@router.post("/{user_id}/follow", response_model=FollowResponse)
def api_follow(
    user_id: int,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> FollowResponse:
    following = unwrap(access.follow_user(db, principal, user_id, follow=True))
    return _follow_response(db, user_id, following)


@router.delete("/{user_id}/follow", response_model=FollowResponse)
def api_unfollow(
    user_id: int,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> FollowResponse:
    following = unwrap(access.follow_user(db, principal, user_id, follow=False))
    return _follow_response(db, user_id, following)


@notifications_router.get("", response_model=NotificationList)
def api_list_notifications(
    unread_only: bool = False,
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> NotificationList:
    rows = unwrap(access.list_notifications(db, principal, unread_only))
    return NotificationList(items=[NotificationRead.model_validate(r) for r in rows])


@notifications_router.post("/read")
def api_mark_notifications_read(
    db: Session = Depends(get_db),
    principal: int | None = Depends(get_principal),
) -> dict:
    updated = unwrap(access.mark_notifications_read(db, principal))
    return {"updated": updated}
