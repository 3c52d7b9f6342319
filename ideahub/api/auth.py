"""Authentication API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ideahub.api.deps import AUTH_COOKIE, get_db, require_auth
from ideahub.api.errors import http_error
from ideahub.config import get_settings
from ideahub.models.user import User
from ideahub.schemas.auth import LoginRequest, SignupRequest, TokenResponse
from ideahub.schemas.user import MeRead
from ideahub.services.auth import authenticate_user, create_access_token
from ideahub.services.errors import DomainError
from ideahub.services.users import create_user

router = APIRouter()


def _issue_token(response: Response, user: User) -> TokenResponse:
    token = create_access_token(data={"sub": user.username})
    response.set_cookie(
        key=AUTH_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        max_age=60 * 60 * get_settings().access_token_expire_hours,
        path="/",
    )
    return TokenResponse(access_token=token)


@router.post("/signup", response_model=TokenResponse, status_code=201)
def signup(
    body: SignupRequest,
    response: Response,
    db: Session = Depends(get_db),
) -> TokenResponse:
    """Create an account and sign in."""
    try:
        user = create_user(db, body.username, body.email, body.password, body.display_name)
    except DomainError as exc:
        raise http_error(exc) from None
    return _issue_token(response, user)


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
) -> TokenResponse:
    """Authenticate user and return JWT token.

    Also sets an httponly cookie for browser sessions.
    """
    user = authenticate_user(db, body.username, body.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )
    return _issue_token(response, user)


@router.post("/logout")
def logout(response: Response) -> dict:
    """Clear the authentication cookie."""
    response.delete_cookie(key=AUTH_COOKIE, path="/")
    return {"detail": "Logged out"}


@router.get("/me", response_model=MeRead)
def me(current_user: User = Depends(require_auth)) -> MeRead:
    """Return the currently authenticated user's information."""
    return MeRead.model_validate(current_user)
