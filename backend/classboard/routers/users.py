"""
Users Router for Classboard

Caller identity resolution and user directory lookups.
Tokens are issued by the external auth service; here they are only verified.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, Query, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from classboard.database import get_db
from classboard.models.user import User
from classboard.services.user_service import UserService
from classboard.schemas.user import UserPublic, UserResponse
from classboard.utils.rate_limit import rate_limit
from classboard.utils.logging_config import auth_logger
from classboard.exceptions import (
    AuthenticationException,
    TokenExpiredException,
    UserNotFoundException,
)

router = APIRouter(prefix="/api/users", tags=["Users"])
security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> User:
    """
    Resolve the caller from the bearer token.

    Raises:
        AuthenticationException: No Authorization header
        TokenExpiredException: Token invalid, expired or for an unknown user
    """
    if credentials is None:
        raise AuthenticationException("Authorization header required")
    user = await UserService(db).get_user_from_token(credentials.credentials)
    if not user:
        auth_logger.warning("Failed authorization attempt via token")
        raise TokenExpiredException()
    request.state.user = user
    return user


@router.get("/me", response_model=UserResponse)
@rate_limit(limit=60, window=60, identifier="me")
async def get_me(
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)]
):
    """Current user"""
    return current_user


@router.get("/lookup", response_model=UserPublic)
@rate_limit(limit=30, window=60, identifier="user_lookup")
async def lookup_user(
    request: Request,
    email: Annotated[str, Query(min_length=3, max_length=100)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)]
):
    """
    Find a user by email, e.g. to pick someone to share a diagram with.

    Raises:
        UserNotFoundException: No user with that email
    """
    user = await UserService(db).get_user_by_email(email)
    if not user:
        raise UserNotFoundException()
    return user
