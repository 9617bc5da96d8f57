from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError

from inkwell.app.core.logging import get_log_context, get_logger
from inkwell.app.db import crud
from inkwell.app.db.dependencies import SessionDep
from inkwell.app.db.models import User, UserRole
from inkwell.app.exceptions import InvalidRequestError, NotFoundError
from inkwell.app.middleware.auth import require_admin

router = APIRouter()
logger = get_logger(__name__)


def _serialize_user(user: User, comment_count: int | None = None) -> dict:
    data = {
        "id": user.id,
        "username": user.username,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "is_banned": user.is_banned,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }
    if comment_count is not None:
        data["comment_count"] = comment_count
    return data


class UserCreate(BaseModel):
    username: str
    name: str
    email: str
    role: Literal["USER", "ADMIN"] = UserRole.USER.value


class UserUpdateStatus(BaseModel):
    is_banned: bool


class UserUpdateRole(BaseModel):
    role: Literal["USER", "ADMIN"]


@router.get("")
async def list_users(session: SessionDep, limit: int = 100, offset: int = 0) -> list[dict]:
    """List users with their comment counts."""
    rows = await crud.list_users_with_comment_counts(session, limit=limit, offset=offset)
    return [_serialize_user(user, count) for user, count in rows]


@router.post("", status_code=201)
async def create_new_user(data: UserCreate, session: SessionDep) -> dict:
    """Create a user and return its API token (shown once)."""
    try:
        user, token = await crud.create_user(
            session, username=data.username, name=data.name, email=data.email, role=data.role
        )
    except IntegrityError:
        raise InvalidRequestError("Username or email already registered")
    return {"user": _serialize_user(user), "api_token": token}


@router.patch("/{user_id}/status")
async def update_status(
    user_id: str,
    data: UserUpdateStatus,
    session: SessionDep,
    admin: User = Depends(require_admin),
) -> dict:
    """Ban or unban a user."""
    if user_id == admin.id and data.is_banned:
        raise InvalidRequestError("You cannot ban yourself")
    if not await crud.set_user_banned(session, user_id, data.is_banned):
        raise NotFoundError("User not found")
    logger.info(
        "User ban status changed",
        extra=get_log_context(user_id=admin.id, target_user_id=user_id, is_banned=data.is_banned),
    )
    return {"success": True, "is_banned": data.is_banned}


@router.patch("/{user_id}/role")
async def update_role(
    user_id: str,
    data: UserUpdateRole,
    session: SessionDep,
    admin: User = Depends(require_admin),
) -> dict:
    """Change a user's role."""
    if user_id == admin.id and data.role != UserRole.ADMIN.value:
        raise InvalidRequestError("You cannot demote yourself")
    if not await crud.set_user_role(session, user_id, data.role):
        raise NotFoundError("User not found")
    logger.info(
        "User role changed",
        extra=get_log_context(user_id=admin.id, target_user_id=user_id, role=data.role),
    )
    return {"success": True, "role": data.role}


@router.get("/{user_id}")
async def get_user(user_id: str, session: SessionDep) -> dict:
    """Show a user with how many articles and comments they wrote."""
    user = await crud.get_user_by_id(session, user_id)
    if user is None:
        raise NotFoundError("User not found")
    data = _serialize_user(user, await crud.count_comments_by_author(session, user.id))
    data["article_count"] = await crud.count_articles_by_author(session, user.id)
    return data


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    session: SessionDep,
    admin: User = Depends(require_admin),
) -> dict:
    """Delete a user together with their articles, comments, likes and bookmarks."""
    if user_id == admin.id:
        raise InvalidRequestError("Cannot delete your own account")
    if await crud.get_user_by_id(session, user_id) is None:
        raise NotFoundError("User not found")
    await crud.delete_user(session, user_id)
    logger.info(
        "User deleted",
        extra=get_log_context(user_id=admin.id, target_user_id=user_id),
    )
    return {"success": True}
