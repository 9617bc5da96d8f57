"""Bearer token authentication dependencies.

Users authenticate with an API token issued at account creation; only its
SHA-256 hash is stored. Ban status is read fresh on every request so a ban
takes effect immediately.
"""

from typing import Optional

from fastapi import Depends, Request

from inkwell.app.core.utils import hash_token
from inkwell.app.db.crud import lookup_user_by_token_hash
from inkwell.app.db.dependencies import SessionDep
from inkwell.app.db.models import User
from inkwell.app.exceptions import (
    AuthenticationError,
    InvalidRequestError,
    PermissionDeniedError,
)

MAX_TOKEN_LENGTH = 512


def get_bearer_token(request: Request) -> str | None:
    """Extract Bearer token from Authorization header.

    Args:
        request: The incoming request

    Returns:
        The token string if present, None otherwise
    """
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth.replace("Bearer ", "", 1).strip() or None


async def optional_user(request: Request, session: SessionDep) -> Optional[User]:
    """Resolve the caller if a valid token was sent, otherwise None.

    Raises:
        AuthenticationError: If a token was sent but is unknown
        InvalidRequestError: If the token is too long (DoS protection)
    """
    token = get_bearer_token(request)
    if not token:
        return None

    # Checked before hashing to avoid hashing huge inputs
    if len(token) > MAX_TOKEN_LENGTH:
        raise InvalidRequestError(f"API token too long (max {MAX_TOKEN_LENGTH} characters)")

    user = await lookup_user_by_token_hash(session, hash_token(token))
    if user is None:
        raise AuthenticationError("Invalid API token")

    request.state.user_id = user.id
    return user


async def require_user(user: Optional[User] = Depends(optional_user)) -> User:
    """Require an authenticated caller.

    Raises:
        AuthenticationError: 401 if no token was sent
    """
    if user is None:
        raise AuthenticationError("You must be signed in")
    return user


async def require_admin(user: User = Depends(require_user)) -> User:
    """Require an authenticated caller with the ADMIN role.

    Raises:
        PermissionDeniedError: 403 for non-admins
    """
    if not user.is_admin:
        raise PermissionDeniedError("Admin access required")
    return user
