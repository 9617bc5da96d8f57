"""Request-scoped database session for route handlers.

Auth dependencies and the handler share the same session within a request,
so the user loaded by ``require_user`` can be attached to new comments.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.app.db.async_session import get_db

SessionDep = Annotated[AsyncSession, Depends(get_db)]

__all__ = ["SessionDep"]
