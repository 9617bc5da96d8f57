from fastapi import APIRouter, Depends
from inkwell.app.middleware.auth import require_admin

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

from . import users

router.include_router(users.router, prefix="/users", tags=["admin-users"])
