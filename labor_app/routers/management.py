from fastapi import APIRouter, Depends

from labor_app.models.users import User
from labor_app.routers.auth import get_current_user, require_roles
from labor_app.services.management_hub import HUB_ROLES, ManagementHub, compose_hub
from labor_app.services.permission import Permissions, resolve_permissions

router = APIRouter(tags=["management"])


@router.get("/management/hub", response_model=ManagementHub)
async def management_hub(current_user: User = Depends(require_roles(*HUB_ROLES))):
    """Management sections the caller may open, or an explicit no-access state."""
    return compose_hub(resolve_permissions(current_user))


@router.get("/permissions/me", response_model=Permissions)
async def my_permissions(current_user: User = Depends(get_current_user)):
    return resolve_permissions(current_user)
