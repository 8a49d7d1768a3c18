import logging
from typing import List, Optional

from beanie import PydanticObjectId
from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.security import HTTPBearer
from pymongo.errors import DuplicateKeyError

from labor_app.core.security import get_password_hash
from labor_app.core.timezone_utils import utc_now
from labor_app.models.users import User
from labor_app.routers.auth import get_current_user, require_permission, user_to_response
from labor_app.schemas.users import UserCreate, UserResponse, UserUpdate
from labor_app.services.permission import resolve_permissions

logger = logging.getLogger(__name__)

# fields a member may change on their own profile
SELF_EDITABLE_FIELDS = {"name", "email", "password", "date_of_birth"}

manage_members = require_permission("can_access_member_management")


class UsersRouter:
    def __init__(self):
        self.router = APIRouter(prefix="/users", tags=["users"])
        self.security = HTTPBearer(auto_error=False)
        self.setup_routes()

    def setup_routes(self):
        self.router.add_api_route("/me", self.get_current_user_info, methods=["GET"], response_model=UserResponse,
                                  dependencies=[Depends(self.security)])
        self.router.add_api_route("/", self.get_users, methods=["GET"], response_model=List[UserResponse],
                                  dependencies=[Depends(self.security)])
        self.router.add_api_route("/", self.create_user, methods=["POST"], response_model=UserResponse,
                                  status_code=status.HTTP_201_CREATED, dependencies=[Depends(self.security)])
        self.router.add_api_route("/{user_id}", self.get_user, methods=["GET"], response_model=UserResponse,
                                  dependencies=[Depends(self.security)])
        self.router.add_api_route("/{user_id}", self.update_user, methods=["PUT"], response_model=UserResponse,
                                  dependencies=[Depends(self.security)])
        self.router.add_api_route("/{user_id}", self.delete_user, methods=["DELETE"],
                                  dependencies=[Depends(self.security)])

    async def _get_or_404(self, user_id: str) -> User:
        user = None
        if ObjectId.is_valid(user_id):
            user = await User.get(PydanticObjectId(user_id))
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user

    async def _ensure_unique(self, username: Optional[str], email: Optional[str],
                             exclude_id: Optional[PydanticObjectId] = None):
        if username:
            existing = await User.find_one(User.username == username)
            if existing and existing.id != exclude_id:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already exists")
        if email:
            existing = await User.find_one(User.email == email)
            if existing and existing.id != exclude_id:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    async def get_current_user_info(self, current_user: User = Depends(get_current_user)):
        return user_to_response(current_user)

    async def get_users(
        self,
        skip: int = Query(0, ge=0),
        limit: int = Query(100, ge=1, le=1000),
        role_id: Optional[str] = Query(None),
        department: Optional[str] = Query(None),
        is_active: Optional[bool] = Query(None),
        current_user: User = Depends(manage_members),
    ):
        query = {}
        if role_id:
            query["role_id"] = role_id.upper()
        if department:
            query["department"] = department
        if is_active is not None:
            query["is_active"] = is_active

        users = await User.find(query, skip=skip, limit=limit).sort("+employee_id").to_list()
        return [user_to_response(u) for u in users]

    async def create_user(self, user_data: UserCreate, current_user: User = Depends(manage_members)):
        email = user_data.email.lower() if user_data.email else None
        await self._ensure_unique(user_data.username, email)

        now = utc_now()
        actor = str(current_user.id)
        fields = user_data.model_dump(exclude={"password", "email"})
        user = User(
            **fields,
            email=email,
            password_hash=get_password_hash(user_data.password),
            created_at=now,
            updated_at=now,
            created_by=actor,
            updated_by=actor,
        )
        try:
            await user.insert()
        except DuplicateKeyError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username or email already exists")

        logger.info("User %s created by %s", user.username, current_user.username)
        return user_to_response(user)

    async def get_user(self, user_id: str, current_user: User = Depends(get_current_user)):
        user = await self._get_or_404(user_id)
        if user.id != current_user.id and not resolve_permissions(current_user).can_access_member_management:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")
        return user_to_response(user)

    async def update_user(
        self,
        user_id: str,
        user_data: UserUpdate,
        current_user: User = Depends(get_current_user)
    ):
        user = await self._get_or_404(user_id)
        update_data = user_data.model_dump(exclude_unset=True)

        is_manager = resolve_permissions(current_user).can_access_member_management
        if not is_manager:
            if user.id != current_user.id or set(update_data) - SELF_EDITABLE_FIELDS:
                raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")

        if update_data.get("email"):
            update_data["email"] = update_data["email"].lower()
        await self._ensure_unique(update_data.get("username"), update_data.get("email"), exclude_id=user.id)

        password = update_data.pop("password", None)
        if password:
            update_data["password_hash"] = get_password_hash(password)
        # a stored null would still collide in the sparse unique email index
        clear_email = "email" in update_data and update_data["email"] is None
        if clear_email:
            del update_data["email"]
        update_data["updated_at"] = utc_now()
        update_data["updated_by"] = str(current_user.id)

        try:
            await user.set(update_data)
            if clear_email:
                await user.update({"$unset": {"email": ""}})
                user.email = None
        except DuplicateKeyError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username or email already exists")
        return user_to_response(user)

    async def delete_user(self, user_id: str, current_user: User = Depends(manage_members)):
        user = await self._get_or_404(user_id)
        if user.id == current_user.id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot deactivate yourself")

        # users are never hard-deleted
        await user.set({
            User.is_active: False,
            User.updated_at: utc_now(),
            User.updated_by: str(current_user.id),
        })
        logger.info("User %s deactivated by %s", user.username, current_user.username)
        return {"message": "User deactivated successfully"}


users_router = UsersRouter().router
