import logging
from typing import Optional

from beanie import PydanticObjectId
from bson import ObjectId
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPBearer

from labor_app.core.security import (
    create_access_token, create_refresh_token, verify_password, verify_token,
)
from labor_app.models.users import User
from labor_app.schemas.users import LoginRequest, Token, TokenRefresh, UserResponse
from labor_app.services.permission import (
    SUPER_ROLE, normalize_role_code, resolve_permissions, role_code_of,
)

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

LOGIN_REDIRECT = "/login"
FORBIDDEN_REDIRECT = "/unauthorized"


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"message": message, "redirect_to": LOGIN_REDIRECT},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _forbidden(message: str, **extra) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"message": message, "redirect_to": FORBIDDEN_REDIRECT, **extra},
    )


async def find_user_by_login(login: str) -> Optional[User]:
    login = (login or "").strip()
    if not login:
        return None
    if "@" in login:
        user = await User.find_one(User.email == login.lower())
        if user:
            return user
    return await User.find_one(User.username == login)


async def _user_from_subject(subject: Optional[str]) -> Optional[User]:
    if not subject or not ObjectId.is_valid(subject):
        return None
    return await User.get(PydanticObjectId(subject))


async def get_current_user_dependency(authorization: Optional[str] = Header(None)):
    if not authorization:
        raise _unauthorized("Authorization header missing")

    try:
        # Extract token from "Bearer <token>"
        scheme, token = authorization.split()
    except ValueError:
        raise _unauthorized("Invalid authorization header format. Use: Bearer <token>")
    if scheme.lower() != "bearer":
        raise _unauthorized("Invalid authentication scheme")

    payload = verify_token(token)
    if payload is None:
        raise _unauthorized("Could not validate credentials - Invalid token")

    if payload.get("type") != "access":
        raise _unauthorized("Invalid token type - Use access token")

    user = await _user_from_subject(payload.get("sub"))
    if user is None:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise _forbidden("Account is inactive")

    return user


# Export the dependency for use in other routers
get_current_user = get_current_user_dependency


def require_roles(*roles: str):
    """Dependency factory: allow only the given role codes (GOD always passes).

    With no roles any authenticated user is accepted.
    """
    allowed = tuple(code for code in (normalize_role_code(r) for r in roles) if code)

    async def guard(request: Request, current_user: User = Depends(get_current_user)):
        role_code = role_code_of(current_user)
        username = getattr(current_user, "username", None)
        if role_code == SUPER_ROLE or not allowed:
            return current_user
        if role_code not in allowed:
            logger.warning(
                "Access denied: user %s (%s) attempted %s %s requiring roles: %s",
                username, role_code, request.method, request.url.path, ", ".join(allowed),
            )
            raise _forbidden(
                f"Access denied - Required roles: {', '.join(allowed)}",
                required_roles=list(allowed),
            )
        logger.debug("Access granted: user %s (%s) accessing %s %s",
                     username, role_code, request.method, request.url.path)
        return current_user

    return guard


def require_permission(flag: str):
    """Dependency factory: allow users whose resolved permissions grant `flag`."""
    async def guard(request: Request, current_user: User = Depends(get_current_user)):
        permissions = resolve_permissions(current_user)
        if not getattr(permissions, flag, False):
            logger.warning("Access denied: user %s (%s) lacks %s for %s %s",
                           getattr(current_user, "username", None), permissions.role_code,
                           flag, request.method, request.url.path)
            raise _forbidden("Access denied - insufficient permissions", permission=flag)
        return current_user

    return guard


def user_to_response(user: User) -> UserResponse:
    data = user.model_dump(exclude={"password_hash", "revision_id"})
    data["id"] = str(user.id)
    return UserResponse(**data)


class AuthRouter:
    def __init__(self):
        self.router = APIRouter(prefix="/auth", tags=["authentication"])
        self.setup_routes()

    def setup_routes(self):
        self.router.add_api_route("/login", self.login, methods=["POST"], response_model=Token)
        self.router.add_api_route("/refresh", self.refresh_token, methods=["POST"], response_model=Token)
        self.router.add_api_route("/me", self.get_current_user, methods=["GET"], response_model=UserResponse,
                                  dependencies=[Depends(security)])

    async def login(self, login_data: LoginRequest):
        user = await find_user_by_login(login_data.username)
        if not user or not verify_password(login_data.password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect username or password",
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is inactive"
            )

        subject = {"sub": str(user.id)}
        logger.info("User %s logged in", user.username)
        return {
            "access_token": create_access_token(data=subject),
            "refresh_token": create_refresh_token(data=subject),
            "token_type": "bearer",
            "user_id": str(user.id),
            "role": role_code_of(user),
        }

    async def refresh_token(self, refresh_data: TokenRefresh):
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )

        payload = verify_token(refresh_data.refresh_token)
        if payload is None or payload.get("type") != "refresh":
            raise credentials_exception

        user = await _user_from_subject(payload.get("sub"))
        if user is None:
            raise credentials_exception

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is inactive"
            )

        return {
            "access_token": create_access_token(data={"sub": str(user.id)}),
            "refresh_token": refresh_data.refresh_token,  # Return same refresh token
            "token_type": "bearer",
            "user_id": str(user.id),
            "role": role_code_of(user),
        }

    async def get_current_user(self, current_user: User = Depends(get_current_user_dependency)):
        return user_to_response(current_user)


# Create router instance
auth_router = AuthRouter().router
