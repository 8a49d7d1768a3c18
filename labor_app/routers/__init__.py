# labor_app/routers/__init__.py
from .auth import auth_router
from .users import users_router
from .projects import projects_router
from .daily_reports import router as daily_reports_router
from .daily_contractors import router as daily_contractors_router
from .management import router as management_router

__all__ = [
    "auth_router",
    "users_router",
    "projects_router",
    "daily_reports_router",
    "daily_contractors_router",
    "management_router",
]
