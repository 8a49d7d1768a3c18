import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from labor_app.core.config import settings
from labor_app.core.database import init_db
from labor_app.routers import (
    auth_router,
    daily_contractors_router,
    daily_reports_router,
    management_router,
    projects_router,
    users_router,
)

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = await init_db()
    yield
    client.close()


def create_app(with_database: bool = True) -> FastAPI:
    app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION,
                  lifespan=lifespan if with_database else None)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # OpenAPI with bearer applied to all except /auth/*
    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema
        openapi_schema = get_openapi(
            title=settings.PROJECT_NAME,
            version=settings.VERSION,
            description="Labor Management API with JWT Authentication",
            routes=app.routes,
        )
        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "Bearer": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT"
            }
        }

        for path, methods in openapi_schema.get("paths", {}).items():
            if not path.startswith(f"{settings.API_V1_STR}/auth"):
                for method in methods.values():
                    method["security"] = [{"Bearer": []}]
        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi

    api_prefix = settings.API_V1_STR
    app.include_router(auth_router, prefix=api_prefix)
    app.include_router(users_router, prefix=api_prefix)
    app.include_router(projects_router, prefix=api_prefix)
    app.include_router(daily_reports_router, prefix=api_prefix)
    app.include_router(daily_contractors_router, prefix=api_prefix)
    app.include_router(management_router, prefix=api_prefix)

    @app.get("/")
    async def root():
        return {"message": "Labor Management API is up and running", "version": settings.VERSION}

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()
