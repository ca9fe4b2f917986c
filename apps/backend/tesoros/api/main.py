"""
Name: Profile Store API (FastAPI Application Entry Point)

Responsibilities:
  - Build the FastAPI app: metadata, middleware, routers, error handlers
  - Document Bearer auth in OpenAPI (every route except /healthz)
  - Seed the development admin on startup when enabled
  - Expose `app` for ASGI servers (uvicorn tesoros.api.main:app)

Collaborators:
  - RequestContextMiddleware: request_id + log context
  - CORSMiddleware: browser clients on allowed origins
  - application.dev_seed_admin.ensure_dev_admin
  - container: repositories and identity directory singletons

Notes:
  - Middleware order: RequestContext wraps CORS wraps routes
  - The dev admin seed refuses to run outside ENV=local (or E2E mode)
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from ..application.dev_seed_admin import ensure_dev_admin
from ..container import get_identity_directory, get_profile_repository
from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..crosscutting.middleware import RequestContextMiddleware
from .admin_routes import router as admin_router
from .auth_routes import router as auth_router
from .exception_handlers import register_exception_handlers
from .notification_routes import router as notification_router

PUBLIC_PATHS = frozenset({"/healthz"})

OPENAPI_TAGS = [
    {"name": "auth", "description": "Perfil del usuario autenticado"},
    {"name": "admin", "description": "Moderación de usuarios (admin)"},
    {"name": "notifications", "description": "Notificaciones del usuario"},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    admin = ensure_dev_admin(
        settings,
        profile_repo=get_profile_repository(),
        identity_directory=get_identity_directory(),
        env=os.environ,
    )
    logger.info(
        "Profile Store iniciado",
        extra={
            "app_env": settings.app_env,
            "identity_backend": settings.identity_backend,
            "dev_admin_seeded": admin is not None,
        },
    )
    yield
    logger.info("Profile Store detenido")


def _bearer_openapi(app: FastAPI):
    """OpenAPI con esquema BearerAuth aplicado a todas las rutas no públicas."""

    def build() -> dict:
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(
            title=app.title, version=app.version, routes=app.routes, tags=OPENAPI_TAGS
        )
        schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "ID token del proveedor de identidad.",
            }
        }
        for path, operations in schema.get("paths", {}).items():
            security = [] if path in PUBLIC_PATHS else [{"BearerAuth": []}]
            for operation in operations.values():
                if isinstance(operation, dict):
                    operation["security"] = security
        app.openapi_schema = schema
        return schema

    return build


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Tesoros Chocó Profile Store",
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=OPENAPI_TAGS,
    )
    app.openapi = _bearer_openapi(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins_list(),
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
        expose_headers=["X-Request-Id"],
    )
    app.add_middleware(RequestContextMiddleware)

    for router in (auth_router, admin_router, notification_router):
        app.include_router(router)
    register_exception_handlers(app)

    @app.get("/healthz", tags=["health"])
    def healthz(request: Request):
        """Liveness: el servicio responde y la configuración es válida."""
        return {
            "ok": True,
            "identity_backend": get_settings().identity_backend,
            "request_id": getattr(request.state, "request_id", None),
        }

    return app


app = create_app()
