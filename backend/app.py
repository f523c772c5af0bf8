"""
SlideLoop Backend - Unified Application Entry Point
Mounts every service app under a single FastAPI application
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from fastapi.staticfiles import StaticFiles

from services.auth import router as auth_router
from services.auth_service import router as auth_service_router
from services.items.app import app as items_app
from services.player.app import app as player_app
from services.presentations.app import app as presentations_app
from services.storage.service import ObjectStorage
from services.uploads.app import app as uploads_app
from shared.response_models import HealthResponse
from shared.utils import config, ensure_directory, setup_logging

logger = setup_logging("slideloop-backend")

API_PREFIX = "/api/v1"
VERSION = "1.0.0"

app = FastAPI(
    title="SlideLoop Backend API",
    description="""
    Presentations of timed image and dashboard slides, shareable through a
    public player link.

    Service routes are organized by tag.
    """,
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Authentication",
            "description": "Sign-up, sign-in, sessions and token management",
        },
        {
            "name": "Health",
            "description": "Service health and status endpoints",
        },
        {
            "name": "Presentations",
            "description": "Presentation management - mounted at /api/v1/presentations",
        },
        {
            "name": "Items",
            "description": "Slide items and ordering - mounted at /api/v1/presentations/{id}/items and /api/v1/items",
        },
        {
            "name": "Uploads",
            "description": "Slide image uploads - mounted at /api/v1/items/{id}/image",
        },
        {
            "name": "Player",
            "description": "Shared playback view - mounted at /api/v1/player",
        },
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get("allowed_origins", ["*"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, tags=["Authentication"])
app.include_router(auth_service_router, prefix=f"{API_PREFIX}/auth", tags=["Authentication"])


def mount_service_routes(service_app: FastAPI, tag: str, name_prefix: str) -> int:
    """Re-register a service app's API routes on the main app under ``/api/v1``.

    Docs and openapi routes of the service app are skipped.
    """
    count = 0
    for route in service_app.routes:
        if not isinstance(route, APIRoute):
            continue
        app.add_api_route(
            f"{API_PREFIX}{route.path}",
            route.endpoint,
            methods=list(route.methods),
            name=f"{name_prefix}_{route.name}",
            response_model=route.response_model,
            status_code=route.status_code,
            tags=[tag],
        )
        count += 1
    logger.debug(f"Mounted {count} {tag} routes")
    return count


mount_service_routes(presentations_app, "Presentations", "presentations")
mount_service_routes(items_app, "Items", "items")
mount_service_routes(uploads_app, "Uploads", "uploads")
mount_service_routes(player_app, "Player", "player")

# Public bucket, served read-only
storage = ObjectStorage()
ensure_directory(str(storage.bucket_path))
app.mount(
    f"/storage/{storage.bucket}",
    StaticFiles(directory=str(storage.bucket_path)),
    name="storage",
)


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint with service information and API navigation"""
    return {
        "service": "SlideLoop Backend API",
        "version": VERSION,
        "services": {
            "auth": {
                "base_url": f"{API_PREFIX}/auth",
                "token_endpoint": "/token",
                "health": f"{API_PREFIX}/auth/health",
            },
            "presentations": {"base_url": f"{API_PREFIX}/presentations"},
            "items": {"base_url": f"{API_PREFIX}/items"},
            "player": {"base_url": f"{API_PREFIX}/player"},
            "storage": {"base_url": f"/storage/{storage.bucket}"},
        },
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json",
        },
    }


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check endpoint"""
    return HealthResponse(status="healthy", service="slideloop-backend", version=VERSION)


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting SlideLoop Backend on http://0.0.0.0:8000")
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
