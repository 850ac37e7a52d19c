"""FastAPI application entrypoint. No business logic; only wiring, middleware and error mapping."""

from dotenv import load_dotenv

load_dotenv()

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chatapi import __version__
from chatapi.api.v1 import router as v1_router
from chatapi.core.config import Settings, get_settings
from chatapi.services.errors import ChatServiceError

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application. Settings are resolved once here and shared with
    every request through the get_settings dependency.

    Run with: uvicorn chatapi.main:create_app --factory
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Chat API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.FRONTEND_ORIGINS if settings.is_production else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ChatServiceError)
    async def handle_service_error(request: Request, exc: ChatServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "Request failed: %s %s: %s", request.method, request.url.path, exc.message,
                exc_info=exc.cause,
            )
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.code},
            headers=headers,
        )

    app.include_router(v1_router, prefix=settings.API_V1_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Chat API"}

    return app
