import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from story_auth.config import Settings, get_settings
from story_auth.db import close_db, ensure_indexes, init_db
from story_auth.middleware.error_handler import ErrorHandlerMiddleware, register_exception_handlers
from story_auth.repositories.refresh_tokens import RefreshTokenStore
from story_auth.repositories.token_blacklist import TokenBlacklist
from story_auth.routes import auth, health
from story_auth.services.token_cleanup import TokenCleanupService
from story_auth.utils.logger import configure_logging

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, database=None, run_background_tasks: bool = True) -> FastAPI:
    """
    Build the API. ``database`` injects an existing database handle (tests);
    otherwise a motor client is opened from ``settings.mongodb_uri``.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await ensure_indexes(app.state.db)
        cleanup = None
        if run_background_tasks:
            cleanup = TokenCleanupService(
                RefreshTokenStore(app.state.db),
                TokenBlacklist(app.state.db),
                cleanup_interval_hours=settings.token_cleanup_interval_hours,
            )
            await cleanup.start()
        logger.info("Application startup completed")
        yield
        if cleanup is not None:
            await cleanup.stop()
        if database is None:
            close_db()
        logger.info("Application shutdown completed")

    app = FastAPI(
        title="Story Platform Auth API",
        description="Registration, login, OAuth login, token refresh, logout and profile management",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    register_exception_handlers(app)
    app.add_middleware(ErrorHandlerMiddleware)
    # added last so it wraps the error handler and error responses keep CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    init_db(app, settings, database)

    app.include_router(health.router, tags=["Health"])
    app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
