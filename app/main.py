"""FastAPI application factory and configuration."""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse

from app.config import privacy, settings
from app.exceptions import InternalError, PublicError
from app.templating import i18n, render_message

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Configure root logging from LOG_LEVEL."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info(f"Starting listmail public service in {settings.ENVIRONMENT} mode")
    logger.info(f"Root URL: {settings.APP_BASE_URL}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[-1]}")  # Hide credentials
    logger.info(f"Privacy: {privacy.model_dump(exclude={'exportable'})}")
    yield
    # Shutdown
    logger.info("Shutting down listmail public service")


async def public_error_handler(request: Request, exc: PublicError) -> HTMLResponse:
    """Render any PublicError as the message page with its status code."""
    if isinstance(exc, InternalError):
        logger.debug(f"Internal error on {request.url.path}: {exc.message_key}")

    message = exc.detail or i18n.T(exc.message_key)
    return render_message(request, i18n.T(exc.title_key), message, status_code=exc.status_code)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()

    app = FastAPI(
        title="listmail public",
        description="Public subscriber endpoints: unsubscribe, opt-in, tracking, export and wipe",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_exception_handler(PublicError, public_error_handler)

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "listmail-public",
            "version": "0.1.0",
            "environment": settings.ENVIRONMENT,
        }

    # Mount routes (tracking before campaign: /campaign/{uuid}/px.png)
    from app.routes import campaign, subscription, tracking

    app.include_router(tracking.router, tags=["Tracking"])
    app.include_router(subscription.router, tags=["Subscription"])
    app.include_router(campaign.router, tags=["Campaign"])

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
