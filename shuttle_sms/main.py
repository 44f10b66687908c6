"""
Shuttle SMS - FastAPI application
Preview and bulk-send shuttle trip notifications through the brand SMS gateway.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from pathlib import Path
import logging

from shuttle_sms.core.config import settings
from shuttle_sms.api.routes import health_router, sms_router, get_dispatcher, peek_dispatcher

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown"""
    # Startup
    logger.info("Starting Shuttle SMS application...")
    dispatcher = get_dispatcher()
    dispatcher.log_store.ensure_exists()
    logger.info(
        f"Application started: parser={dispatcher.parser.name}, "
        f"template={dispatcher.template}, interval={dispatcher.scheduler.interval}s"
    )
    yield
    # Shutdown
    logger.info("Shutting down Shuttle SMS application...")
    dispatcher = peek_dispatcher()
    if dispatcher is not None:
        await dispatcher.gateway.close()
        dispatcher.log_store.close()
    logger.info("Application shut down successfully")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Shuttle SMS API",
        description="Shuttle trip notifications over the brand SMS gateway",
        version="1.0.0",
        lifespan=lifespan
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health_router, tags=["Health"])
    app.include_router(sms_router, tags=["SMS"])

    # Operator page; mounted last so it does not shadow the API routes
    static_dir = Path(settings.STATIC_DIR)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
    else:
        logger.info(f"Static directory {static_dir} not found, operator page disabled")

    return app


app = create_app()
