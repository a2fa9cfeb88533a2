"""
Procurement Approval Workflows - FastAPI Application

Workflow designer CRUD, publishing, matching and dry runs under /api/v1.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from .config.settings import settings
from .api.routes import api_router
from .api.middleware import CorrelationIdMiddleware, register_error_handlers
from .repositories.mongo_client import create_indexes, close_connection, health_check
from .utils.logger import setup_logging, get_logger

APP_NAME = "Procurement Approval Workflows"
APP_VERSION = "1.0.0"

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build indexes on startup and release the Mongo client on shutdown"""
    logger.info(
        f"Starting {APP_NAME} {APP_VERSION}",
        extra={"environment": settings.environment, "database": settings.mongo_db}
    )
    if settings.is_production and settings.jwt_secret == "change-me":
        logger.warning("JWT_SECRET is the default value; tokens can be forged")

    try:
        create_indexes()
    except PyMongoError as e:
        # Requests report 503 until the store is reachable
        logger.error(f"Index creation failed: {e}")

    yield

    close_connection()
    logger.info(f"{APP_NAME} stopped")


def create_app() -> FastAPI:
    """Assemble middleware, error handlers and routes"""
    application = FastAPI(
        title=APP_NAME,
        description="Approval workflow design, matching and dry runs for procurement requisitions",
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
        openapi_url="/api/openapi.json" if settings.debug else None,
    )

    # allow_credentials must be False when allowing all origins
    allow_all = settings.cors_origins.strip() == "*"
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_origins_list,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-Id"],
    )
    application.add_middleware(CorrelationIdMiddleware)

    register_error_handlers(application)
    application.include_router(api_router, prefix="/api/v1")

    @application.get("/health", tags=["Health"])
    async def health():
        """Liveness plus store connectivity"""
        mongo = health_check()
        return {
            "status": "healthy" if mongo.get("status") == "healthy" else "degraded",
            "service": APP_NAME,
            "version": APP_VERSION,
            "environment": settings.environment,
            "mongo": mongo,
        }

    return application


app = create_app()
