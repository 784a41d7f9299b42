"""
Bookkeeper API - Point d'entree principal
Grand livre multi-tenant en partie double
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from bookkeeper.core.config import get_settings
from bookkeeper.core.logging import configure_logging, get_logger
from bookkeeper.middleware.exception_handler import register_exception_handlers
from bookkeeper.middleware.request_id import RequestIDMiddleware
from bookkeeper.middleware.user_context import UserContextMiddleware

settings = get_settings()

# JSON hors dev, console en dev
configure_logging(
    level=settings.LOG_LEVEL,
    json_format=not settings.is_development,
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestionnaire de cycle de vie de l'application
    Execute au demarrage et a l'arret
    """
    logger.info(f"Demarrage de {settings.APP_NAME} v{settings.APP_VERSION} (env={settings.ENV})")

    try:
        warnings = settings.validate_production_config()
        for warning in warnings:
            logger.warning(warning)
    except ValueError as e:
        logger.critical(f"CONFIGURATION: {e}")
        raise

    yield

    logger.info("Arret de l'application...")


def create_app() -> FastAPI:
    """Construit l'application FastAPI avec middlewares et routers."""
    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Grand livre multi-tenant: plan comptable, ecritures, soldes, etats financiers",
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
    )

    # ============================================
    # Middleware Stack (dernier ajoute = premier execute)
    # ============================================

    # 2. Utilisateur appelant
    application.add_middleware(UserContextMiddleware, required=True)

    # 1. Request ID (tracabilite)
    application.add_middleware(RequestIDMiddleware)

    register_exception_handlers(application)

    # ============================================
    # Routes
    # ============================================

    from bookkeeper.api.health import router as health_router
    from bookkeeper.api.v1.router import api_router

    application.include_router(health_router)
    application.include_router(api_router, prefix="/api/v1")

    return application


app = create_app()
