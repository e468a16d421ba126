from contextlib import asynccontextmanager
from typing import Optional
import logging

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables as early as possible
load_dotenv()

from .core.config import Settings, get_settings
from .database import build_engine, create_db_and_tables
from .dependencies import build_auth_gateway, build_rate_limiter
from .application.ports.rate_limiter import RateLimiter
from .application.services.auth_gateway import AuthGateway
from .exceptions import http_exception_handler, validation_exception_handler
from .middleware import RateLimitMiddleware, SecurityMiddleware, LoggingMiddleware, ErrorHandlingMiddleware
from .routers import auth_router
from .utils import utcnow

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Starting {app.title}...")
    app.state.db_init_ok = True
    app.state.db_init_error = None
    engine = app.state.engine
    if engine is not None:
        try:
            create_db_and_tables(engine)
            logger.info("Database initialized successfully")
        except Exception as e:
            # Do not crash the app; report via health endpoint
            app.state.db_init_ok = False
            app.state.db_init_error = str(e)
            logger.exception("Database initialization failed")
    yield
    # Shutdown
    if engine is not None:
        engine.dispose()
    logger.info(f"Shutting down {app.title}...")


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[AuthGateway] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    engine = None
    if gateway is None:
        if settings.STORAGE_BACKEND.lower() == "sql":
            engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
        gateway = build_auth_gateway(settings, engine=engine)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url=("/docs" if settings.DOCS_ENABLED else None),
        redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
        openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.auth_gateway = gateway

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Add middleware
    app.add_middleware(ErrorHandlingMiddleware, debug=settings.DEBUG)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(SecurityMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        limiter=rate_limiter or build_rate_limiter(settings),
        rate_limit=settings.RATE_LIMIT_PER_MINUTE,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router.router)

    @app.get("/health")
    def health_check():
        return {
            "status": "healthy" if getattr(app.state, "db_init_ok", True) else "degraded",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "storage": settings.STORAGE_BACKEND,
            "timestamp": utcnow().isoformat(),
        }

    return app


app = create_app()
