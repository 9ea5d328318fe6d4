"""Dreamer AI - authentication and account API."""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Import all models so they are registered with Base
from dreamer_api import models  # noqa: F401
from dreamer_api.api import auth, users
from dreamer_api.api.errors import register_exception_handlers
from dreamer_api.config import Settings, get_settings
from dreamer_api.database import Base, build_engine, build_session_factory
from dreamer_api.services.email import EmailSender
from dreamer_api.services.passwords import PasswordHasher
from dreamer_api.services.tokens import TokenCodec

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: create tables
    Base.metadata.create_all(bind=app.state.engine)
    logger.info(f"{app.title} started")

    yield
    # Shutdown: release pooled connections
    app.state.engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application and its process-wide collaborators."""
    settings = settings or get_settings()
    configure_logging(settings)

    if not settings.jwt_refresh_secret:
        logger.warning("JWT_REFRESH_SECRET is not set; refresh tokens are signed with JWT_SECRET")

    app = FastAPI(
        title=settings.app_name,
        description="Authentication and account management for Dreamer AI",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.token_codec = TokenCodec(settings)
    app.state.password_hasher = PasswordHasher(settings.bcrypt_rounds)
    app.state.email_sender = EmailSender(settings)

    register_exception_handlers(app)

    # CORS for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "app": settings.app_name}

    app.include_router(auth.router, prefix="/api")
    app.include_router(users.router, prefix="/api")
    return app


app = create_app()
