import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from licensegate.admin.routes import admin_router
from licensegate.api import license_router
from licensegate.config import Settings
from licensegate.db.session import build_engine, build_sessionmaker, init_models
from licensegate.services.activation_service import ActivationService
from licensegate.services.delay import RandomDelay
from licensegate.services.signature import SignatureVerifier

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[AsyncEngine] = None,
    delay=None,
) -> FastAPI:
    """Build the application; tests pass their own settings, engine and delay."""
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    owns_engine = engine is None
    if engine is None:
        engine = build_engine(settings.database_url)
    session_factory = build_sessionmaker(engine)

    if not settings.activation_secret:
        logger.warning("ACTIVATION_SECRET is not set; signed activations will be rejected")
    if not settings.require_signature:
        logger.warning("REQUIRE_SIGNATURE is off; unsigned activations are accepted")

    verifier = SignatureVerifier(
        settings.activation_secret, window_seconds=settings.signature_window_seconds
    )
    if delay is None:
        delay = RandomDelay(settings.activation_delay_min_ms, settings.activation_delay_max_ms)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_models(engine)
        yield
        if owns_engine:
            await engine.dispose()

    app = FastAPI(title="License Gate", lifespan=lifespan)
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.activation_service = ActivationService(
        session_factory,
        verifier,
        delay=delay,
        require_signature=settings.require_signature,
    )

    app.include_router(license_router.router)
    app.include_router(admin_router)
    return app


app = create_app()
