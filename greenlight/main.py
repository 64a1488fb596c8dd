"""FastAPI application initialization."""

import asyncio
from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from greenlight.api.errors import (
    greenlight_error_handler,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from greenlight.api.middleware import AuthenticationMiddleware, CorrelationIdMiddleware
from greenlight.api.routes import router as health_router
from greenlight.api.tokens import router as tokens_router
from greenlight.api.users import router as users_router
from greenlight.config import APP_VERSION, get_settings
from greenlight.errors import GreenlightError
from greenlight.services.logging_service import configure_logging, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = get_logger("main")

    from greenlight.database import close_database, init_database, run_migrations

    await init_database()
    await run_migrations()
    logger.info("database_initialized")

    async def _cleanup_expired_tokens_loop():
        """Periodically delete expired tokens."""
        from greenlight.services.token_service import TokenService

        while True:
            try:
                await asyncio.sleep(settings.token_cleanup_interval_seconds)
                await TokenService().delete_expired()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.warning("token_cleanup_cycle_error", error=str(e))

    cleanup_task = asyncio.create_task(_cleanup_expired_tokens_loop())

    logger.info(
        "application_started",
        environment=settings.environment,
        version=APP_VERSION,
        log_level=settings.log_level,
    )

    yield

    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass

    from greenlight.services.background import await_background_tasks

    await await_background_tasks(timeout=5.0)
    await close_database()

    logger.info("application_shutdown")


app = FastAPI(
    title="Greenlight API",
    description="User accounts, tokens and permissions",
    version=APP_VERSION,
    lifespan=lifespan,
)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(GreenlightError, greenlight_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Identity resolution runs inside CORS and correlation tracking
app.add_middleware(AuthenticationMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(CorrelationIdMiddleware)

app.include_router(health_router)
app.include_router(users_router)
app.include_router(tokens_router)
