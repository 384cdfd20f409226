import time
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI, Response
from fastapi.staticfiles import StaticFiles

from slack_relay.api.directory import router as directory_router
from slack_relay.api.dispatch import router as dispatch_router
from slack_relay.config import settings
from slack_relay.middleware.cors import OpenCORSMiddleware
from slack_relay.middleware.error_handler import register_exception_handlers
from slack_relay.middleware.logging import LoggingMiddleware
from slack_relay.schemas.common import HealthOut
from slack_relay.slack.client import slack_client


logger = structlog.get_logger()

_started_at = time.monotonic()


def configure_logging():
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            (
                structlog.dev.ConsoleRenderer()
                if settings.APP_ENV == "development"
                else structlog.processors.JSONRenderer()
            ),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _started_at

    configure_logging()
    _started_at = time.monotonic()
    logger.info("app.startup", env=settings.APP_ENV)

    await slack_client.initialize()

    yield

    # Shutdown
    await slack_client.shutdown()
    logger.info("app.shutdown")


app = FastAPI(title="Slack Relay", lifespan=lifespan)

# Middleware
app.add_middleware(
    OpenCORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)

# Exception handlers
register_exception_handlers(app)

# Routes
app.include_router(directory_router)
app.include_router(dispatch_router)


@app.get("/health", response_model=HealthOut)
async def health():
    return HealthOut(
        uptime_seconds=round(time.monotonic() - _started_at, 3),
        message=settings.SERVICE_MESSAGE,
    )


@app.options("/{path:path}", include_in_schema=False)
async def options_any(path: str):
    # Non-preflight OPTIONS; real preflights are answered by OpenCORSMiddleware
    return Response(status_code=200)


# Serve static pages (index.html etc.) if available
static_dir = Path(__file__).parent.parent / "static"
if static_dir.is_dir():
    app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
