import logging
import sys
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from activity_feed.api.router import api_router
from activity_feed.config import Settings, settings
from activity_feed.core.database import init_db
from activity_feed.services.github import close_github_client
from activity_feed.services.runtime import build_runtime

NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "apscheduler", "uvicorn.access")


def setup_logging(config: Settings) -> None:
    """Log to stdout as `time | level | logger | message`."""
    level = logging.DEBUG if config.debug else logging.getLevelName(config.log_level.upper())
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
        force=True,
    )

    # Third-party libraries only report warnings; requests are logged below
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the feed runtime, run the scheduler while serving, tear down on exit."""
    setup_logging(settings)
    runtime = build_runtime(settings)
    if settings.debug and runtime.engine is not None:
        await init_db(runtime.engine)
    app.state.runtime = runtime
    runtime.scheduler.start()
    logger.info("Activity feed API started")

    yield

    await runtime.aclose()
    await close_github_client()
    logger.info("Activity feed API stopped")


app = FastAPI(
    title="Activity Feed API",
    description="Merged GitHub activity of community members",
    version="0.1.0",
    lifespan=lifespan,
)

# Trust X-Forwarded-Proto from the reverse proxy
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log failed requests and every feed rebuild, with their duration."""
    if request.method == "OPTIONS" or request.url.path == "/health":
        return await call_next(request)

    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000

    rebuild = request.query_params.get("refresh") == "true" or request.url.path.endswith("/refresh")
    if response.status_code >= 400 or rebuild:
        logger.info(
            f"{request.method} {request.url.path} → {response.status_code} ({elapsed_ms:.0f}ms)"
        )

    return response


app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
