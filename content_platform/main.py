"""
Content Platform API — entry point.

Startup sequence:
  1. Configure OTel tracing (→ Jaeger via OTLP)
  2. Initialise DB connection pool (MySQL) and create tables if not present
  3. Connect to MongoDB & ensure collection indexes
  4. Connect to Redis (slug locks; skipped when disabled)
  5. Expose Prometheus /metrics endpoint
"""
import logging

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from content_platform.config import settings
from content_platform.database import init_db
from content_platform.errors import DomainError
from content_platform.telemetry import setup_tracing, instrument_app
from content_platform.clients.mongo_client import init_mongo, stop_mongo
from content_platform.clients.redis_client import init_redis, stop_redis
from content_platform.routers import favorites, feed, moments, posts, users

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

# Set up tracing before the app is created so all imports are instrumented
setup_tracing()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup and shutdown of all external connections."""
    logger.info("Starting Content Platform API (env=%s)", settings.environment)

    await init_db()
    await init_mongo()
    await init_redis()

    logger.info("All stores connected. API ready.")
    yield

    logger.info("Shutting down...")
    await stop_redis()
    await stop_mongo()


app = FastAPI(
    title="Content Platform API",
    description=(
        "Social content backend: follow graph and favorites in MySQL, "
        "posts and moments in MongoDB, feeds assembled across both."
    ),
    version="1.0.0",
    lifespan=lifespan,
)


# ── Domain errors → one HTTP status per kind ──────────────────────────────
@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    if exc.status_code >= 500:
        logger.error("Unhandled domain error on %s: %s", request.url.path, exc)
    else:
        logger.info("%s on %s: %s", exc.kind, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind},
    )


# ── Routers ────────────────────────────────────────────────────────────────
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(posts.router, prefix="/posts", tags=["Posts"])
app.include_router(favorites.router, prefix="/favorites", tags=["Favorites"])
app.include_router(moments.router, prefix="/moments", tags=["Moments"])
app.include_router(feed.router, prefix="/feed", tags=["Feed"])

# ── Prometheus metrics endpoint ────────────────────────────────────────────
# Mounted at /metrics — scraped by Prometheus
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# ── OTel FastAPI instrumentation ──────────────────────────────────────────
instrument_app(app)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "service": settings.service_name}
