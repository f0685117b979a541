"""
Marketplace Booking API - Main Application Entry Point

Venue room bookings and event ticket sales on one inventory engine:
- Date-range room availability with optimistic locking on room types
- All-or-nothing ticket purchases with conditional stock decrements
- Redis caching of catalogue reads, invalidated on purchase
- Structured logging with request correlation and Prometheus metrics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace.core.config import get_settings
from marketplace.core.errors import MarketplaceError
from marketplace.core.logging import setup_logging, get_logger
from marketplace.core.metrics import metrics_endpoint
from marketplace.api.router import api_router
from marketplace.api.middleware import RequestLoggingMiddleware
from marketplace.services.cache_service import get_redis, close_redis, get_cache_stats
from marketplace.services.notifier_factory import get_notifier

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        notifications=settings.NOTIFICATION_BACKEND,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    yield

    await get_notifier().close()
    await close_redis()
    logger.info("application_shutdown")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(MarketplaceError)
    async def marketplace_error_handler(request: Request, exc: MarketplaceError):
        if exc.status_code >= 500:
            logger.error("marketplace_error", kind=exc.kind.value, detail=exc.message)
        else:
            logger.info("marketplace_error", kind=exc.kind.value, detail=exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Venue booking and event ticketing API with concurrency-safe inventory",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)
app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
