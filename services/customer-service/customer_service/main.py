"""FastAPI application wiring for the customer service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool

from .api.errors import register_exception_handlers
from .api.routes import router as customers_router
from .cache.redis_store import RedisCacheStore
from .cache.store import CacheStore, MemoryCacheStore
from .config import Settings, get_settings
from .domain.accounting import AccountingService, LedgerAccountingNotifier
from .domain.service import CustomerService
from .repository import AccountingRepository, CustomerRepository

settings = get_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


def build_cache_store(settings: Settings) -> CacheStore:
    """Instantiate the configured cache backend, preferring Redis when available."""
    if settings.cache_backend == "redis" and settings.redis_url:
        try:
            import redis

            client = redis.from_url(settings.redis_url)
            # ensure connectivity early to fail fast and fall back
            client.ping()
            logger.info("cache configured for redis backend at %s", settings.redis_url)
            return RedisCacheStore(
                client,
                default_ttl_seconds=settings.cache_ttl_seconds,
                key_prefix=settings.cache_key_prefix,
            )
        except Exception as exc:  # pragma: no cover - depends on live redis
            logger.warning("redis cache unavailable, falling back to in-memory: %s", exc)

    logger.info("cache using in-memory backend")
    return MemoryCacheStore(default_ttl_seconds=settings.cache_ttl_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise shared resources (Postgres pool, cache, services) for the app lifecycle."""
    pool = ConnectionPool(settings.database_url, open=False)
    pool.open()
    cache = build_cache_store(settings)
    accounting_repository = AccountingRepository(pool)
    app.state.pool = pool
    app.state.customer_service = CustomerService(
        CustomerRepository(pool),
        cache,
        LedgerAccountingNotifier(accounting_repository),
        cache_ttl_seconds=settings.cache_ttl_seconds,
    )
    app.state.accounting_service = AccountingService(
        accounting_repository,
        cache,
        cache_ttl_seconds=settings.cache_ttl_seconds,
    )
    try:
        yield
    finally:
        pool.close()


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)
register_exception_handlers(app)


@app.get("/healthz", tags=["health"])
def healthz() -> dict[str, str]:
    """Return a minimal readiness indicator used by orchestration systems."""
    return {"status": "ok"}


app.include_router(customers_router)


@app.get("/metrics", tags=["health"])
def metrics() -> Response:
    """Expose Prometheus metrics, including cache hit/miss counters."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
