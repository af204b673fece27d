"""Entrypoint for the currency rates FastAPI application."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from currency_service.api.dependencies import require_api_key
from currency_service.api.routes import get_rates_router
from currency_service.api.schemas import HealthResponse
from currency_service.config import AppSettings, get_settings
from currency_service.core.logging import setup_logging
from currency_service.core.telemetry import setup_telemetry
from currency_service.db.init import init_database
from currency_service.db.session import Database
from currency_service.ingest import RatesIngestor
from currency_service.providers import CurrencyFreaksClient
from currency_service.scheduler import RateRefreshScheduler
from currency_service.services import APIKeyValidator, AuditLogger, RateConverter
from currency_service.storage import APIKeyStorage, RequestLogStorage, SQLRateStorage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(
    app: FastAPI,
    settings: AppSettings,
    database: Database,
    client: CurrencyFreaksClient,
    scheduler: RateRefreshScheduler,
    owns_database: bool,
):
    logger.info("Starting %s with %s", settings.app_name, settings.dict_for_logging())
    await init_database(database)
    if settings.refresh_on_startup:
        # A failed startup refresh is logged; the service keeps serving stored rates.
        await scheduler.refresh()
    if settings.scheduler_enabled:
        scheduler.start()
    try:
        yield
    finally:
        await scheduler.stop(settings.shutdown_grace_seconds)
        await client.aclose()
        if owns_database:
            await database.dispose()
        logger.info("%s stopped", settings.app_name)


def create_app(
    database: Database | None = None,
    *,
    settings: AppSettings | None = None,
    client: CurrencyFreaksClient | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    owns_database = database is None
    database_instance = database or Database(settings.database_url)
    client_instance = client or CurrencyFreaksClient(
        settings.currency_api_key,
        base_url=settings.currency_api_base_url,
        timeout=settings.provider_timeout_seconds,
    )

    rate_storage = SQLRateStorage(database_instance.session_factory)
    converter = RateConverter(
        rate_storage,
        pivot=settings.pivot_currency,
        supported=[settings.pivot_currency, *settings.symbols],
    )
    ingestor = RatesIngestor(client_instance, rate_storage, timeout=settings.fetch_timeout_seconds)
    scheduler = RateRefreshScheduler(
        ingestor,
        settings.pivot_currency,
        settings.symbols,
        at=settings.refresh_time,
        timezone_name=settings.refresh_timezone,
    )
    audit = AuditLogger(RequestLogStorage(database_instance.session_factory))

    validator: APIKeyValidator | None = None
    if settings.api_key_auth_enabled:
        if not settings.encoding_key:
            logger.warning("ENCODING_KEY is empty; API key hashes use an empty HMAC key")
        validator = APIKeyValidator(APIKeyStorage(database_instance.session_factory), settings.encoding_key)
    else:
        logger.warning("API key authentication disabled via configuration")

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        lifespan=lambda app: _lifespan(
            app, settings, database_instance, client_instance, scheduler, owns_database
        ),
    )
    app.state.converter = converter
    app.state.ingestor = ingestor
    app.state.scheduler = scheduler

    setup_telemetry(app, settings, engine=database_instance.engine)

    app.include_router(
        get_rates_router(converter, client_instance, audit),
        dependencies=[Depends(require_api_key(validator))],
    )

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        return HealthResponse(
            status="ok",
            service=settings.telemetry_service_name,
            pivot=settings.pivot_currency,
            symbols=list(settings.symbols),
        )

    return app


app = create_app()

__all__ = ["app", "create_app"]
