"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from src.api.health import router as health_router
from src.api.ownership import router as ownership_router
from src.config import settings
from src.core.event_bus import EventBus
from src.core.logging import get_logger, setup_logging
from src.core.ownership.cache import OwnershipCache
from src.db.database import SessionLocal, engine as db_engine
from src.db.models import Base
from src.engine.sweep_scheduler import SweepScheduler
from src.services.ledger import get_ledger_oracle
from src.services.ownership_service import OwnershipService
from src.services.record_store import CosmeticRecordStore

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=db_engine)
    logger.info("Database tables created.")

    # LedgerConfigError propagates: no oracle, no startup
    logger.info("Initializing ledger oracle...")
    oracle = get_ledger_oracle()
    logger.info("Ledger oracle initialized: %s", oracle.name)

    event_bus = EventBus()
    cache = OwnershipCache(oracle, ttl_seconds=settings.OWNERSHIP_CACHE_TTL_SECONDS)
    store = CosmeticRecordStore(SessionLocal)
    ownership_service = OwnershipService(store, cache, event_bus)
    app.state.event_bus = event_bus
    app.state.ledger_oracle = oracle
    app.state.ownership_service = ownership_service
    logger.info("OwnershipService initialized.")

    scheduler: SweepScheduler | None = None
    if settings.SWEEP_INTERVAL_SECONDS > 0:
        scheduler = SweepScheduler(
            ownership_service,
            interval=settings.SWEEP_INTERVAL_SECONDS,
            batch_size=settings.SWEEP_BATCH_SIZE,
            batch_delay=settings.SWEEP_BATCH_DELAY_SECONDS,
        )
        scheduler.start()
    app.state.sweep_scheduler = scheduler

    yield

    logger.info("Shutting down...")
    if scheduler is not None:
        scheduler.stop()
    oracle.close()


app = FastAPI(title="Cosmetic Ownership Sync", lifespan=lifespan)

app.include_router(health_router)
app.include_router(ownership_router)
