from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import os

from .config import settings
from .database import engine, Base
from .request_queue import RateLimitedQueue
from .routers import boq

logging.basicConfig(level=settings.LOG_LEVEL.upper())
logger = logging.getLogger("boq_estimator")

# Create tables (handles new tables but won't add columns to existing ones)
Base.metadata.create_all(bind=engine)

BASE_REVISION = "5b1e0c2f7a91"


def _run_migrations():
    """Run pending Alembic migrations on startup.

    Databases created by Base.metadata.create_all() before Alembic was set
    up get the base migration stamped first, so its CREATE TABLEs are skipped.
    """
    try:
        from alembic.config import Config
        from alembic import command
        from sqlalchemy import inspect

        alembic_ini = os.path.join(os.path.dirname(__file__), "..", "alembic.ini")
        if not os.path.exists(alembic_ini):
            logger.info("alembic.ini not found, skipping migrations")
            return

        alembic_cfg = Config(alembic_ini)
        alembic_cfg.set_main_option("script_location", os.path.join(os.path.dirname(alembic_ini), "alembic"))
        alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

        insp = inspect(engine)
        tables = insp.get_table_names()
        if "alembic_version" not in tables and "rates" in tables:
            logger.info("Stamping base migration %s (tables already exist)", BASE_REVISION)
            command.stamp(alembic_cfg, BASE_REVISION)

        logger.info("Running pending Alembic migrations...")
        command.upgrade(alembic_cfg, "head")
        logger.info("Migrations complete")

    except Exception as e:
        # Never let migration errors prevent app startup
        logger.warning(f"Alembic migration warning: {e}")


app = FastAPI(
    title="BOQ Estimator",
    description="Prices uploaded Bills of Quantities from the rate catalog, with AI fallback estimates",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# One queue per process - every upload's AI calls go through it
app.state.advisor_queue = RateLimitedQueue(settings.ADVISOR_COOLDOWN_SECONDS)

app.include_router(boq.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": "boq-estimator"}


@app.on_event("startup")
def auto_migrate():
    """Run pending Alembic migrations on startup."""
    _run_migrations()


@app.on_event("startup")
def auto_seed():
    """Seed the starter rate catalog on first run."""
    from .database import SessionLocal
    db = SessionLocal()
    try:
        seeded = boq.seed_default_rates(db)
        if seeded:
            logger.info("Seeded %d default rates", seeded)
    finally:
        db.close()


@app.on_event("shutdown")
def close_advisor_queue():
    app.state.advisor_queue.close(timeout=5)


@app.on_event("startup")
def reopen_advisor_queue():
    """Replace the queue if a previous shutdown closed it (e.g. repeated test clients)."""
    if app.state.advisor_queue.closed:
        app.state.advisor_queue = RateLimitedQueue(settings.ADVISOR_COOLDOWN_SECONDS)
