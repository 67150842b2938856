"""Database configuration and session management"""

from sqlalchemy import create_engine, text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker, Session
from app.config import Settings
import logging

logger = logging.getLogger(__name__)

# Create base class for models
Base = declarative_base()

# Import models after Base is defined so metadata is populated.
from app import models  # noqa: E402,F401


def build_engine(settings: Settings) -> Engine:
    """
    Create the SQLAlchemy engine for the configured database.

    Pool sizing only applies to server databases; SQLite gets the
    dialect's default pool.
    """
    url = settings.get_database_url()
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=settings.DEBUG,
        )

    return create_engine(
        url,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=settings.DEBUG
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    """Create session factory bound to an engine"""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def advisory_xact_lock(db: Session, key: str) -> None:
    """
    Serialize concurrent transactions that share ``key``.

    On PostgreSQL this takes a transaction-scoped advisory lock, released
    on commit or rollback. Other dialects rely on their own write locking.
    """
    if db.get_bind().dialect.name != "postgresql":
        return
    db.execute(text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": key})


def init_db(engine: Engine, settings: Settings) -> None:
    """
    Initialize database according to configured strategy.

    DB_INIT_MODE:
      - migrate: require alembic_version table (migration-first discipline)
      - create_all: legacy behavior for local/dev bootstrap
      - off: skip initialization check
    """
    mode = settings.DB_INIT_MODE.lower().strip()
    if mode == "off":
        logger.info("DB initialization check skipped (DB_INIT_MODE=off)")
        return

    if mode == "create_all":
        Base.metadata.create_all(bind=engine)
        logger.warning("Using create_all database initialization (recommended only for local development).")
        return

    if mode == "migrate":
        with engine.connect() as conn:
            has_version_table = inspect(conn).has_table("alembic_version")
        if settings.DB_REQUIRE_HEAD and not has_version_table:
            raise RuntimeError("Run Alembic migrations before starting the API (alembic_version table missing).")
        logger.info("Migration metadata detected: %s", has_version_table)
        return

    raise RuntimeError(f"Unknown DB_INIT_MODE: {settings.DB_INIT_MODE}")
