import logging
import os
import time

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from phonebook.config import DATABASE_URL, STARTUP_RETRY_ATTEMPTS, STARTUP_RETRY_DELAY_SECONDS

logger = logging.getLogger(__name__)

SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"


def _engine_options(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    options = {"connect_args": {"check_same_thread": False}}
    # In-memory SQLite must share one connection across request threads
    if ":memory:" in url or url.rstrip("/").endswith("sqlite:"):
        options["poolclass"] = StaticPool
    return options


# creating the SQLAlchemy engine
engine = create_engine(DATABASE_URL, echo=SQL_ECHO, future=True, **_engine_options(DATABASE_URL))

# creating a configured "Session" class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)

# Base class for ORM models
Base = declarative_base()


# Dependency to get the database session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def wait_for_database(
    bind: Engine = engine,
    attempts: int = STARTUP_RETRY_ATTEMPTS,
    delay_seconds: float = STARTUP_RETRY_DELAY_SECONDS,
) -> None:
    """
    Block until the Store answers `SELECT 1`.
    Raises the last SQLAlchemyError once all attempts are exhausted.
    """
    attempts = max(1, attempts)
    for attempt in range(1, attempts + 1):
        try:
            with bind.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database is ready (attempt %d/%d)", attempt, attempts)
            return
        except SQLAlchemyError as e:
            if attempt == attempts:
                logger.error("Database not reachable after %d attempts: %s", attempts, e)
                raise
            logger.warning("Waiting for database to be ready... attempt %d/%d", attempt, attempts)
            time.sleep(delay_seconds)
