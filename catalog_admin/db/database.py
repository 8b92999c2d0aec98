from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from catalog_admin.config import settings
from contextlib import contextmanager
from alembic import command
from alembic.config import Config
import asyncio
import logging
import os
import sqlite3

logger = logging.getLogger(__name__)


def _engine_kwargs(database_url: str) -> dict:
    """Pool and connect options for the configured backend"""
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
        "connect_args": {
            "connect_timeout": 5,  # 5 second connection timeout
        },
        "pool_timeout": 10,  # 10 second timeout for getting a connection from pool
    }


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores FOREIGN KEY clauses unless asked per connection
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(session_factory=SessionLocal):
    """Session for scripts: commit on success, roll back on error, always close"""
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_connection() -> bool:
    """Run a trivial query against the pooled engine"""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        return True
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return False


async def wait_for_database(max_retries=30, retry_delay=2):
    """Wait for database to be available with retry logic"""
    # Only log the host part of the URL
    db_url_display = settings.database_url.split("@")[-1]

    logger.info(f"Waiting for database connection to {db_url_display}...")

    for attempt in range(1, max_retries + 1):
        if check_connection():
            logger.info("Database connection successful")
            return True
        if attempt < max_retries:
            logger.warning(f"Database connection attempt {attempt}/{max_retries} failed. Retrying in {retry_delay}s...")
            await asyncio.sleep(retry_delay)
    logger.error(f"Database connection failed after {max_retries} attempts")
    raise ConnectionError(f"Could not connect to {db_url_display}")


def _find_alembic_ini() -> str:
    # Working directory first (containers), then the project root
    alembic_ini_path = "alembic.ini"
    if not os.path.exists(alembic_ini_path):
        file_dir = os.path.dirname(os.path.abspath(__file__))
        project_root = os.path.dirname(os.path.dirname(file_dir))
        alembic_ini_path = os.path.join(project_root, "alembic.ini")

    if not os.path.exists(alembic_ini_path):
        raise FileNotFoundError(
            f"Could not find alembic.ini. Current directory: {os.getcwd()}, "
            f"Tried: alembic.ini and {alembic_ini_path}"
        )
    return alembic_ini_path


async def init_db():
    """Initialize database by running Alembic migrations"""
    await wait_for_database(max_retries=30, retry_delay=2)

    if not settings.run_migrations:
        logger.info("Skipping database migrations (RUN_MIGRATIONS=false)")
        return

    alembic_ini_path = _find_alembic_ini()
    logger.info(f"Using Alembic config: {os.path.abspath(alembic_ini_path)}")

    alembic_cfg = Config(alembic_ini_path)
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)

    logger.info("Starting Alembic migration to head...")
    try:
        # Alembic is blocking, keep it off the event loop
        await asyncio.wait_for(
            asyncio.to_thread(command.upgrade, alembic_cfg, "head"),
            timeout=60.0
        )
    except asyncio.TimeoutError:
        logger.error("Database migrations timed out after 60 seconds")
        raise
    except Exception as e:
        logger.error(f"Error running migrations: {e}", exc_info=True)
        raise

    logger.info("Database migrations completed successfully")
