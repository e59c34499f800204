"""
Database connection management for ServiTech Pro.
Handles SQLAlchemy engine creation, session management, and connection verification.
"""

import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import QueuePool, StaticPool

logger = logging.getLogger(__name__)

# SQLAlchemy Base for model declarations
Base = declarative_base()

# Engine and SessionLocal are bound by init_engine() during app creation
engine = None
SessionLocal = None


def init_engine(database_url, engine_options=None):
    """
    Create the SQLAlchemy engine and session factory for a database URL.

    Args:
        database_url: SQLAlchemy connection string
        engine_options: Extra keyword arguments for create_engine (pooled backends only)

    Returns:
        The created engine
    """
    global engine, SessionLocal

    if not database_url:
        raise RuntimeError(
            "DATABASE_URL not configured. Cannot connect to the database. "
            "Please set the DATABASE_URL environment variable."
        )

    if engine is not None:
        engine.dispose()

    try:
        if database_url.startswith('sqlite'):
            kwargs = {'connect_args': {'check_same_thread': False}}
            if database_url in ('sqlite://', 'sqlite:///:memory:'):
                # One shared connection so every session sees the same in-memory DB
                kwargs['poolclass'] = StaticPool
            engine = create_engine(database_url, **kwargs)
            _enable_sqlite_savepoints(engine)
        else:
            engine = create_engine(
                database_url,
                poolclass=QueuePool,
                pool_size=5,
                max_overflow=10,
                echo=False,
                **(engine_options or {})
            )
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        logger.info(f"Database engine created for {engine.url.get_backend_name()}")
        return engine
    except Exception as e:
        logger.error(f"Failed to create database engine: {e}")
        raise RuntimeError(f"Failed to connect to database: {e}")


def _enable_sqlite_savepoints(sqlite_engine):
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT works under pysqlite."""

    @event.listens_for(sqlite_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def get_engine():
    """Get the initialized SQLAlchemy engine."""
    if engine is None:
        raise RuntimeError("Database engine not initialized. Call init_engine() first.")
    return engine


@contextmanager
def get_db_session():
    """
    Context manager for getting a database session.
    Commits on success, rolls back on error.

    Example:
        with get_db_session() as db:
            clients = ClientRepository(db).list_clients()
    """
    if SessionLocal is None:
        raise RuntimeError("Database engine not initialized. Call init_engine() first.")
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_db_connection():
    """
    Verify that the database connection is working.
    Returns True if connection is successful, raises exception otherwise.
    """
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise RuntimeError(f"Cannot connect to database: {e}")


def init_db():
    """
    Create all tables that do not exist yet.
    Production schemas are managed by Alembic; this covers dev and tests.
    """
    # Import models to ensure they're registered with Base
    from database import models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())
    logger.info("Database tables created/verified")
