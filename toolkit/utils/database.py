"""
Database configuration and session management for the repository toolkit.

This module provides:
- Database URL selection from settings
- Engine creation with SQLite and PostgreSQL specific pooling
- Session factory creation
- Table creation for all models registered on ``Base``
- A generator dependency handing out sessions (used by FastAPI routes)
"""

import logging
from typing import Generator, Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from toolkit.models.base import Base
from toolkit.utils.config import get_settings

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

def get_database_url() -> str:
    """
    Get the database URL for the current environment.

    Testing always uses an in-memory SQLite database; every other
    environment uses ``Settings.DATABASE_URL``.

    Returns:
        str: Database connection URL
    """
    settings = get_settings()
    if settings.ENVIRONMENT.lower() == "testing":
        logger.info("Using in-memory SQLite database for testing")
        return "sqlite://"

    # Fix potential newline issues in .env file
    return settings.DATABASE_URL.split('\n')[0].strip()

def get_engine(database_url: Optional[str] = None) -> Engine:
    """
    Get a SQLAlchemy engine configured for the database type.

    Args:
        database_url (str, optional): Database URL. If None, determined from settings.

    Returns:
        Engine: Configured SQLAlchemy engine
    """
    settings = get_settings()
    if database_url is None:
        database_url = get_database_url()

    connect_args = {}
    engine_args = {"echo": settings.DEBUG}

    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees an empty database
            engine_args["poolclass"] = StaticPool
            logger.info("Using StaticPool for in-memory SQLite database")

    elif database_url.startswith("postgresql"):
        engine_args.update({
            "poolclass": QueuePool,
            "pool_size": settings.POOL_SIZE,
            "max_overflow": settings.MAX_OVERFLOW,
            "pool_timeout": settings.POOL_TIMEOUT,
            "pool_recycle": settings.POOL_RECYCLE,
            "pool_pre_ping": True  # Verify connections before using them
        })
        logger.info(f"Using QueuePool for PostgreSQL database (size={settings.POOL_SIZE}, max_overflow={settings.MAX_OVERFLOW})")

    return create_engine(database_url, connect_args=connect_args, **engine_args)

def get_session_local(engine: Optional[Engine] = None) -> sessionmaker:
    """
    Get a session factory bound to an engine.

    Args:
        engine (Engine, optional): SQLAlchemy engine. If None, a new engine is created.

    Returns:
        sessionmaker: Configured SQLAlchemy session factory
    """
    if engine is None:
        engine = get_engine()
    return sessionmaker(bind=engine, autoflush=False)

def init_db(engine: Engine) -> None:
    """
    Create the tables of every model registered on ``Base``.

    Args:
        engine (Engine): Engine to create the tables with
    """
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created")
    except Exception as e:
        logger.error(f"Error initializing database: {str(e)}")
        raise

_session_local: Optional[sessionmaker] = None

def get_db() -> Generator[Session, None, None]:
    """
    Provide a database session and close it afterwards.

    The session factory is created on first use from the settings.

    Yields:
        Session: SQLAlchemy database session
    """
    global _session_local
    if _session_local is None:
        _session_local = get_session_local()

    db = _session_local()
    try:
        yield db
    finally:
        db.close()
