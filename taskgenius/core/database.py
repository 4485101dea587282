import logging
from typing import Generator
from fastapi import Request
from sqlalchemy import create_engine, event, text, Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine for the given URL.

    SQLite gets foreign keys switched on (the task cascade relies on it) and
    in-memory databases share one connection across threads.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    else:
        engine = create_engine(
            database_url,
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,
            pool_recycle=300,
            echo=echo,
        )

    @event.listens_for(engine, "checkout")
    def receive_checkout(dbapi_connection, connection_record, connection_proxy):
        logger.debug("Database connection checked out from pool")

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Database dependency for FastAPI

    Yields:
        Session: Database session bound to the application's engine
    """
    db = request.app.state.session_factory()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database session error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def init_db(engine: Engine) -> bool:
    """
    Initialize database tables

    Returns:
        bool: True if successful, False otherwise
    """
    try:
        # Import all models here to ensure they are registered
        from ..models import task, user  # noqa: F401

        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
        return True
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        return False


def check_db_connection(engine: Engine) -> bool:
    """
    Check database connectivity

    Returns:
        bool: True if connected, False otherwise
    """
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        logger.debug("Database connection check successful")
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
