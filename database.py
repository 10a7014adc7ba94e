import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError, NoSuchModuleError, SQLAlchemyError

from config import Settings
from errors import DatabaseConnectionError

logger = logging.getLogger(__name__)


def connect(settings: Settings) -> Engine:
    """Create the shared engine for the configured database.

    The engine owns its own connection pool and is safe to use from every
    request thread. Nothing is opened until the first query or ``ping``.
    """
    kwargs = {"pool_pre_ping": True}
    try:
        url = make_url(settings.connection_url())
        if url.get_backend_name() == "sqlite":
            # pooled SQLite connections are handed between request threads
            kwargs["connect_args"] = {"check_same_thread": False}
        engine = create_engine(url, **kwargs)
    except (ArgumentError, NoSuchModuleError, ImportError) as e:
        raise DatabaseConnectionError(f"Invalid database configuration: {e}") from e
    logger.debug(f"Database engine created for {engine.url.render_as_string(hide_password=True)}")
    return engine


def ping(engine: Engine) -> None:
    """Liveness probe. Raises DatabaseConnectionError when the database is unreachable."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        raise DatabaseConnectionError(f"Database is unreachable: {e}") from e


def initialize_database(settings: Settings) -> Engine:
    """Connect and verify the database, as done once at startup."""
    engine = connect(settings)
    try:
        ping(engine)
    except DatabaseConnectionError:
        engine.dispose()
        raise
    logger.info("Database Initialized")
    return engine
