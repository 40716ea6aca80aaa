from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def make_engine(database_url: str) -> Engine:
    """Create the process-wide engine for a SQLAlchemy URL.

    SQLite gets the same per-connection PRAGMAs as before; in-memory SQLite
    shares a single connection so every session sees the same database.
    """
    if database_url.startswith("sqlite"):
        in_memory = ":memory:" in database_url or database_url.rstrip("/") == "sqlite:"
        kwargs = {"connect_args": {"check_same_thread": False}}  # Allow SQLite to work with FastAPI
        if in_memory:
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, **kwargs)

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            if not in_memory:
                # Better concurrency between request threads
                cursor.execute("PRAGMA journal_mode=WAL;")
                cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.execute("PRAGMA busy_timeout=5000;")
            cursor.close()

        return engine

    # Postgres or others
    return create_engine(database_url, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create missing tables; a no-op once migrations have run."""
    from waitlist import models  # noqa: F401  # ensure models are registered

    Base.metadata.create_all(bind=engine)
