# gym_scheduler/database.py
# SQLite connections switch foreign keys on so ON DELETE CASCADE matches PostgreSQL.
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from gym_scheduler.config import settings

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, **kwargs):
    """Create an engine, applying the SQLite connection tweaks when needed."""
    if database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    db_engine = create_engine(database_url, **kwargs)
    if db_engine.dialect.name == "sqlite":
        event.listen(db_engine, "connect", _enable_sqlite_foreign_keys)
    return db_engine


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    # Import models to ensure they are registered with Base.metadata
    from gym_scheduler import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    """Dependency for getting a request-scoped database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
