from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from fleet_tracker.config import settings


def _set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL;")
    cursor.execute("PRAGMA synchronous=NORMAL;")
    cursor.execute("PRAGMA cache_size=-2000;")
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.close()


def make_engine(url: str = None, echo: bool = None) -> Engine:
    """Create an engine; SQLite URLs get the thread and PRAGMA tweaks."""
    url = url or settings.DATABASE_URL
    echo = settings.DATABASE_ECHO if echo is None else echo

    if url.startswith("sqlite"):
        new_engine = create_engine(url, echo=echo, connect_args={"check_same_thread": False})
        # Apply SQLite PRAGMAs for performance
        event.listen(new_engine, "connect", _set_sqlite_pragma)
        return new_engine
    return create_engine(url, echo=echo)


engine = make_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
