"""Database setup: SQLite by default, any SQLAlchemy URL via DATABASE_URL."""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import config

Base = declarative_base()


def make_engine(url: str = None, **kwargs):
    url = url or config.DATABASE_URL
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    eng = create_engine(url, echo=config.DEBUG, **kwargs)

    if eng.dialect.name == "sqlite":
        # SQLite leaves FK enforcement (and ON DELETE CASCADE) off per connection
        @event.listens_for(eng, "connect")
        def _enable_foreign_keys(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return eng


engine = make_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None):
    """Create all tables (models must be imported so they register with Base)."""
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
