"""Engine, session factory and declarative base shared by all models."""

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from pcm.config import settings
from pcm.exceptions import DuplicateRecordError


def _engine_options(database_url: str) -> dict:
    # SQLite (local runs, tests) has no connection pool to size
    if make_url(database_url).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_size": 5}


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


class Base(DeclarativeBase):
    pass


def get_db():
    """FastAPI dependency yielding a session; routes commit, services only flush."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def flush_unique(db: Session, entity: str, key: object) -> None:
    """Flush pending changes, reporting a unique-key clash as ``DuplicateRecordError``."""
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateRecordError(entity, key) from exc
