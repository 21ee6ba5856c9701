import logging
from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.models.base import Base

logger = logging.getLogger(__name__)

_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def normalize_database_url(url: str) -> str:
    """Hosted Postgres providers still hand out ``postgres://`` URLs."""
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def engine_options(url: str, ssl: bool = False) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if url in _MEMORY_URLS:
            # one shared connection, otherwise every session sees an empty database
            options["poolclass"] = StaticPool
        return options

    options = {"pool_pre_ping": True}
    if ssl:
        options["connect_args"] = {"sslmode": "require"}
    return options


DATABASE_URL = normalize_database_url(settings.DATABASE_URL)

engine = create_engine(DATABASE_URL, **engine_options(DATABASE_URL, settings.DATABASE_SSL))

# Rows must stay readable after commit: they are serialized for broadcast afterwards
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    # import so the model is registered on Base.metadata
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured on %s", engine.url.render_as_string(hide_password=True))
