from __future__ import annotations
from typing import Any, Dict

import structlog
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session

from .config import settings

logger = structlog.get_logger(__name__)

SETTINGS_ROW_ID = "default"


class Base(DeclarativeBase):
    pass


def _engine_kwargs(url: str) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {
        "pool_pre_ping": True,
        "echo": settings.ENV == "development",
    }
    if not url.startswith("sqlite"):
        kwargs["pool_size"] = settings.DB_POOL_SIZE
    return kwargs


ENGINE = create_engine(settings.sqlalchemy_url, **_engine_kwargs(settings.sqlalchemy_url))
SessionLocal = sessionmaker(bind=ENGINE, autoflush=False, autocommit=False)


def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create missing tables and make sure the settings row exists."""
    from .models import HotUpdaterSettings

    Base.metadata.create_all(bind=ENGINE)
    with SessionLocal() as db:
        if db.get(HotUpdaterSettings, SETTINGS_ROW_ID) is None:
            db.add(HotUpdaterSettings(id=SETTINGS_ROW_ID, version=settings.SCHEMA_VERSION))
            db.commit()
            logger.info("settings_row_seeded", version=settings.SCHEMA_VERSION)


def dispose_engine() -> None:
    ENGINE.dispose()
