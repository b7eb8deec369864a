# ABOUTME: Best-effort persistence of resolved weather searches using SQLAlchemy.
# ABOUTME: Write failures are logged and swallowed so they never affect the HTTP response.

import logging
import math
from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, DateTime, Float, Integer, String, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.sql import func

logger = logging.getLogger(__name__)

Base = declarative_base()


class SearchLog(Base):
    """One resolved search. Rows are only ever appended."""

    __tablename__ = "search_logs"

    id = Column(Integer, primary_key=True, index=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    place_name = Column(String, nullable=False)
    searched_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return (
            f"SearchLog(id={self.id!r}, place_name={self.place_name!r}, "
            f"latitude={self.latitude!r}, longitude={self.longitude!r})"
        )


class SearchLogEntry(BaseModel):
    """What gets appended for each successful lookup; the timestamp is set by the database."""

    latitude: float | None
    longitude: float | None
    place_name: str


def _finite_or_none(value: float | None) -> float | None:
    return None if value is None or math.isnan(value) else value


class SearchLogStore:
    """Owns the engine and session factory for the search log table."""

    def __init__(self, database_url: str):
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        self.engine = create_engine(database_url, connect_args=connect_args, future=True)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def init_db(self) -> None:
        """Create the search log table if it does not exist yet."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Search log database initialized.")

    def record(self, entry: SearchLogEntry) -> None:
        with self.SessionLocal() as db:
            db.add(
                SearchLog(
                    latitude=_finite_or_none(entry.latitude),
                    longitude=_finite_or_none(entry.longitude),
                    place_name=entry.place_name,
                )
            )
            db.commit()

    def dispose(self) -> None:
        self.engine.dispose()


def log_search(store: SearchLogStore, entry: SearchLogEntry) -> None:
    """Append a search log entry, logging (never raising) on failure."""
    try:
        store.record(entry)
    except Exception:
        logger.exception("Failed to save search log for %s", entry.place_name)
