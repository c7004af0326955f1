# local persistence: one row per city label, upsert keyed on the exact label string
# rows never leave this module as ORM objects, callers get frozen WeatherReading snapshots

from __future__ import annotations
import logging
import threading
import uuid
from datetime import datetime
from typing import List, Optional
from sqlalchemy import DateTime, Float, String, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from .errors import FetchFailed, SaveFailed
from .models import WeatherQueryResult, WeatherReading

logger = logging.getLogger(__name__)

DEFAULT_DB_URL = "sqlite:///weathersync.db"


class Base(DeclarativeBase):
    pass


class WeatherInfo(Base):
    __tablename__ = "weather_info"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    # exact match, not normalized: "berlin, germany" and "Berlin, Germany" are two rows
    city_name: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    temperature: Mapped[float] = mapped_column(Float, default=0.0)
    time: Mapped[str] = mapped_column(String(64), default="")
    # reserved for staleness checks, nothing writes it yet
    last_updated: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    def to_reading(self) -> WeatherReading:
        return WeatherReading(
            id=self.id,
            city_label=self.city_name,
            temperature_celsius=self.temperature,
            observed_at=self.time,
            last_updated=self.last_updated,
        )

    def __repr__(self):
        return f"<WeatherInfo {self.id} {self.city_name} {self.temperature}>"


class WeatherStore:
    def __init__(self, url: str = DEFAULT_DB_URL, echo: bool = False):
        kwargs = {"echo": echo}
        if url.startswith("sqlite"):
            # worker threads share the store, and an in-memory db must stay on one connection
            kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool
        self.engine = create_engine(url, **kwargs)
        self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)
        # single writer: concurrent batch tasks queue here instead of racing the commit
        self._write_lock = threading.Lock()
        self.create_schema()

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)

    def fetch_all(self) -> List[WeatherReading]:
        try:
            with self._sessions() as session:
                rows = session.scalars(select(WeatherInfo)).all()
                return [row.to_reading() for row in rows]
        except SQLAlchemyError as exc:
            raise FetchFailed(f"could not read stored weather: {exc}") from exc

    def fetch_by_label(self, label: str) -> Optional[WeatherReading]:
        try:
            with self._sessions() as session:
                row = session.scalars(
                    select(WeatherInfo).where(WeatherInfo.city_name == label)
                ).first()
                return row.to_reading() if row is not None else None
        except SQLAlchemyError as exc:
            raise FetchFailed(f"could not read weather for {label!r}: {exc}") from exc

    def upsert(self, result: WeatherQueryResult) -> WeatherReading:
        label = result.location_label or ""
        with self._write_lock:
            try:
                with self._sessions() as session, session.begin():
                    row = session.scalars(
                        select(WeatherInfo).where(WeatherInfo.city_name == label)
                    ).first()
                    if row is None:
                        row = WeatherInfo(id=str(uuid.uuid4()), last_updated=None)
                        session.add(row)
                        logger.debug("Inserting weather row for %r", label)
                    row.city_name = label
                    row.temperature = result.temperature_celsius if result.temperature_celsius is not None else 0.0
                    row.time = result.observed_at or ""
                    reading = row.to_reading()
                    # session.begin() commits on exit and rolls back on error
                return reading
            except SQLAlchemyError as exc:
                raise SaveFailed(f"could not save weather for {label!r}: {exc}") from exc
