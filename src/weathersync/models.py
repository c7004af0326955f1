# models and the sort policy to keep data shapes explicit and reusable across the app

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional, Tuple


def split_city_label(label: str) -> Tuple[str, str]:
    # "Berlin, Germany" -> ("Berlin", "Germany"); no comma means nothing to split
    if "," not in label:
        return "", ""
    city = label.split(",", 1)[0].strip()
    country = label.rsplit(",", 1)[1].strip()
    return city, country


@dataclass(frozen=True)
class WeatherQueryResult:
    # transient network value object, every field may be missing from the provider
    temperature_celsius: Optional[float] = None
    observed_at: Optional[str] = None
    location_label: Optional[str] = None
    humidity: Optional[float] = None
    weather_code: Optional[int] = None
    location_type: Optional[str] = None


@dataclass(frozen=True)
class WeatherReading:
    # immutable snapshot of one persisted row, this is what observers receive
    id: str
    city_label: str
    temperature_celsius: float = 0.0
    observed_at: str = ""
    last_updated: Optional[datetime] = None

    @property
    def city(self) -> str:
        return split_city_label(self.city_label)[0]

    @property
    def country(self) -> str:
        return split_city_label(self.city_label)[1]


class SortOption(Enum):
    BY_NAME = "name"
    BY_TEMPERATURE = "temperature"


def sort_readings(readings: Iterable[WeatherReading], option: SortOption) -> List[WeatherReading]:
    # sorted() is stable, so equal keys keep their relative order between re-sorts
    if option is SortOption.BY_TEMPERATURE:
        return sorted(readings, key=lambda r: r.temperature_celsius)
    return sorted(readings, key=lambda r: r.city)
