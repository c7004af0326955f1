# connects the command line to the sync engine and prints the current readings.

from __future__ import annotations
import argparse
import logging
import os
import sys
from typing import List, Optional
from .client import WeatherAPIClient
from .errors import WeatherError
from .models import SortOption, WeatherReading
from .reachability import SocketReachability
from .service import WeatherSyncEngine
from .store import DEFAULT_DB_URL, WeatherStore


def format_reading(r: WeatherReading) -> str:
    observed = f" (observed {r.observed_at})" if r.observed_at else ""
    # labels without a comma have no city/country split, print them as stored
    place = f"{r.city}, {r.country}" if r.city else r.city_label
    return f"{place}: {r.temperature_celsius:.1f}°C{observed}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="weathersync", description="Show current weather for stored cities.")
    parser.add_argument("--sort", choices=[o.value for o in SortOption], default=SortOption.BY_NAME.value)
    parser.add_argument("--db", default=os.getenv("WEATHERSYNC_DB_URL", DEFAULT_DB_URL), help="SQLAlchemy database URL")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--refresh", action="store_true", help="fetch all default cities again")
    group.add_argument("--city", help="refresh a single city")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        client = WeatherAPIClient()
    except WeatherError as exc:
        print(exc.description, file=sys.stderr)
        return 2

    engine = WeatherSyncEngine(
        client,
        WeatherStore(args.db),
        SocketReachability(),
        sort_option=SortOption(args.sort),
    )

    if args.city:
        engine.refresh_single(args.city)
    elif args.refresh:
        engine.refresh_batch(engine.default_cities)
    else:
        engine.load_initial()

    for r in engine.readings:
        print(format_reading(r))

    if engine.last_error is not None:
        print(engine.last_error.description, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
