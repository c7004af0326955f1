# orchestration and business rules.
# use ThreadPoolExecutor to run one network call per city concurrently
# the engine owns the observable state; client, store and reachability are injected so tests can swap them


from __future__ import annotations
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional, Protocol, Sequence, Tuple
from .errors import FetchFailed, NetworkError, WeatherError
from .models import SortOption, WeatherQueryResult, WeatherReading, sort_readings
from .reachability import Reachability
from .tracker import FailureTracker

logger = logging.getLogger(__name__)

DEFAULT_CITIES: Tuple[str, ...] = ("Berlin", "Dallas", "London", "Paris", "Shimla")


class WeatherSource(Protocol):
    def fetch_reading(self, city_name: str) -> WeatherQueryResult:
        ...


class ReadingStore(Protocol):
    def fetch_all(self) -> List[WeatherReading]:
        ...

    def upsert(self, result: WeatherQueryResult) -> WeatherReading:
        ...

    def fetch_by_label(self, label: str) -> Optional[WeatherReading]:
        ...


@dataclass(frozen=True)
class EngineState:
    # one consistent snapshot, observers never see a half applied update
    readings: Tuple[WeatherReading, ...] = ()
    is_loading: bool = False
    last_error: Optional[WeatherError] = None
    sort_option: SortOption = SortOption.BY_NAME


Observer = Callable[[EngineState], None]


class WeatherSyncEngine:
    def __init__(
        self,
        client: WeatherSource,
        store: ReadingStore,
        reachability: Reachability,
        *,
        default_cities: Sequence[str] = DEFAULT_CITIES,
        sort_option: SortOption = SortOption.BY_NAME,
        max_workers: Optional[int] = None,
    ):
        self.client = client
        self.store = store
        self.reachability = reachability
        self.default_cities = tuple(default_cities)
        # None means one worker per city
        self.max_workers = max_workers

        # every state change goes through _update under this lock (single writer)
        self._lock = threading.RLock()
        self._state = EngineState(sort_option=sort_option)
        self._observers: List[Observer] = []

    # observable state

    @property
    def state(self) -> EngineState:
        with self._lock:
            return self._state

    @property
    def readings(self) -> Tuple[WeatherReading, ...]:
        return self.state.readings

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    @property
    def last_error(self) -> Optional[WeatherError]:
        return self.state.last_error

    @property
    def sort_option(self) -> SortOption:
        return self.state.sort_option

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    def _update(self, **changes) -> EngineState:
        with self._lock:
            self._state = replace(self._state, **changes)
            state = self._state
            # notified under the lock so observers receive snapshots in write order
            for observer in list(self._observers):
                try:
                    observer(state)
                except Exception as exc:
                    # a raising observer is logged, the rest are still notified
                    logger.exception("Observer failed: %s", exc)
            return state

    def _publish(self, readings: Iterable[WeatherReading]) -> None:
        with self._lock:
            ordered = sort_readings(readings, self._state.sort_option)
            self._update(readings=tuple(ordered))

    def clear_error(self) -> None:
        self._update(last_error=None)

    # operations

    def load_initial(self) -> None:
        # offline first: show what is stored, only go to the network when nothing is
        try:
            stored = self.store.fetch_all()
        except WeatherError as exc:
            logger.error("Loading stored weather failed: %s", exc)
            self._update(last_error=FetchFailed("Failed to load offline data."))
            return

        if not stored:
            logger.info("No stored weather, fetching default cities")
            self.refresh_batch(self.default_cities)
            return

        self._publish(stored)

    def _fetch_and_store(self, city: str, tracker: FailureTracker) -> bool:
        # single city path: fetch -> upsert; a failure is recorded, never raised into the batch
        try:
            result = self.client.fetch_reading(city)
            self.store.upsert(result)
        except WeatherError as exc:
            logger.warning("Failed to fetch weather for %s: %s", city, exc)
            tracker.record(city)
            return False
        return True

    def refresh_batch(self, cities: Iterable[str]) -> None:
        cities = list(cities)
        if not cities:
            return

        try:
            self._update(is_loading=True, last_error=None)
            if not self.reachability.is_connected():
                self._update(last_error=NetworkError("No internet connection."))
                return

            logger.info("Refreshing weather for %d cities", len(cities))
            tracker = FailureTracker()
            succeeded = 0
            with ThreadPoolExecutor(max_workers=self.max_workers or len(cities)) as pool:
                futures = [pool.submit(self._fetch_and_store, city, tracker) for city in cities]
                # the batch is done only once every task is, however many failed
                for fut in as_completed(futures):
                    if fut.result():
                        succeeded += 1

            failed = tracker.drain()
            error: Optional[WeatherError] = None
            if failed:
                error = NetworkError(f"Failed to fetch weather for: {', '.join(failed)}")

            if succeeded:
                try:
                    self._publish(self.store.fetch_all())
                except WeatherError as exc:
                    logger.error("Reloading stored weather failed: %s", exc)
                    error = error or FetchFailed("Failed to load offline data.")

            logger.info("Batch refresh finished: %d ok, %d failed", succeeded, len(failed))
            self._update(last_error=error)
        finally:
            self._update(is_loading=False)

    def refresh_single(self, city: str) -> None:
        if not city:
            return

        if not self.reachability.is_connected():
            self._update(last_error=NetworkError("No internet connection."), is_loading=False)
            return

        try:
            self._update(is_loading=True, last_error=None)
            result = self.client.fetch_reading(city)
            self.store.upsert(result)
            self._publish(self.store.fetch_all())
        except WeatherError as exc:
            logger.warning("Refreshing weather for %s failed: %s", city, exc)
            self._update(
                last_error=FetchFailed(f"Failed to refresh weather data for {city}. Please try again.")
            )
        finally:
            self._update(is_loading=False)

    def set_sort_option(self, option: SortOption) -> None:
        # no i/o, just reorder what is already published
        with self._lock:
            ordered = sort_readings(self._state.readings, option)
            self._update(sort_option=option, readings=tuple(ordered))
