# OOP boundary for external i/o
# all http/keys/decoding live here, so the engine only ever sees WeatherQueryResult or a WeatherError
# use a thread-local session per ThreadPoolExecutor worker, batch refresh runs one worker per city

from __future__ import annotations
import logging
import os
import threading
from http import HTTPStatus
from typing import Any, Dict
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from dotenv import load_dotenv

from .errors import ApiError, DecodingError, NetworkError, WeatherConfigError
from .models import WeatherQueryResult

load_dotenv()  # in production, environment variables is injected by docker, kubernetes, cloud provider

logger = logging.getLogger(__name__)


def _status_message(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Unknown Error"


def _optional(obj: Dict[str, Any], key: str, types, what: str):
    value = obj.get(key)
    if value is None:
        return None
    # bool is an int subclass, never a valid number here
    if isinstance(value, bool) or not isinstance(value, types):
        raise DecodingError(f"{what} has unexpected type {type(value).__name__}")
    return value


def _section(obj: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = obj.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DecodingError(f"'{key}' is not an object")
    return value


# transform the provider payload into our flat value object and check shape
def parse_query_result(payload) -> WeatherQueryResult:
    # tomorrow.io realtime shape:
    # {"data": {"time": ..., "values": {"temperature": ..., "humidity": ..., "weatherCode": ...}},
    #  "location": {"name": ..., "type": ...}}
    if not isinstance(payload, dict):
        raise DecodingError("payload is not an object")

    data = _section(payload, "data")
    values = _section(data, "values")
    location = _section(payload, "location")

    temperature = _optional(values, "temperature", (int, float), "temperature")
    return WeatherQueryResult(
        temperature_celsius=float(temperature) if temperature is not None else None,
        observed_at=_optional(data, "time", str, "time"),
        location_label=_optional(location, "name", str, "location name"),
        humidity=_optional(values, "humidity", (int, float), "humidity"),
        weather_code=_optional(values, "weatherCode", int, "weatherCode"),
        location_type=_optional(location, "type", str, "location type"),
    )


class WeatherAPIClient:
    # this class encapsulates provider details like base URL, params, auth, retries
    BASE_URL = "https://api.tomorrow.io/v4/weather/realtime"
    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = "weathersync/0.1",
    ):
        self.api_key = api_key or os.getenv("WEATHER_API_KEY")
        if not self.api_key:
            # fail when key is missing to avoid confusing downstream errors
            raise WeatherConfigError("WEATHER_API_KEY not set")

        self.timeout = timeout
        self.user_agent = user_agent

        # each worker thread lazily obtains its own session through _session()
        self._local = threading.local()

        # no automatic retries: a failed city is reported once, retrying is up to the caller
        self._retry = Retry(total=0, raise_on_status=False)

    def _build_session(self) -> requests.Session:
        s = requests.Session()
        s.headers.update({"User-Agent": self.user_agent, "Accept": "application/json"})
        adapter = HTTPAdapter(max_retries=self._retry)
        s.mount("http://", adapter)
        s.mount("https://", adapter)
        return s

    def _session(self) -> requests.Session:
        sess = getattr(self._local, "session", None)
        if sess is None:
            sess = self._build_session()
            self._local.session = sess
        return sess

    def fetch_reading(self, city_name: str) -> WeatherQueryResult:
        params = {"location": city_name, "apikey": self.api_key}

        try:
            resp = self._session().get(self.BASE_URL, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise NetworkError(f"Request error for {city_name!r}: {exc}") from exc

        if not (200 <= resp.status_code < 300):
            logger.debug("HTTP %s for %r: %s", resp.status_code, city_name, (resp.text or "")[:300])
            raise ApiError(resp.status_code, _status_message(resp.status_code))

        if not resp.content:
            raise ApiError(0, "No Data Found")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise DecodingError(f"Invalid JSON for {city_name!r}: {exc}") from exc

        return parse_query_result(payload)
