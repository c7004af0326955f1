# error taxonomy shared by the client, the store and the engine
# every failure degrades to one of these so observers only ever see a WeatherError

from __future__ import annotations


class WeatherError(RuntimeError):
    # base type, carries a plain message plus a user facing description
    prefix = "Weather error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    @property
    def description(self) -> str:
        return f"{self.prefix}: {self.message}"

    # value semantics so published errors can be compared in observers and tests
    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self.args == other.args

    def __hash__(self):
        return hash((type(self), self.args))

    def __repr__(self) -> str:
        args = ", ".join(repr(a) for a in self.args)
        return f"{type(self).__name__}({args})"


class NetworkError(WeatherError):
    prefix = "Network error"


class ApiError(WeatherError):
    prefix = "API error"

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.args = (status_code, message)
        self.status_code = status_code

    @property
    def description(self) -> str:
        return f"{self.prefix} {self.status_code}: {self.message}"


class DecodingError(WeatherError):
    prefix = "Invalid weather data received"


class FetchFailed(WeatherError):
    prefix = "Failed to fetch weather"


class SaveFailed(WeatherError):
    prefix = "Failed to save weather"


class WeatherConfigError(WeatherError):
    prefix = "Configuration error"
