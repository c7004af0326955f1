# unit tests for pure logic: label parsing, sorting, error values

from weathersync.errors import ApiError, FetchFailed, NetworkError
from weathersync.models import SortOption, WeatherReading, sort_readings, split_city_label


def reading(label, temp, id_=None):
    return WeatherReading(id=id_ or label, city_label=label, temperature_celsius=temp)


def test_split_city_label():
    assert split_city_label("Berlin, Germany") == ("Berlin", "Germany")
    # city is before the first comma, country after the last one
    assert split_city_label("Dallas, Texas, United States") == ("Dallas", "United States")
    assert split_city_label("  Paris ,  France ") == ("Paris", "France")


def test_split_city_label_without_separator():
    assert split_city_label("Atlantis") == ("", "")
    assert split_city_label("") == ("", "")


def test_reading_city_and_country():
    r = reading("Shimla, Himachal Pradesh, India", -2.0)
    assert (r.city, r.country) == ("Shimla", "India")


def test_sort_by_temperature():
    rows = [reading("Paris, France", 10.0), reading("Berlin, Germany", 5.0)]
    assert [r.city for r in sort_readings(rows, SortOption.BY_TEMPERATURE)] == ["Berlin", "Paris"]


def test_sort_by_name_ignores_temperature():
    rows = [reading("Paris, France", 1.0), reading("Berlin, Germany", 30.0)]
    assert [r.city for r in sort_readings(rows, SortOption.BY_NAME)] == ["Berlin", "Paris"]


def test_sort_is_stable_for_equal_keys():
    rows = [reading("London, UK", 8.0, "a"), reading("Dallas, US", 8.0, "b"), reading("Berlin, DE", 8.0, "c")]
    ordered = sort_readings(rows, SortOption.BY_TEMPERATURE)
    assert [r.id for r in ordered] == ["a", "b", "c"]
    # re-sorting an already sorted list keeps the order too
    assert sort_readings(ordered, SortOption.BY_TEMPERATURE) == ordered


def test_errors_compare_by_type_and_message():
    assert NetworkError("No internet connection.") == NetworkError("No internet connection.")
    assert NetworkError("x") != FetchFailed("x")
    assert ApiError(404, "Not Found") == ApiError(404, "Not Found")
    assert ApiError(404, "Not Found") != ApiError(500, "Not Found")


def test_error_descriptions():
    assert NetworkError("No internet connection.").description == "Network error: No internet connection."
    assert ApiError(404, "Not Found").description == "API error 404: Not Found"
    assert FetchFailed("Failed to load offline data.").description == (
        "Failed to fetch weather: Failed to load offline data."
    )
