# store tests run on in-memory sqlite, fast and isolated per test

import threading

import pytest

from weathersync.errors import FetchFailed, SaveFailed
from weathersync.models import WeatherQueryResult
from weathersync.store import WeatherStore


@pytest.fixture
def store():
    return WeatherStore("sqlite://")


def test_upsert_inserts_new_row(store):
    reading = store.upsert(
        WeatherQueryResult(temperature_celsius=5.0, observed_at="2024-11-16T12:00:00Z", location_label="Berlin, Germany")
    )

    assert reading.id
    assert reading.city_label == "Berlin, Germany"
    assert store.fetch_all() == [reading]


def test_upsert_twice_keeps_id_and_updates_temperature(store):
    first = store.upsert(WeatherQueryResult(temperature_celsius=5.0, location_label="Berlin, Germany"))
    second = store.upsert(WeatherQueryResult(temperature_celsius=7.0, location_label="Berlin, Germany"))

    rows = store.fetch_all()
    assert len(rows) == 1
    assert rows[0].temperature_celsius == 7.0
    assert rows[0].id == first.id == second.id


def test_upsert_defaults_missing_fields(store):
    reading = store.upsert(WeatherQueryResult())

    assert reading.city_label == ""
    assert reading.temperature_celsius == 0.0
    assert reading.observed_at == ""
    assert reading.last_updated is None


def test_label_match_is_exact(store):
    store.upsert(WeatherQueryResult(temperature_celsius=1.0, location_label="Berlin, Germany"))
    store.upsert(WeatherQueryResult(temperature_celsius=2.0, location_label="berlin, germany"))
    store.upsert(WeatherQueryResult(temperature_celsius=3.0, location_label="Berlin,Germany"))

    assert len(store.fetch_all()) == 3
    assert store.fetch_by_label("Berlin, Germany").temperature_celsius == 1.0


def test_fetch_by_label_missing(store):
    assert store.fetch_by_label("Nowhere") is None


def test_concurrent_upserts_do_not_lose_rows(store):
    labels = [f"City {i}, Land" for i in range(20)]
    threads = [
        threading.Thread(target=store.upsert, args=(WeatherQueryResult(temperature_celsius=float(i), location_label=label),))
        for i, label in enumerate(labels)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(r.city_label for r in store.fetch_all()) == sorted(labels)


def test_file_database_persists_between_stores(tmp_path):
    url = f"sqlite:///{tmp_path / 'weather.db'}"
    WeatherStore(url).upsert(WeatherQueryResult(temperature_celsius=4.0, location_label="London, United Kingdom"))

    rows = WeatherStore(url).fetch_all()

    assert [r.city_label for r in rows] == ["London, United Kingdom"]


def test_database_errors_are_wrapped(store):
    with store.engine.begin() as conn:
        conn.exec_driver_sql("DROP TABLE weather_info")

    with pytest.raises(FetchFailed):
        store.fetch_all()
    with pytest.raises(SaveFailed):
        store.upsert(WeatherQueryResult(location_label="Paris, France"))
