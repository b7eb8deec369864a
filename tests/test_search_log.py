# ABOUTME: Tests for the SQLAlchemy-backed search log.
# ABOUTME: Uses a throwaway SQLite file to check appends and the swallow-and-log failure path.

import logging
import math
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from weatherapp.search_log import SearchLog, SearchLogEntry, SearchLogStore, log_search


@pytest.fixture
def store(tmp_path):
    store = SearchLogStore(f"sqlite:///{tmp_path / 'searches.db'}")
    store.init_db()
    yield store
    store.dispose()


def _rows(store: SearchLogStore) -> list[SearchLog]:
    with store.SessionLocal() as db:
        return db.query(SearchLog).order_by(SearchLog.id).all()


class TestSearchLogStore:
    def test_record_appends_row_with_timestamp(self, store):
        """record() appends one row stamped by the database.

        Implementation: Records an entry and reads the table back.
        Passing implies: Coordinates, place name and searched_at are persisted.
        """
        store.record(SearchLogEntry(latitude=51.5, longitude=-0.12, place_name="London, United Kingdom"))

        rows = _rows(store)
        assert len(rows) == 1
        assert rows[0].latitude == 51.5
        assert rows[0].longitude == -0.12
        assert rows[0].place_name == "London, United Kingdom"
        assert rows[0].searched_at is not None

    def test_records_are_appended(self, store):
        """Repeated searches add new rows rather than updating old ones.

        Implementation: Records the same place twice.
        Passing implies: The log is append-only.
        """
        entry = SearchLogEntry(latitude=1.0, longitude=2.0, place_name="X, Y")
        store.record(entry)
        store.record(entry)
        assert [row.id for row in _rows(store)] == [1, 2]

    def test_nan_coordinates_stored_as_null(self, store):
        """NaN coordinates are stored as NULL.

        Implementation: Records an entry with NaN latitude/longitude.
        Passing implies: Unparseable coordinates do not break persistence.
        """
        store.record(SearchLogEntry(latitude=math.nan, longitude=math.nan, place_name="Unknown Location"))
        row = _rows(store)[0]
        assert row.latitude is None
        assert row.longitude is None

    def test_missing_coordinates_stored_as_null(self, store):
        """Entries without parsed coordinates are stored with NULL latitude/longitude.

        Implementation: Records an entry whose coordinates are None.
        Passing implies: Non-numeric request coordinates still produce a log row.
        """
        store.record(SearchLogEntry(latitude=None, longitude=None, place_name="Unknown Location"))
        row = _rows(store)[0]
        assert row.latitude is None
        assert row.longitude is None
        assert row.place_name == "Unknown Location"

    def test_init_db_is_idempotent(self, store):
        """init_db can run more than once.

        Implementation: Calls init_db a second time after a write.
        Passing implies: Startup is safe against an existing schema.
        """
        store.record(SearchLogEntry(latitude=1.0, longitude=2.0, place_name="X, Y"))
        store.init_db()
        assert len(_rows(store)) == 1


class TestLogSearch:
    def test_success_writes_entry(self, store):
        """log_search records the entry through the store.

        Implementation: Calls log_search with a real store.
        Passing implies: The best-effort wrapper does not drop successful writes.
        """
        log_search(store, SearchLogEntry(latitude=1.0, longitude=2.0, place_name="X, Y"))
        assert len(_rows(store)) == 1

    def test_failure_is_logged_not_raised(self, caplog):
        """A failing write is logged and swallowed.

        Implementation: Uses a store whose record() raises OperationalError.
        Passing implies: Persistence errors never propagate to the request path.
        """
        failing = MagicMock(spec=SearchLogStore)
        failing.record.side_effect = OperationalError("INSERT", {}, Exception("database is locked"))

        with caplog.at_level(logging.ERROR, logger="weatherapp.search_log"):
            log_search(failing, SearchLogEntry(latitude=1.0, longitude=2.0, place_name="X, Y"))

        assert "Failed to save search log for X, Y" in caplog.text

    def test_missing_table_is_swallowed(self, tmp_path, caplog):
        """Writing before init_db fails quietly.

        Implementation: Uses a fresh store without creating the schema.
        Passing implies: A misconfigured database cannot break lookups.
        """
        store = SearchLogStore(f"sqlite:///{tmp_path / 'empty.db'}")
        with caplog.at_level(logging.ERROR, logger="weatherapp.search_log"):
            log_search(store, SearchLogEntry(latitude=1.0, longitude=2.0, place_name="X, Y"))
        store.dispose()
        assert "Failed to save search log" in caplog.text
