import pytest
from fastapi.testclient import TestClient

from config import Settings
from context import build_context
from database import create_db_and_tables, make_engine
from ingestion import IngestionPipeline
from persistence import PersistenceAdapter
from sheet_sources import SheetSource
from store import EmployeeTable, ScheduleStore


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, text=""):
        self.status_code = status_code
        self._json = json_data
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


class StaticSource(SheetSource):
    """Source that returns fixed rows, or raises the given error."""

    def __init__(self, rows=None, error=None, name="static"):
        super().__init__("unused://{sheet_id}/{worksheet}")
        self.rows = rows or []
        self.error = error
        self.name = name
        self.calls = []

    def fetch_rows(self, sheet_id, worksheet):
        self.calls.append((sheet_id, worksheet))
        if self.error is not None:
            raise self.error
        return list(self.rows)


@pytest.fixture()
def engine():
    engine = make_engine("sqlite://")
    create_db_and_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def persistence(engine):
    return PersistenceAdapter(engine)


@pytest.fixture()
def pipeline(persistence):
    return IngestionPipeline(EmployeeTable(), ScheduleStore(), persistence)


@pytest.fixture()
def settings():
    return Settings(database_url="sqlite://", sheet_fetch_timeout=5.0)


@pytest.fixture()
def ctx(engine, settings):
    return build_context(engine, settings)


@pytest.fixture()
def client(ctx):
    from main import app, get_context

    app.dependency_overrides[get_context] = lambda: ctx
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def rows():
    return [
        {"Employee": "Jane Doe", "Site": "Site 1", "Day": "Friday", "StartTime": "9:00 AM", "EndTime": "5:00 PM"},
        {"Employee": "Jane Doe", "Site": "Site 2", "Day": "Monday", "StartTime": "3:00 PM", "EndTime": "12:00 AM"},
        {"Employee": "Sam Lee", "Site": "Site 1", "Day": "Tuesday", "StartTime": "7:30 AM", "EndTime": "3:15 PM"},
    ]
