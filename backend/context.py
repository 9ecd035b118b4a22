import logging
from dataclasses import dataclass

from config import Settings
from ingestion import IngestionPipeline
from persistence import PersistenceAdapter
from seed_data import seed_data
from sheet_sources import build_sources
from store import EmployeeTable, ScheduleStore

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything a request handler needs, built once at startup and passed around."""

    settings: Settings
    employees: EmployeeTable
    store: ScheduleStore
    persistence: PersistenceAdapter
    pipeline: IngestionPipeline


def build_context(engine, settings: Settings) -> AppContext:
    persistence = PersistenceAdapter(engine)
    employees_data, schedules_data = persistence.load()

    employees = EmployeeTable(employees_data)
    store = ScheduleStore()
    store.restore(schedules_data)

    pipeline = IngestionPipeline(
        employees,
        store,
        persistence,
        default_password=settings.default_password,
        sources=build_sources(settings),
    )

    if employees.is_empty():
        logger.info("No stored employees, loading seed data")
        seed_employees, seed_schedules = seed_data()
        employees.load(seed_employees)
        store.restore({**schedules_data, **seed_schedules})
        pipeline.save()

    logger.info("Loaded %d employees and %d schedules", len(employees), len(store))
    return AppContext(settings, employees, store, persistence, pipeline)
