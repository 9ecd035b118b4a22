"""
Durable storage for the employee table and the schedule store.

State lives in the ``StorageEntry`` key-value table under fixed keys, each
holding one JSON document. The two halves load independently, so a corrupt
schedule document never prevents employees from loading, and vice versa.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from models import Employee, ScheduleRecord, SheetConfig, StorageEntry

logger = logging.getLogger(__name__)

EMPLOYEES_KEY = "tw_employees"
SCHEDULES_KEY = "tw_schedules"
SHEET_CONFIG_KEY = "tw_sheet_config"

_employee_list = TypeAdapter(List[Employee])
_schedule_map = TypeAdapter(Dict[str, ScheduleRecord])


class PersistenceAdapter:
    def __init__(self, engine):
        self.engine = engine

    def _read(self, session: Session, key: str) -> Optional[str]:
        entry = session.get(StorageEntry, key)
        return entry.value if entry else None

    def _write(self, session: Session, key: str, value: str) -> None:
        entry = session.get(StorageEntry, key)
        if entry is None:
            entry = StorageEntry(key=key, value=value)
        else:
            entry.value = value
            entry.updated_at = datetime.now(timezone.utc)
        session.add(entry)

    def save(self, employees: Iterable[Employee], schedules: Dict[str, ScheduleRecord]) -> bool:
        """Write both halves in one transaction. Never raises; returns False on failure."""
        try:
            employees_json = json.dumps([e.model_dump() for e in employees])
            schedules_json = json.dumps(
                {key: record.model_dump(by_alias=True) for key, record in schedules.items()}
            )
            with Session(self.engine) as session:
                self._write(session, EMPLOYEES_KEY, employees_json)
                self._write(session, SCHEDULES_KEY, schedules_json)
                session.commit()
        except (SQLAlchemyError, TypeError, ValueError):
            logger.exception("Failed saving schedule state; previous state left in place")
            return False
        return True

    def _load_half(self, session: Session, key: str, adapter: TypeAdapter, empty):
        try:
            raw = self._read(session, key)
        except SQLAlchemyError:
            logger.exception("Failed reading %s", key)
            return empty
        if not raw:
            return empty
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning("Stored %s is corrupt, starting empty: %s", key, e)
            return empty

    def load(self) -> Tuple[List[Employee], Dict[str, ScheduleRecord]]:
        with Session(self.engine) as session:
            employees = self._load_half(session, EMPLOYEES_KEY, _employee_list, [])
            schedules = self._load_half(session, SCHEDULES_KEY, _schedule_map, {})
        return employees, schedules

    # --- Remote sheet settings ---

    def save_sheet_config(self, config: SheetConfig) -> bool:
        try:
            with Session(self.engine) as session:
                self._write(session, SHEET_CONFIG_KEY, config.model_dump_json(by_alias=True))
                session.commit()
        except SQLAlchemyError:
            logger.exception("Failed saving sheet settings")
            return False
        return True

    def load_sheet_config(self, default_worksheet: str = "Schedule") -> SheetConfig:
        with Session(self.engine) as session:
            config = self._load_half(session, SHEET_CONFIG_KEY, TypeAdapter(SheetConfig), None)
        return config or SheetConfig(worksheet=default_worksheet)
