"""
Entry points that change the schedule.

Bulk upload and remote sync are full-replace: the store is cleared and rebuilt
from the new rows, so employees absent from the new sheet lose their
schedule. Manual editing touches a single employee's shift list by index.
Every mutation holds one lock, and whole syncs are serialized on top of it,
so overlapping requests queue up instead of interleaving clear/rebuild.
"""
import logging
import threading
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Sequence

from errors import UnknownEmployee
from models import Shift
from normalizer import DEFAULT_PASSWORD, normalize_row
from sheet_sources import SheetSource, fetch_sheet_rows
from store import EmployeeTable, ScheduleStore

logger = logging.getLogger(__name__)


@dataclass
class IngestReport:
    imported_count: int = 0
    schedule_count: int = 0
    # 1-based data row numbers (header excluded) that were missing a column
    skipped_rows: List[int] = field(default_factory=list)

    def to_dict(self):
        return {
            "imported_count": self.imported_count,
            "schedule_count": self.schedule_count,
            "skipped_rows": list(self.skipped_rows),
        }


class IngestionPipeline:
    def __init__(
        self,
        employees: EmployeeTable,
        store: ScheduleStore,
        persistence=None,
        default_password: str = DEFAULT_PASSWORD,
        sources: Sequence[SheetSource] = (),
    ):
        self.employees = employees
        self.store = store
        self.persistence = persistence
        self.default_password = default_password
        self.sources = list(sources)
        self._lock = threading.RLock()
        self._sync_gate = threading.Lock()

    def save(self) -> bool:
        if self.persistence is None:
            return True
        with self._lock:
            return self.persistence.save(self.employees.list_all(), self.store_snapshot())

    def store_snapshot(self):
        return {record.employee_id: record for record in self.store.list_all()}

    # --- Full replace ---

    def replace_all(self, rows: Iterable[Mapping]) -> IngestReport:
        report = IngestReport()
        with self._lock:
            with self.store.batch():
                self.store.clear()
                for number, row in enumerate(rows, start=1):
                    normalized = normalize_row(row, self.default_password)
                    if normalized is None:
                        report.skipped_rows.append(number)
                        continue
                    employee, shift = normalized
                    self.employees.ensure(employee)
                    self.store.upsert_employee(employee.id, employee.name)
                    self.store.upsert_shift(employee.id, shift)
                    report.imported_count += 1
                report.schedule_count = len(self.store)
            self.save()

        if report.skipped_rows:
            logger.warning("Skipped %d incomplete rows: %s", len(report.skipped_rows), report.skipped_rows)
        logger.info(
            "Rebuilt schedule: %d shifts across %d employees",
            report.imported_count,
            report.schedule_count,
        )
        return report

    def sync_from_sheet(self, sheet_id: str, worksheet: str, sources: Optional[Sequence[SheetSource]] = None) -> IngestReport:
        """Fetch the remote sheet and rebuild the store from it.

        Raises SheetSyncError when every source fails; the store is untouched then.
        """
        with self._sync_gate:
            rows = fetch_sheet_rows(sheet_id, worksheet, self.sources if sources is None else sources)
            return self.replace_all(rows)

    # --- Incremental edits ---

    def _ensure_record(self, employee_id: str) -> bool:
        """Create an empty record for a known employee; True if one was created."""
        if employee_id in self.store:
            return False
        employee = self.employees.get(employee_id)
        if employee is None:
            raise UnknownEmployee(employee_id)
        self.store.upsert_employee(employee_id, employee.name)
        return True

    def add_shift(self, employee_id: str, shift: Shift):
        with self._lock:
            self._ensure_record(employee_id)
            self.store.upsert_shift(employee_id, shift)
            self.save()
            return self.store.get(employee_id)

    def edit_shift(self, employee_id: str, index: int, shift: Shift):
        with self._lock:
            created = self._ensure_record(employee_id)
            replaced = self.store.replace_shift(employee_id, index, shift)
            if not replaced:
                logger.info("Ignoring edit of missing shift %s[%d]", employee_id, index)
            if replaced or created:
                self.save()
            return self.store.get(employee_id)

    def delete_shift(self, employee_id: str, index: int):
        """Remove one shift; returns the updated record, or None if the employee has none."""
        with self._lock:
            if employee_id not in self.store and employee_id not in self.employees:
                raise UnknownEmployee(employee_id)
            if self.store.delete_shift(employee_id, index):
                self.save()
            else:
                logger.info("Ignoring delete of missing shift %s[%d]", employee_id, index)
            return self.store.get(employee_id)
