"""
In-memory source of truth for employees and their weekly shifts.

``ScheduleStore`` maps employee id -> ScheduleRecord and only changes through
the methods below; callers get copies back, never the live records. Every
method holds the store lock, so a read never sees a half-applied mutation.
``EmployeeTable`` is the login table and is kept separately because an
employee can exist without any schedule.
"""
import threading
from typing import Dict, Iterable, List, Optional

from models import WEEKDAYS, Employee, ScheduleRecord, Shift

_DAY_INDEX = {day: index for index, day in enumerate(WEEKDAYS)}


class ScheduleStore:
    def __init__(self):
        self._records: Dict[str, ScheduleRecord] = {}
        self._lock = threading.RLock()

    def __len__(self):
        with self._lock:
            return len(self._records)

    def __contains__(self, employee_id):
        with self._lock:
            return employee_id in self._records

    def get(self, employee_id: str) -> Optional[ScheduleRecord]:
        with self._lock:
            record = self._records.get(employee_id)
            return record.model_copy(deep=True) if record else None

    def upsert_employee(self, employee_id: str, employee_name: str) -> ScheduleRecord:
        """Create an empty record if needed. An existing record keeps its first-seen name."""
        with self._lock:
            record = self._records.get(employee_id)
            if record is None:
                record = ScheduleRecord(employee_id=employee_id, employee_name=employee_name)
                self._records[employee_id] = record
            return record.model_copy(deep=True)

    def upsert_shift(self, employee_id: str, shift: Shift) -> None:
        with self._lock:
            record = self._records.get(employee_id)
            if record is None:
                raise KeyError(employee_id)
            record.shifts.append(shift.model_copy())

    def replace_shift(self, employee_id: str, index: int, shift: Shift) -> bool:
        with self._lock:
            record = self._records.get(employee_id)
            if record is None or not 0 <= index < len(record.shifts):
                return False
            record.shifts[index] = shift.model_copy()
            return True

    def delete_shift(self, employee_id: str, index: int) -> bool:
        with self._lock:
            record = self._records.get(employee_id)
            if record is None or not 0 <= index < len(record.shifts):
                return False
            del record.shifts[index]
            return True

    def batch(self):
        """Hold the lock across several calls so readers see all of them or none."""
        return self._lock

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def list_all(self) -> List[ScheduleRecord]:
        with self._lock:
            return [record.model_copy(deep=True) for record in self._records.values()]

    def snapshot(self) -> Dict[str, dict]:
        with self._lock:
            return {key: record.model_dump(by_alias=True) for key, record in self._records.items()}

    def restore(self, records: Dict[str, ScheduleRecord]) -> None:
        copies = {key: record.model_copy(deep=True) for key, record in records.items()}
        with self._lock:
            self._records = copies


def group_by_site(shifts: Iterable[Shift]) -> Dict[str, List[Shift]]:
    grouped: Dict[str, List[Shift]] = {}
    for shift in shifts:
        grouped.setdefault(shift.site, []).append(shift)
    return grouped


def sort_by_weekday(shifts: Iterable[Shift]) -> List[Shift]:
    # Unknown day names sort ahead of Monday; sorted() is stable
    return sorted(shifts, key=lambda shift: _DAY_INDEX.get(shift.day, -1))


class EmployeeTable:
    def __init__(self, employees: Iterable[Employee] = ()):
        self._employees: Dict[str, Employee] = {}
        self._lock = threading.RLock()
        self.load(employees)

    def __len__(self):
        with self._lock:
            return len(self._employees)

    def __contains__(self, employee_id):
        with self._lock:
            return employee_id in self._employees

    def get(self, employee_id: str) -> Optional[Employee]:
        with self._lock:
            employee = self._employees.get(employee_id)
            return employee.model_copy() if employee else None

    def ensure(self, employee: Employee) -> Employee:
        """Insert ``employee`` unless its id is taken; never overwrite password or role."""
        with self._lock:
            existing = self._employees.setdefault(employee.id, employee.model_copy())
            return existing.model_copy()

    def load(self, employees: Iterable[Employee]) -> None:
        copies = {employee.id: employee.model_copy() for employee in employees}
        with self._lock:
            self._employees = copies

    def list_all(self) -> List[Employee]:
        with self._lock:
            return [employee.model_copy() for employee in self._employees.values()]

    def is_empty(self) -> bool:
        with self._lock:
            return not self._employees

    def authenticate(self, username: str, password: str, role: str) -> Optional[Employee]:
        with self._lock:
            employee = self._employees.get(username)
            if employee and employee.password == password and employee.role == role:
                return employee.model_copy()
        return None
