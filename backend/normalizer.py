import re
from datetime import datetime, time
from typing import Mapping, Optional, Tuple

from models import Employee, Shift
from timeparse import format_time

REQUIRED_COLUMNS = ("Employee", "Site", "Day", "StartTime", "EndTime")
DEFAULT_PASSWORD = "password123"

_WHITESPACE = re.compile(r"\s+")


def slugify(name: str) -> str:
    """'Jane  Doe' -> 'jane_doe'"""
    return _WHITESPACE.sub("_", name.lower())


def cell_text(value) -> str:
    if value is None:
        return ""
    # openpyxl hands back time-formatted cells as time/datetime objects
    if isinstance(value, (time, datetime)):
        return format_time(value.hour, value.minute)
    return str(value).strip()


def normalize_row(row: Mapping, default_password: str = DEFAULT_PASSWORD) -> Optional[Tuple[Employee, Shift]]:
    """Turn one header-keyed row into an (Employee, Shift) pair.

    Returns None when any of the five columns is missing or blank; callers
    skip such rows without raising.
    """
    values = {column: cell_text(row.get(column)) for column in REQUIRED_COLUMNS}
    if not all(values.values()):
        return None

    name = values["Employee"]
    employee = Employee(id=slugify(name), name=name, password=default_password, role="employee")
    shift = Shift(
        day=values["Day"],
        site=values["Site"],
        start_time=values["StartTime"],
        end_time=values["EndTime"],
    )
    return employee, shift
