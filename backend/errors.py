class ScheduleError(Exception):
    """Base class for every error raised by the schedule engine."""


class ParseError(ScheduleError, ValueError):
    """A wall-clock time string does not look like ``H:MM AM``."""


class UnknownEmployee(ScheduleError, KeyError):
    def __init__(self, employee_id):
        super().__init__(employee_id)
        self.employee_id = employee_id

    def __str__(self):
        return f"Employee '{self.employee_id}' not found"


class UploadRejected(ScheduleError):
    """The uploaded file is not a spreadsheet we can read."""


class SheetSourceError(ScheduleError):
    """One remote sheet source failed; the next one may still succeed."""


class SheetSyncError(ScheduleError):
    def __init__(self, failures):
        self.failures = list(failures)
        detail = "; ".join(self.failures) or "no sources configured"
        super().__init__(f"Failed to fetch sheet ({detail})")
