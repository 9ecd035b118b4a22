"""
Remote sheet sync sources.

Each source turns (sheet id, worksheet name) into header-keyed rows
(``Employee, Site, Day, StartTime, EndTime``) or raises SheetSourceError.
``fetch_sheet_rows`` tries them in order and returns the first success:
the OpenSheet JSON mirror first, then Google's published CSV export.
"""
import csv
import io
import logging
from typing import Dict, List, Optional, Sequence
from urllib.parse import quote

import requests

from config import Settings
from errors import SheetSourceError, SheetSyncError

logger = logging.getLogger(__name__)

NO_CACHE = {"Cache-Control": "no-cache", "Pragma": "no-cache"}


def encode_component(value: str) -> str:
    # Same reserved set as JavaScript's encodeURIComponent
    return quote(value, safe="!*'()")


def parse_csv(text: str) -> List[Dict[str, str]]:
    """Parse CSV text whose first non-blank line is the header row.

    Quoted fields may hold commas; a doubled quote inside quotes is a literal
    quote. Blank lines are ignored, headers and values are trimmed and short
    rows are padded with empty strings.
    """
    reader = csv.reader(io.StringIO(text, newline=""))
    headers: Optional[List[str]] = None
    rows = []
    for cells in reader:
        if not "".join(cells).strip():
            continue
        if headers is None:
            headers = [cell.strip() for cell in cells]
            continue
        rows.append({
            header: (cells[index].strip() if index < len(cells) else "")
            for index, header in enumerate(headers)
        })
    return rows


class SheetSource:
    name = "sheet"

    def __init__(self, url_template: str, timeout: Optional[float] = None):
        self.url_template = url_template
        self.timeout = timeout

    def url_for(self, sheet_id: str, worksheet: str) -> str:
        return self.url_template.format(
            sheet_id=encode_component(sheet_id),
            worksheet=encode_component(worksheet),
        )

    def _get(self, url: str) -> requests.Response:
        try:
            response = requests.get(url, headers=NO_CACHE, timeout=self.timeout)
        except requests.RequestException as e:
            raise SheetSourceError(f"request failed: {e}") from e
        if not response.ok:
            raise SheetSourceError(f"HTTP {response.status_code}")
        return response

    def fetch_rows(self, sheet_id: str, worksheet: str) -> List[Dict]:
        raise NotImplementedError


class OpenSheetJsonSource(SheetSource):
    name = "opensheet-json"

    def fetch_rows(self, sheet_id, worksheet):
        response = self._get(self.url_for(sheet_id, worksheet))
        try:
            data = response.json()
        except ValueError as e:
            raise SheetSourceError("response is not JSON") from e
        if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
            raise SheetSourceError("expected a JSON array of row objects")
        return data


class PublishedCsvSource(SheetSource):
    name = "published-csv"

    def fetch_rows(self, sheet_id, worksheet):
        response = self._get(self.url_for(sheet_id, worksheet))
        # A header-only sheet is a valid empty schedule, an empty body is not
        if not response.text.strip():
            raise SheetSourceError("CSV has no header row")
        return parse_csv(response.text)


def build_sources(settings: Settings) -> List[SheetSource]:
    return [
        OpenSheetJsonSource(settings.sheet_json_url, settings.sheet_fetch_timeout),
        PublishedCsvSource(settings.sheet_csv_url, settings.sheet_fetch_timeout),
    ]


def fetch_sheet_rows(sheet_id: str, worksheet: str, sources: Sequence[SheetSource]) -> List[Dict]:
    failures = []
    for source in sources:
        try:
            rows = source.fetch_rows(sheet_id, worksheet)
        except SheetSourceError as e:
            logger.warning("Sheet source %s failed for %s/%s: %s", source.name, sheet_id, worksheet, e)
            failures.append(f"{source.name}: {e}")
            continue
        logger.info("Fetched %d rows from %s", len(rows), source.name)
        return rows
    raise SheetSyncError(failures)
