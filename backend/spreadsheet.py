"""Spreadsheet upload parsing and schedule workbook export."""
import logging
import zipfile
from io import BytesIO
from pathlib import PurePath
from typing import Dict, Iterable, List, Optional

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from errors import UploadRejected
from normalizer import REQUIRED_COLUMNS, cell_text
from sheet_sources import parse_csv

logger = logging.getLogger(__name__)

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
VALID_MIME_TYPES = {XLSX_MIME, "application/vnd.ms-excel", "text/csv"}
VALID_EXTENSIONS = {".xlsx", ".xls", ".csv"}

ZIP_SIGNATURE = b"PK\x03\x04"
OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0"


def is_valid_upload(filename: Optional[str], content_type: Optional[str] = None) -> bool:
    if content_type and content_type.split(";")[0].strip().lower() in VALID_MIME_TYPES:
        return True
    return PurePath(filename or "").suffix.lower() in VALID_EXTENSIONS


def _read_workbook(content: bytes) -> List[Dict]:
    try:
        wb = openpyxl.load_workbook(BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError) as e:
        raise UploadRejected(f"Could not open workbook: {e}") from e

    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        headers = [cell_text(h) for h in header]

        data = []
        for row in rows:
            if all(cell_text(value) == "" for value in row):
                continue
            data.append({h: value for h, value in zip(headers, row) if h})
        return data
    finally:
        wb.close()


def read_upload_rows(filename: Optional[str], content: bytes, content_type: Optional[str] = None) -> List[Dict]:
    """Return header-keyed rows from an uploaded workbook or CSV file."""
    if not is_valid_upload(filename, content_type):
        raise UploadRejected("Please select a valid Excel or CSV file.")

    if content.startswith(ZIP_SIGNATURE):
        return _read_workbook(content)
    if content.startswith(OLE2_SIGNATURE):
        raise UploadRejected("Legacy .xls workbooks are not supported; save the sheet as .xlsx or .csv.")

    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise UploadRejected("CSV file is not UTF-8 text") from e
    return parse_csv(text)


# --- Excel Export ---

def build_export_workbook(records: Iterable) -> bytes:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Schedule"
    ws.append(list(REQUIRED_COLUMNS))

    count = 0
    for record in records:
        for shift in record.shifts:
            ws.append([record.employee_name, shift.site, shift.day, shift.start_time, shift.end_time])
            count += 1

    # Auto-adjust column widths
    for col in ws.columns:
        max_length = max(len(str(cell.value or "")) for cell in col)
        ws.column_dimensions[col[0].column_letter].width = min(max_length + 2, 40)

    buffer = BytesIO()
    wb.save(buffer)
    logger.info("Exported %d shifts to workbook", count)
    return buffer.getvalue()
