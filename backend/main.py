import logging
from contextlib import asynccontextmanager
from io import BytesIO
from typing import List, Optional

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.concurrency import run_in_threadpool

from config import get_settings
from context import AppContext, build_context
from database import create_db_and_tables, engine
from errors import SheetSyncError, UnknownEmployee, UploadRejected
from models import ScheduleRecord, SheetConfig, Shift
from spreadsheet import XLSX_MIME, build_export_workbook, read_upload_rows
from store import group_by_site, sort_by_weekday
from timeparse import format_duration, shift_hours, total_hours

settings = get_settings()
logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    app.state.context = build_context(engine, settings)
    yield


app = FastAPI(title="Shift Schedule", lifespan=lifespan)

# CORS Middleware (allow all for local dev unless CORS_ORIGINS is set)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_context(request: Request) -> AppContext:
    return request.app.state.context


# --- Authentication ---
class LoginRequest(BaseModel):
    username: str
    password: str
    role: str = "employee"


class EmployeeRead(BaseModel):
    id: str
    name: str
    role: str


@app.post("/login/")
def login(request: LoginRequest, ctx: AppContext = Depends(get_context)):
    # Passwords are opaque strings compared as-is
    user = ctx.employees.authenticate(request.username.strip(), request.password.strip(), request.role)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials. Please try again.")
    return {"success": True, "user": EmployeeRead(**user.model_dump())}


# --- Employees ---
@app.get("/employees/", response_model=List[EmployeeRead])
def read_employees(ctx: AppContext = Depends(get_context)):
    return [EmployeeRead(**e.model_dump()) for e in ctx.employees.list_all()]


# --- Schedules ---
class ScheduleSummary(BaseModel):
    employee_id: str
    employee_name: str
    shift_count: int
    sites: List[str]


@app.get("/schedules/", response_model=List[ScheduleSummary])
def read_schedules(ctx: AppContext = Depends(get_context)):
    return [
        ScheduleSummary(
            employee_id=record.employee_id,
            employee_name=record.employee_name,
            shift_count=len(record.shifts),
            sites=list(group_by_site(record.shifts)),
        )
        for record in ctx.store.list_all()
    ]


def _get_record(ctx: AppContext, employee_id: str) -> ScheduleRecord:
    record = ctx.store.get(employee_id)
    if record is None:
        raise HTTPException(status_code=404, detail="No schedule available. Please contact your supervisor.")
    return record


@app.get("/schedules/{employee_id}", response_model=ScheduleRecord)
def read_schedule(employee_id: str, ctx: AppContext = Depends(get_context)):
    record = _get_record(ctx, employee_id)
    record.shifts = sort_by_weekday(record.shifts)
    return record


@app.get("/schedules/{employee_id}/timesheet")
def read_timesheet(employee_id: str, ctx: AppContext = Depends(get_context)):
    record = _get_record(ctx, employee_id)
    sites = []
    for site, shifts in group_by_site(record.shifts).items():
        entries = []
        for shift in shifts:
            hours = shift_hours(shift)
            entries.append({
                "day": shift.day,
                "start_time": shift.start_time,
                "end_time": shift.end_time,
                "hours": hours,
                "label": format_duration(hours),
            })
        sites.append({"site": site, "shifts": entries})

    total = total_hours(record.shifts)
    return {
        "employee_id": record.employee_id,
        "employee_name": record.employee_name,
        "sites": sites,
        "total_hours": total,
        "total_label": format_duration(total),
    }


# --- Manual shift editing ---
class ShiftCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    day: str = Field(min_length=1)
    site: str = Field(min_length=1)
    start_time: str = Field(min_length=1, alias="startTime")
    end_time: str = Field(min_length=1, alias="endTime")

    def to_shift(self) -> Shift:
        return Shift(day=self.day, site=self.site, start_time=self.start_time, end_time=self.end_time)


@app.post("/schedules/{employee_id}/shifts/", response_model=ScheduleRecord)
def add_shift(employee_id: str, shift_data: ShiftCreate, ctx: AppContext = Depends(get_context)):
    try:
        return ctx.pipeline.add_shift(employee_id, shift_data.to_shift())
    except UnknownEmployee as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.put("/schedules/{employee_id}/shifts/{index}", response_model=ScheduleRecord)
def update_shift(employee_id: str, index: int, shift_data: ShiftCreate, ctx: AppContext = Depends(get_context)):
    try:
        return ctx.pipeline.edit_shift(employee_id, index, shift_data.to_shift())
    except UnknownEmployee as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.delete("/schedules/{employee_id}/shifts/{index}")
def delete_shift(employee_id: str, index: int, ctx: AppContext = Depends(get_context)):
    try:
        record = ctx.pipeline.delete_shift(employee_id, index)
    except UnknownEmployee as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"ok": True, "shift_count": len(record.shifts) if record else 0}


# --- Spreadsheet Upload ---
@app.post("/import/upload/")
async def import_upload(file: UploadFile = File(...), ctx: AppContext = Depends(get_context)):
    contents = await file.read()
    try:
        rows = read_upload_rows(file.filename, contents, file.content_type)
    except UploadRejected as e:
        logger.warning("Rejected upload %s: %s", file.filename, e)
        raise HTTPException(status_code=415, detail=str(e))

    report = await run_in_threadpool(ctx.pipeline.replace_all, rows)
    return {
        "message": f"Successfully processed {report.schedule_count} employee schedules!",
        **report.to_dict(),
    }


# --- Remote Sheet Sync ---
class SheetConfigUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    sheet_id: str = Field(alias="sheetId")
    worksheet: str


class SyncRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    sheet_id: Optional[str] = Field(default=None, alias="sheetId")
    worksheet: Optional[str] = None


@app.get("/sheet-config/", response_model=SheetConfig)
def read_sheet_config(ctx: AppContext = Depends(get_context)):
    return ctx.persistence.load_sheet_config(ctx.settings.default_worksheet)


@app.put("/sheet-config/", response_model=SheetConfig)
def update_sheet_config(data: SheetConfigUpdate, ctx: AppContext = Depends(get_context)):
    config = SheetConfig(sheet_id=data.sheet_id, worksheet=data.worksheet)
    if not ctx.persistence.save_sheet_config(config):
        raise HTTPException(status_code=500, detail="Could not save Google Sheets settings")
    return config


@app.post("/sync/")
def sync_from_sheet(data: Optional[SyncRequest] = None, ctx: AppContext = Depends(get_context)):
    saved = ctx.persistence.load_sheet_config(ctx.settings.default_worksheet)
    sheet_id = (data.sheet_id if data and data.sheet_id else saved.sheet_id)
    worksheet = (data.worksheet if data and data.worksheet else saved.worksheet)
    if not sheet_id or not worksheet:
        raise HTTPException(
            status_code=400,
            detail="Please enter Sheet ID and Worksheet Name, then save the settings.",
        )

    try:
        report = ctx.pipeline.sync_from_sheet(sheet_id, worksheet)
    except SheetSyncError as e:
        logger.error("Sync of %s/%s failed: %s", sheet_id, worksheet, e)
        raise HTTPException(
            status_code=502,
            detail={
                "message": "Failed to sync from Google Sheets. Check that the sheet is published and the name is correct.",
                "failures": e.failures,
            },
        )
    return {"message": "Sync complete", **report.to_dict()}


# --- Excel Export ---
@app.get("/export/excel/")
def export_excel(ctx: AppContext = Depends(get_context)):
    buffer = BytesIO(build_export_workbook(ctx.store.list_all()))
    headers = {
        'Content-Disposition': 'attachment; filename="schedule_template.xlsx"'
    }
    return StreamingResponse(buffer, headers=headers, media_type=XLSX_MIME)
