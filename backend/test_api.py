from io import BytesIO

import openpyxl

from conftest import StaticSource
from errors import SheetSourceError

CSV_UPLOAD = (
    b"Employee,Site,Day,StartTime,EndTime\n"
    b"Jane Doe,Site 1,Friday,9:00 AM,5:00 PM\n"
    b"Jane Doe,Site 2,Monday,3:00 PM,12:00 AM\n"
    b"Broken Row,Site 3,Monday,9:00 AM,\n"
)


# --- Login ---

def test_login(client):
    resp = client.post("/login/", json={"username": "test", "password": "test", "role": "employee"})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "user": {"id": "test", "name": "Barret", "role": "employee"}}


def test_login_rejects_wrong_password_or_role(client):
    assert client.post("/login/", json={"username": "test", "password": "nope", "role": "employee"}).status_code == 401
    assert client.post("/login/", json={"username": "test", "password": "test", "role": "admin"}).status_code == 401
    assert client.post("/login/", json={"username": "admin", "password": "admin", "role": "admin"}).status_code == 200


def test_employees_hide_passwords(client):
    employees = client.get("/employees/").json()
    assert [e["id"] for e in employees] == ["test", "cloud", "admin"]
    assert all("password" not in e for e in employees)


# --- Schedules ---

def test_schedule_listing(client):
    listing = client.get("/schedules/").json()
    assert listing == [
        {"employee_id": "test", "employee_name": "Barret", "shift_count": 3, "sites": ["Site 1"]},
        {"employee_id": "cloud", "employee_name": "Cloud", "shift_count": 2, "sites": ["Site 2"]},
    ]


def test_read_schedule_sorted_by_weekday(client, ctx):
    ctx.pipeline.add_shift("cloud", ctx.store.get("cloud").shifts[0].model_copy(update={"day": "Monday"}))

    body = client.get("/schedules/cloud").json()
    assert body["employeeId"] == "cloud"
    assert [s["day"] for s in body["shifts"]] == ["Monday", "Tuesday", "Friday"]
    assert body["shifts"][0]["startTime"] == "9:00 AM"


def test_read_schedule_missing(client):
    assert client.get("/schedules/admin").status_code == 404


def test_timesheet(client):
    body = client.get("/schedules/test/timesheet").json()
    assert body["employee_name"] == "Barret"
    assert [group["site"] for group in body["sites"]] == ["Site 1"]
    first = body["sites"][0]["shifts"][0]
    assert first == {"day": "Monday", "start_time": "3:00 PM", "end_time": "12:00 AM", "hours": 9.0, "label": "9 Hours"}
    assert body["total_label"] == "27 Hours"


# --- Manual editing ---

def test_add_edit_delete_shift(client, ctx):
    shift = {"day": "Saturday", "site": "Site 3", "startTime": "8:00 AM", "endTime": "12:00 PM"}

    resp = client.post("/schedules/admin/shifts/", json=shift)
    assert resp.status_code == 200
    assert resp.json()["employeeName"] == "Admin"
    assert len(resp.json()["shifts"]) == 1

    resp = client.put("/schedules/admin/shifts/0", json=dict(shift, site="Site 4"))
    assert resp.json()["shifts"][0]["site"] == "Site 4"

    resp = client.delete("/schedules/admin/shifts/0")
    assert resp.json() == {"ok": True, "shift_count": 0}

    # Persisted through every edit
    _, schedules = ctx.persistence.load()
    assert schedules["admin"].shifts == []


def test_stale_index_is_a_noop(client):
    resp = client.delete("/schedules/test/shifts/10")
    assert resp.status_code == 200
    assert resp.json()["shift_count"] == 3


def test_edit_unknown_employee(client):
    shift = {"day": "Monday", "site": "A", "startTime": "9:00 AM", "endTime": "5:00 PM"}
    assert client.post("/schedules/ghost/shifts/", json=shift).status_code == 404
    assert client.delete("/schedules/ghost/shifts/0").status_code == 404


def test_blank_shift_fields_rejected(client):
    shift = {"day": "Monday", "site": "   ", "startTime": "9:00 AM", "endTime": "5:00 PM"}
    assert client.post("/schedules/test/shifts/", json=shift).status_code == 422


# --- Upload ---

def test_upload_replaces_schedules(client, ctx):
    files = {"file": ("week.csv", CSV_UPLOAD, "text/csv")}
    resp = client.post("/import/upload/", files=files)

    assert resp.status_code == 200
    data = resp.json()
    assert data["imported_count"] == 2
    assert data["schedule_count"] == 1
    assert data["skipped_rows"] == [3]

    listing = client.get("/schedules/").json()
    assert [row["employee_id"] for row in listing] == ["jane_doe"]
    # New employee can log in with the default password; seed logins survive
    assert client.post("/login/", json={"username": "jane_doe", "password": "password123"}).status_code == 200
    assert ctx.employees.get("test").password == "test"


def test_upload_xlsx(client):
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.append(["Employee", "Site", "Day", "StartTime", "EndTime"])
    ws.append(["Sam Lee", "Dock", "Sunday", "10:00 PM", "6:00 AM"])
    buffer = BytesIO()
    wb.save(buffer)

    files = {"file": ("week.xlsx", buffer.getvalue(), "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")}
    assert client.post("/import/upload/", files=files).json()["imported_count"] == 1
    assert client.get("/schedules/sam_lee/timesheet").json()["total_label"] == "8 Hours"


def test_upload_rejects_other_files(client):
    files = {"file": ("notes.txt", b"hello", "text/plain")}
    resp = client.post("/import/upload/", files=files)
    assert resp.status_code == 415
    # Nothing was replaced
    assert len(client.get("/schedules/").json()) == 2


# --- Remote sync ---

def test_sheet_config(client):
    assert client.get("/sheet-config/").json() == {"sheetId": "", "worksheet": "Schedule"}
    resp = client.put("/sheet-config/", json={"sheetId": " abc123 ", "worksheet": "Week 1"})
    assert resp.json() == {"sheetId": "abc123", "worksheet": "Week 1"}
    assert client.get("/sheet-config/").json() == {"sheetId": "abc123", "worksheet": "Week 1"}


def test_sync_requires_sheet(client):
    assert client.post("/sync/").status_code == 400


def test_sync_with_saved_config(client, ctx):
    source = StaticSource(rows=[
        {"Employee": "Amy Wu", "Site": "Lot 1", "Day": "Monday", "StartTime": "6:00 AM", "EndTime": "2:00 PM"},
    ])
    ctx.pipeline.sources = [StaticSource(error=SheetSourceError("HTTP 404"), name="json"), source]
    client.put("/sheet-config/", json={"sheetId": "abc123", "worksheet": "Week 1"})

    resp = client.post("/sync/")

    assert resp.status_code == 200
    assert resp.json()["message"] == "Sync complete"
    assert source.calls == [("abc123", "Week 1")]
    assert [row["employee_id"] for row in client.get("/schedules/").json()] == ["amy_wu"]


def test_sync_body_overrides_config(client, ctx):
    source = StaticSource(rows=[])
    ctx.pipeline.sources = [source]
    client.post("/sync/", json={"sheetId": "other", "worksheet": "Tab"})
    assert source.calls == [("other", "Tab")]


def test_sync_failure(client, ctx):
    ctx.pipeline.sources = [
        StaticSource(error=SheetSourceError("HTTP 500"), name="json"),
        StaticSource(error=SheetSourceError("HTTP 500"), name="csv"),
    ]
    resp = client.post("/sync/", json={"sheetId": "abc", "worksheet": "Schedule"})

    assert resp.status_code == 502
    assert resp.json()["detail"]["failures"] == ["json: HTTP 500", "csv: HTTP 500"]
    assert len(client.get("/schedules/").json()) == 2


# --- Export ---

def test_export_excel(client):
    resp = client.get("/export/excel/")
    assert resp.status_code == 200
    assert "spreadsheetml" in resp.headers["content-type"]
    assert "schedule_template.xlsx" in resp.headers["content-disposition"]

    wb = openpyxl.load_workbook(BytesIO(resp.content))
    rows = list(wb.active.iter_rows(values_only=True))
    assert rows[0] == ("Employee", "Site", "Day", "StartTime", "EndTime")
    assert rows[1] == ("Barret", "Site 1", "Monday", "3:00 PM", "12:00 AM")
    assert len(rows) == 6
