from typing import List, Literal
from datetime import datetime, timezone
from pydantic import AliasChoices, BaseModel, ConfigDict, Field as PydanticField
from sqlmodel import Field, SQLModel

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

Role = Literal["employee", "admin"]


class Employee(BaseModel):
    id: str
    name: str
    password: str
    role: Role = "employee"


class Shift(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day: str
    site: str
    start_time: str = PydanticField(alias="startTime")
    end_time: str = PydanticField(alias="endTime")


class ScheduleRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    employee_id: str = PydanticField(alias="employeeId")
    employee_name: str = PydanticField(alias="employeeName")
    # Browser-era snapshots stored the list under "schedule"
    shifts: List[Shift] = PydanticField(
        default_factory=list,
        validation_alias=AliasChoices("shifts", "schedule"),
        serialization_alias="shifts",
    )


class SheetConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sheet_id: str = PydanticField(default="", alias="sheetId")
    worksheet: str = "Schedule"


class StorageEntry(SQLModel, table=True):
    key: str = Field(primary_key=True, description="Fixed storage key, e.g. 'tw_employees'")
    value: str = Field(description="JSON document")
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
