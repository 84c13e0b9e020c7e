from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from student_planner.planner_calendar.grid import format_date_key, now_local, parse_date_key

# Categories offered for user-created holidays
HOLIDAY_TYPES = ("Festival", "School Event", "Personal", "Religious", "National", "Other")
DEFAULT_HOLIDAY_TYPE = "Festival"
OFFICIAL_HOLIDAY_TYPE = "Official"


def new_id() -> str:
    return str(uuid.uuid4())


def _check_date_key(v: str) -> str:
    # normalizes e.g. "2025-3-1" -> "2025-03-01"
    return format_date_key(parse_date_key(v))


class Task(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(default_factory=new_id)
    title: str
    date: str                               # YYYY-MM-DD
    deadline: Optional[str] = None          # YYYY-MM-DD, not ordered against date
    description: Optional[str] = None
    completed: bool = False
    created_at: str = Field(
        default_factory=lambda: now_local().isoformat(timespec="seconds"),
        alias="createdAt",
    )

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title is required")
        return v

    @field_validator("date")
    @classmethod
    def _valid_date(cls, v: str) -> str:
        return _check_date_key(v)

    @field_validator("deadline", mode="before")
    @classmethod
    def _valid_deadline(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return _check_date_key(v)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


class Holiday(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    name: str
    date: str                               # YYYY-MM-DD
    type: str = OFFICIAL_HOLIDAY_TYPE
    description: str = ""
    is_official: bool = Field(default=False, alias="isOfficial")

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v

    @field_validator("date")
    @classmethod
    def _valid_date(cls, v: str) -> str:
        return _check_date_key(v)

    @field_validator("description", mode="before")
    @classmethod
    def _default_description(cls, v):
        return v or ""

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


class DashboardStats(BaseModel):
    total_tasks: int
    completed_tasks: int
    todays_tasks: int
    overdue_tasks: int
    due_soon_tasks: int
    upcoming_holidays: int
    official_holidays: int
    custom_holidays: int
