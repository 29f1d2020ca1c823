# gym_scheduler/schemas.py
from datetime import datetime
from math import ceil
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from gym_scheduler.models import UserRole
from gym_scheduler.scheduling import isoformat_utc


class CamelModel(BaseModel):
    """Fields are snake_case in Python and camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Requests

class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)

class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)

class UserUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None

class PasswordChange(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)

class ScheduleCreate(CamelModel):
    trainer_id: int
    start_time: datetime
    max_trainees: Optional[int] = Field(default=None, ge=1)

class ScheduleUpdate(CamelModel):
    start_time: Optional[datetime] = None
    max_trainees: Optional[int] = Field(default=None, ge=1)
    trainer_id: Optional[int] = None

class BookingCreate(CamelModel):
    schedule_id: int


# Responses

# Naive UTC in the database, Z-suffixed on the wire so clients can echo values back
UtcDatetime = Annotated[datetime, PlainSerializer(isoformat_utc, return_type=str, when_used="json")]


class UserSummary(CamelModel):
    id: int
    name: str
    email: str

class UserOut(CamelModel):
    id: int
    email: str
    name: str
    role: UserRole
    created_at: UtcDatetime
    updated_at: UtcDatetime

class ScheduleOut(CamelModel):
    id: int
    trainer_id: int
    start_time: UtcDatetime
    end_time: UtcDatetime
    max_trainees: int
    created_at: UtcDatetime
    updated_at: UtcDatetime
    trainer: UserSummary

class ScheduleBookingOut(CamelModel):
    id: int
    trainee: UserSummary
    created_at: UtcDatetime

class ScheduleDetailOut(ScheduleOut):
    booked_count: int
    available_spots: int
    bookings: List[ScheduleBookingOut] = []

class BookingOut(CamelModel):
    id: int
    trainee_id: int
    class_schedule_id: int
    created_at: UtcDatetime
    class_schedule: ScheduleOut
    trainee: UserSummary

class Pagination(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        total_pages = ceil(total / limit) if total else 0
        return cls(
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


def dump(schema, obj) -> Dict[str, Any]:
    """Serialise an ORM object through ``schema`` into camelCase JSON-ready data."""
    return schema.model_validate(obj).model_dump(by_alias=True, mode="json")


def dump_many(schema, objs) -> List[Dict[str, Any]]:
    return [dump(schema, obj) for obj in objs]
