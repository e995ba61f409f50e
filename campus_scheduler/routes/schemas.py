"""Response models shared by the routers.

Fields are declared in snake_case and serialised in camelCase, matching the
JSON the web client already consumes (``startTime``, ``isBooked`` ...).
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    class Config:
        from_attributes = True
        populate_by_name = True
        alias_generator = to_camel


class UserSummaryResponse(ApiModel):
    id: int
    username: str
    full_name: str
    email: str
    department: str | None = None


class UserResponse(UserSummaryResponse):
    role: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AvailabilityResponse(ApiModel):
    id: int
    professor: UserSummaryResponse
    date: date
    start_time: str
    end_time: str
    start_date_time: datetime
    end_date_time: datetime
    duration: int
    is_booked: bool
    booked_by: UserSummaryResponse | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AppointmentResponse(ApiModel):
    id: int
    student: UserSummaryResponse
    professor: UserSummaryResponse
    availability_id: int | None = None
    date: date
    start_time: str
    end_time: str
    appointment_date_time: datetime
    status: str
    notes: str | None = None
    cancelled_by: UserSummaryResponse | None = None
    cancelled_at: datetime | None = None
    cancel_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


def envelope(data: Any = None, message: str | None = None) -> dict:
    body: dict = {'success': True}
    if message:
        body['message'] = message
    if data is not None:
        body['data'] = data
    return body
