from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.events import MAX_CAPACITY


# ---------- Event ----------
class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    date_time: datetime
    location: str = Field(min_length=1, max_length=255)
    capacity: int = Field(ge=1, le=MAX_CAPACITY)

    @field_validator("title", "location", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("date_time")
    @classmethod
    def must_be_future(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        if v <= datetime.now(timezone.utc):
            raise ValueError("Event date must be in the future")
        return v


class EventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    date_time: datetime
    location: str
    capacity: int


class EventSummaryOut(EventOut):
    registration_count: int


class RegisteredUserOut(BaseModel):
    id: int
    name: str
    email: str
    registered_at: datetime


class EventDetailOut(EventOut):
    registrations: list[RegisteredUserOut]


class EventStatsOut(BaseModel):
    event_id: int
    capacity: int
    total_registrations: int
    remaining_capacity: int
    percentage_used: float
