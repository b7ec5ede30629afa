from __future__ import annotations

import json
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Optional

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel

from .seats import ReservedSeats


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _naive_ts(**kwargs: Any) -> Any:
    # Timestamps are naive UTC; pin the column type so sqlmodel never maps them to a tz-aware type.
    return Field(sa_type=DateTime(timezone=False), **kwargs)


def _decode_json(raw: Optional[str]) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


class SeatRequestStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    denied = "denied"


class EventStatus(str, Enum):
    draft = "draft"
    published = "published"
    archived = "archived"


class EventVisibility(str, Enum):
    public = "public"
    private = "private"


class Event(SQLModel, table=True):
    __tablename__ = "events"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    artist_name: Optional[str] = None
    description: Optional[str] = Field(default=None, sa_column=Column(Text))
    start_datetime: Optional[datetime] = _naive_ts(default=None, index=True)
    end_datetime: Optional[datetime] = _naive_ts(default=None)
    venue_section: Optional[str] = None
    ticket_price: Optional[float] = None
    door_price: Optional[float] = None
    layout_id: Optional[int] = Field(default=None, index=True)

    status: str = EventStatus.published.value
    visibility: str = EventVisibility.public.value
    archived_at: Optional[datetime] = _naive_ts(default=None)

    # Legacy split columns; start_datetime supersedes them.
    event_date: Optional[date] = None
    event_time: Optional[time] = None

    created_at: datetime = _naive_ts(default_factory=_utc_now)

    def effective_start(self) -> Optional[datetime]:
        if self.start_datetime is not None:
            return self.start_datetime
        if self.event_date is not None and self.event_time is not None:
            return datetime.combine(self.event_date, self.event_time)
        return None


class Seating(SQLModel, table=True):
    __tablename__ = "seating"

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: Optional[int] = Field(default=None, index=True)
    section: str = Field(index=True)
    row_label: str
    seat_number: Optional[int] = None
    total_seats: int = 1
    seat_type: str = "general"
    is_active: bool = True

    # JSON list of reserved seat ids, e.g. ["Main-A-1", "Main-A-2"]
    selected_seats: Optional[str] = Field(default=None, sa_column=Column(Text))

    # Admin layout editor placement
    pos_x: Optional[float] = None
    pos_y: Optional[float] = None
    rotation: float = 0.0
    status: str = "available"

    def reserved(self) -> ReservedSeats:
        return ReservedSeats.from_json(self.selected_seats)

    def set_reserved(self, seats: Optional[ReservedSeats]) -> None:
        self.selected_seats = seats.to_json() if seats is not None else None


class SeatingLayout(SQLModel, table=True):
    """A named floor plan drawn in the layout editor; at most one is the default."""

    __tablename__ = "seating_layouts"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = Field(default=None, sa_column=Column(Text))
    is_default: bool = Field(default=False, index=True)
    layout_data: Optional[str] = Field(default=None, sa_column=Column(Text))
    stage_position: Optional[str] = Field(default=None, sa_column=Column(Text))
    stage_size: Optional[str] = Field(default=None, sa_column=Column(Text))
    canvas_settings: Optional[str] = Field(default=None, sa_column=Column(Text))

    created_at: datetime = _naive_ts(default_factory=_utc_now)
    updated_at: Optional[datetime] = _naive_ts(default=None)

    def decoded(self) -> dict[str, Any]:
        d = self.model_dump()
        for key in ("layout_data", "stage_position", "stage_size", "canvas_settings"):
            d[key] = _decode_json(getattr(self, key))
        return d


class SeatRequest(SQLModel, table=True):
    __tablename__ = "seat_requests"

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: Optional[int] = Field(default=None, index=True)
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    selected_seats: Optional[str] = Field(default=None, sa_column=Column(Text))
    total_seats: int = 0
    special_requests: Optional[str] = Field(default=None, sa_column=Column(Text))
    staff_notes: Optional[str] = Field(default=None, sa_column=Column(Text))
    status: SeatRequestStatus = Field(default=SeatRequestStatus.pending, index=True)

    created_at: datetime = _naive_ts(default_factory=_utc_now)
    updated_at: Optional[datetime] = _naive_ts(default=None)

    def seats(self) -> ReservedSeats:
        return ReservedSeats.from_json(self.selected_seats)


class Suggestion(SQLModel, table=True):
    __tablename__ = "suggestions"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    # JSON object: name/email/phone/music_links/social_media/genre
    contact: Optional[str] = Field(default=None, sa_column=Column(Text))
    notes: Optional[str] = Field(default=None, sa_column=Column(Text))
    submission_type: str = "general"
    status: str = "pending"

    created_at: datetime = _naive_ts(default_factory=_utc_now)
    updated_at: Optional[datetime] = _naive_ts(default=None)

    def contact_dict(self) -> Optional[dict[str, Any]]:
        data = _decode_json(self.contact)
        return data if isinstance(data, dict) else None


class BusinessSetting(SQLModel, table=True):
    __tablename__ = "business_settings"

    id: Optional[int] = Field(default=None, primary_key=True)
    setting_key: str = Field(max_length=100, unique=True, index=True)
    setting_value: Optional[str] = Field(default=None, sa_column=Column(Text))


class StageSetting(SQLModel, table=True):
    __tablename__ = "stage_settings"

    id: Optional[int] = Field(default=None, primary_key=True)
    key_name: str = Field(max_length=100, unique=True, index=True)
    value: Optional[str] = Field(default=None, sa_column=Column(Text))


class LayoutHistory(SQLModel, table=True):
    __tablename__ = "layout_history"

    id: Optional[int] = Field(default=None, primary_key=True)
    snapshot: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = _naive_ts(default_factory=_utc_now, index=True)

    def snapshot_data(self) -> Any:
        try:
            return json.loads(self.snapshot)
        except ValueError:
            return self.snapshot


class Admin(SQLModel, table=True):
    __tablename__ = "admins"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(max_length=100, unique=True, index=True)
    email: Optional[str] = Field(default=None, max_length=255, unique=True)
    display_name: Optional[str] = Field(default=None, max_length=255)
    password_hash: str
    created_at: datetime = _naive_ts(default_factory=_utc_now)
    updated_at: Optional[datetime] = _naive_ts(default=None)
