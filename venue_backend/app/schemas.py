from __future__ import annotations

import json
from datetime import date, datetime, time
from typing import Annotated, Any, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from .models import EventStatus, EventVisibility, SeatRequestStatus
from .seats import validate_seat_identifier

# "SECTION-ROW-SEAT", normalised (surrounding whitespace dropped).
SeatIdentifier = Annotated[str, AfterValidator(validate_seat_identifier)]

SettingValue = Union[str, int, float, bool, None]


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and v.strip() == "":
        return None
    return v


def _seat_list_from_json(v: Any) -> Any:
    # Older clients post the seat list as a JSON-encoded string.
    if isinstance(v, str):
        try:
            return json.loads(v)
        except ValueError as e:
            raise ValueError("selected_seats must be a list or a JSON array string") from e
    return v


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class EventIn(BaseModel):
    title: str
    artist_name: Optional[str] = None
    description: Optional[str] = None
    start_datetime: Optional[datetime] = None
    end_datetime: Optional[datetime] = None
    venue_section: Optional[str] = None
    ticket_price: Optional[float] = Field(default=None, ge=0)
    door_price: Optional[float] = Field(default=None, ge=0)
    event_date: Optional[date] = None
    layout_id: Optional[int] = None
    event_time: Optional[time] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator(
        "start_datetime", "end_datetime", "venue_section", "event_date", "event_time", "ticket_price", "door_price",
        "layout_id",
        mode="before",
    )
    @classmethod
    def _blank(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @model_validator(mode="after")
    def _combine_legacy_date_time(self) -> "EventIn":
        if self.start_datetime is None and self.event_date is not None and self.event_time is not None:
            self.start_datetime = datetime.combine(self.event_date, self.event_time)
        return self


class EventRestore(BaseModel):
    status: EventStatus = EventStatus.draft
    visibility: EventVisibility = EventVisibility.public

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v: Any) -> Any:
        # Unknown values restore to a safe default rather than failing.
        return v if isinstance(v, str) and v in {s.value for s in EventStatus} else EventStatus.draft

    @field_validator("visibility", mode="before")
    @classmethod
    def _visibility(cls, v: Any) -> Any:
        return v if isinstance(v, str) and v in {s.value for s in EventVisibility} else EventVisibility.public


class SeatingIn(BaseModel):
    id: Optional[int] = None
    event_id: Optional[int] = None
    section: str
    row_label: str
    seat_number: Optional[int] = None
    total_seats: Optional[int] = Field(default=None, ge=0)
    seat_type: Optional[str] = None
    is_active: bool = True
    selected_seats: Optional[list[SeatIdentifier]] = None
    pos_x: Optional[float] = None
    pos_y: Optional[float] = None
    rotation: Optional[float] = None
    status: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("selected_seats", mode="before")
    @classmethod
    def _seats(cls, v: Any) -> Any:
        return _seat_list_from_json(v)


_SEATING_NOT_NULL = ("section", "row_label", "total_seats", "seat_type", "is_active", "rotation", "status")


class SeatingPatch(BaseModel):
    event_id: Optional[int] = None
    section: Optional[str] = None
    row_label: Optional[str] = None
    seat_number: Optional[int] = None
    total_seats: Optional[int] = Field(default=None, ge=0)
    seat_type: Optional[str] = None
    is_active: Optional[bool] = None
    selected_seats: Optional[list[SeatIdentifier]] = None
    pos_x: Optional[float] = None
    pos_y: Optional[float] = None
    rotation: Optional[float] = None
    status: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("selected_seats", mode="before")
    @classmethod
    def _seats(cls, v: Any) -> Any:
        return _seat_list_from_json(v)

    @model_validator(mode="after")
    def _no_null_for_required_columns(self) -> "SeatingPatch":
        nulls = [k for k in _SEATING_NOT_NULL if k in self.model_fields_set and getattr(self, k) is None]
        if nulls:
            raise ValueError(f"fields cannot be null: {', '.join(nulls)}")
        return self


class ContactInfo(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None


class SeatRequestCreate(BaseModel):
    event_id: Optional[int] = None
    customer_name: str
    contact: Optional[ContactInfo] = None
    selected_seats: list[SeatIdentifier] = Field(default_factory=list)
    special_requests: Optional[str] = None

    @field_validator("selected_seats", mode="before")
    @classmethod
    def _seats(cls, v: Any) -> Any:
        if v is None:
            return []
        return _seat_list_from_json(v)


class SeatRequestUpdate(BaseModel):
    status: Optional[SeatRequestStatus] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    contact: Optional[ContactInfo] = None
    special_requests: Optional[str] = None
    staff_notes: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    def changes(self) -> dict[str, Any]:
        data = self.model_dump(exclude_unset=True, exclude={"contact"})
        if self.contact is not None:
            # Explicit customer_* fields win over the nested contact object.
            data.setdefault("customer_email", self.contact.email)
            data.setdefault("customer_phone", self.contact.phone)
        if data.get("status") is None:
            data.pop("status", None)
        if data.get("customer_name") is None:
            data.pop("customer_name", None)
        return data


class SuggestionContact(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    music_links: Optional[Any] = None
    social_media: Optional[Any] = None
    genre: Optional[str] = None
    raw: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class SuggestionCreate(BaseModel):
    artist_name: Optional[str] = None
    name: Optional[str] = None
    submission_type: Optional[str] = None
    type: Optional[str] = None
    contact: Union[SuggestionContact, str, None] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    music_links: Optional[Any] = None
    social_media: Optional[Any] = None
    genre: Optional[str] = None
    notes: Optional[str] = None
    message: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    def artist(self) -> str:
        return self.artist_name or self.name or "Unknown Artist"

    def kind(self) -> str:
        return self.submission_type or self.type or "general"

    def note_text(self) -> str:
        return self.notes or self.message or ""

    def contact_record(self) -> Optional[dict[str, Any]]:
        c = self.contact
        if isinstance(c, str):
            try:
                parsed = json.loads(c)
            except ValueError:
                parsed = None
            c = SuggestionContact.model_validate(parsed) if isinstance(parsed, dict) else SuggestionContact(raw=c)
        if c is None:
            c = SuggestionContact()

        flattened = {
            "name": self.contact_name,
            "email": self.contact_email,
            "phone": self.contact_phone,
            "music_links": self.music_links,
            "social_media": self.social_media,
            "genre": self.genre,
        }
        for key, value in flattened.items():
            if not getattr(c, key) and value:
                setattr(c, key, value)

        data = c.model_dump(exclude_none=True)
        return data or None


class SuggestionUpdate(BaseModel):
    status: Optional[str] = None
    notes: Optional[str] = None


class LayoutSnapshotIn(BaseModel):
    snapshot: Any = None


class PruneRequest(BaseModel):
    max_entries: Optional[int] = Field(default=None, ge=0, alias="maxEntries")
    older_than_days: Optional[int] = Field(default=None, ge=0, alias="olderThanDays")

    model_config = ConfigDict(populate_by_name=True)


class SeatingLayoutIn(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_default: bool = False
    layout_data: Any = None
    stage_position: Any = None
    stage_size: Any = None
    canvas_settings: Any = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("is_default", mode="before")
    @classmethod
    def _truthy(cls, v: Any) -> Any:
        # The editor sends 0/1 as often as booleans.
        return bool(v)


class AdminUserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=10)
    email: Optional[EmailStr] = None
    display_name: Optional[str] = Field(default=None, max_length=255)
    name: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("username", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", "display_name", "name", mode="before")
    @classmethod
    def _blank(cls, v: Any) -> Any:
        return _blank_to_none(v)

    def shown_name(self) -> Optional[str]:
        return self.display_name or self.name
