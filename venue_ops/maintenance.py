from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time

from sqlalchemy import func
from sqlmodel import Session, select

from venue_backend.app.auth import DuplicateAdminError, create_admin_user
from venue_backend.app.models import Admin, Event


class OpsError(Exception):
    pass


SAMPLE_EVENTS: list[tuple[str, date, time]] = [
    ("Folk Night", date(2025, 11, 15), time(20, 0)),
    ("Indie Friday", date(2025, 11, 22), time(19, 30)),
    ("Retro Rock", date(2025, 11, 29), time(21, 0)),
    ("Acoustic Sunday", date(2025, 12, 6), time(19, 0)),
    ("Singer-Songwriter Showcase", date(2025, 12, 13), time(20, 30)),
    ("Winter Warmup", date(2025, 12, 20), time(19, 0)),
]


@dataclass(frozen=True)
class BackfillResult:
    from_date_time: int
    from_created_at: int


def seed_events(session: Session, *, force: bool = False) -> int:
    """Insert the sample events; a no-op (returns 0) when events exist and force is off."""
    count = session.exec(select(func.count()).select_from(Event)).one()
    if count and not force:
        return 0
    for title, d, t in SAMPLE_EVENTS:
        session.add(Event(title=title, event_date=d, event_time=t, start_datetime=datetime.combine(d, t)))
    session.commit()
    return len(SAMPLE_EVENTS)


def backfill_start_datetime(session: Session) -> BackfillResult:
    missing = session.exec(select(Event).where(Event.start_datetime.is_(None))).all()
    from_parts = from_created = 0
    for e in missing:
        if e.event_date is not None and e.event_time is not None:
            e.start_datetime = datetime.combine(e.event_date, e.event_time)
            from_parts += 1
        else:
            e.start_datetime = e.created_at
            from_created += 1
        session.add(e)
    session.commit()
    return BackfillResult(from_date_time=from_parts, from_created_at=from_created)


def create_admin(session: Session, *, username: str, password: str, email: str | None = None) -> Admin:
    username = (username or "").strip()
    if not username:
        raise OpsError("username must be a non-empty string")
    if not password:
        raise OpsError("password must be a non-empty string")
    existing = session.exec(select(Admin).where(Admin.username == username)).first()
    if existing is not None:
        raise OpsError(f"admin {username!r} already exists")
    try:
        return create_admin_user(session, username=username, password=password, email=email)
    except DuplicateAdminError as e:
        raise OpsError(str(e)) from e
