from __future__ import annotations

from sqlalchemy import func
from sqlmodel import Session, select

from .models import Event, SeatRequest, SeatRequestStatus, Suggestion


def dashboard_stats(session: Session) -> dict[str, int]:
    total_events = session.exec(select(func.count()).select_from(Event)).one()
    pending_requests = session.exec(
        select(func.count()).select_from(SeatRequest).where(SeatRequest.status == SeatRequestStatus.pending)
    ).one()
    total_suggestions = session.exec(select(func.count()).select_from(Suggestion)).one()
    return {
        "total_events": int(total_events),
        "pending_requests": int(pending_requests),
        "total_suggestions": int(total_suggestions),
    }
