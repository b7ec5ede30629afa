"""
Seating layouts drawn in the admin editor, and the per-event seat map built from them.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from .models import Event, SeatingLayout, SeatRequest, SeatRequestStatus, Seating, _decode_json, _utc_now
from .seats import ReservedSeats

logger = logging.getLogger(__name__)


class LayoutError(Exception):
    pass


class DefaultLayoutError(LayoutError):
    pass


def list_layouts(session: Session) -> list[SeatingLayout]:
    stmt = select(SeatingLayout).order_by(SeatingLayout.is_default.desc(), SeatingLayout.name, SeatingLayout.id)
    return list(session.exec(stmt).all())


def default_layout(session: Session) -> Optional[SeatingLayout]:
    stmt = select(SeatingLayout).where(SeatingLayout.is_default == True).order_by(SeatingLayout.id).limit(1)  # noqa: E712
    return session.exec(stmt).first()


def save_layout(session: Session, layout: SeatingLayout) -> SeatingLayout:
    """Insert or update `layout`; when it is the default, every other layout loses the flag."""
    if layout.id is not None:
        layout.updated_at = _utc_now()
    session.add(layout)
    session.flush()
    if layout.is_default:
        session.exec(
            update(SeatingLayout).where(SeatingLayout.id != layout.id).values(is_default=False)
        )
    session.commit()
    session.refresh(layout)
    return layout


def delete_layout(session: Session, layout: SeatingLayout) -> None:
    if layout.is_default:
        raise DefaultLayoutError("Cannot delete the default layout")
    layout_id = layout.id
    # Events pointing at the layout fall back to the default one.
    session.exec(update(Event).where(Event.layout_id == layout_id).values(layout_id=None))
    session.delete(layout)
    session.commit()
    logger.info("seating layout deleted", extra={"layout_id": layout_id})


def layout_for_event(session: Session, event: Optional[Event]) -> Optional[SeatingLayout]:
    if event is not None and event.layout_id is not None:
        layout = session.get(SeatingLayout, event.layout_id)
        if layout is not None:
            return layout
    return default_layout(session)


@dataclass
class EventSeatMap:
    layout: Optional[SeatingLayout]
    reserved: ReservedSeats
    pending: ReservedSeats

    def to_dict(self) -> dict[str, Any]:
        layout = self.layout
        return {
            "seating": (_decode_json(layout.layout_data) if layout else None) or [],
            "stagePosition": _decode_json(layout.stage_position) if layout else None,
            "stageSize": _decode_json(layout.stage_size) if layout else None,
            "canvasSettings": _decode_json(layout.canvas_settings) if layout else None,
            "reservedSeats": self.reserved.to_list(),
            "pendingSeats": self.pending.to_list(),
        }


def event_seat_map(session: Session, event_id: int) -> EventSeatMap:
    """
    The layout an event is shown with, plus which of its seats are taken.

    Reserved seats come from the event's seating rows and its approved
    requests; pending seats are those asked for by still-pending requests.
    Denied requests contribute nothing.
    """
    event = session.get(Event, event_id)
    reserved = ReservedSeats()
    for row in session.exec(select(Seating).where(Seating.event_id == event_id).order_by(Seating.id)).all():
        for seat in row.reserved():
            reserved.add(seat)

    pending = ReservedSeats()
    requests = session.exec(select(SeatRequest).where(SeatRequest.event_id == event_id).order_by(SeatRequest.id)).all()
    for req in requests:
        if req.status == SeatRequestStatus.approved:
            target = reserved
        elif req.status == SeatRequestStatus.pending:
            target = pending
        else:
            continue
        for seat in req.seats():
            target.add(seat)

    return EventSeatMap(layout=layout_for_event(session, event), reserved=reserved, pending=pending)
