from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlmodel import Session, select

from .models import SeatRequest, SeatRequestStatus, Seating, _utc_now
from .seats import ReservedSeats, SeatId, SeatIdError

logger = logging.getLogger(__name__)


class ReservationError(Exception):
    pass


class SeatRequestNotFoundError(ReservationError):
    pass


class SeatConflictError(ReservationError):
    def __init__(self, conflicts: list[str]):
        super().__init__(f"seats already reserved: {', '.join(conflicts)}")
        self.conflicts = conflicts


@dataclass
class ApprovalResult:
    request_id: int
    approved: list[str] = field(default_factory=list)
    # Seat ids that did not parse or matched no seating row; left unreserved.
    skipped: list[str] = field(default_factory=list)


def _find_seating_row(session: Session, section: str, row_label: str) -> Optional[Seating]:
    # FOR UPDATE is dropped by dialects without row locks (SQLite).
    stmt = (
        select(Seating)
        .where(Seating.section == section, Seating.row_label == row_label)
        .order_by(Seating.id)
        .limit(1)
        .with_for_update()
    )
    return session.exec(stmt).first()


def _lock_rows(session: Session, keys: set[tuple[str, str]]) -> dict[tuple[str, str], Optional[Seating]]:
    # Always lock in (section, row_label) order so two approvals can't wait on each other.
    return {key: _find_seating_row(session, *key) for key in sorted(keys)}


def approve_seat_request(session: Session, request_id: int) -> ApprovalResult:
    """
    Merge a request's seats into the reserved lists of their seating rows and
    mark it approved, all in one transaction.

    Conflicts are checked against every row's state before anything is written;
    a single conflicting seat aborts the whole approval with no changes.
    """
    try:
        req = session.get(SeatRequest, request_id)
        if req is None:
            raise SeatRequestNotFoundError(f"seat request {request_id} not found")

        result = ApprovalResult(request_id=request_id)
        parsed: list[tuple[str, SeatId]] = []
        for raw in req.seats():
            try:
                parsed.append((raw, SeatId.parse(raw)))
            except SeatIdError:
                logger.warning("approval %s: unparseable seat id %r skipped", request_id, raw)
                result.skipped.append(raw)

        rows = _lock_rows(session, {seat.row_key for _, seat in parsed})

        # row id -> (row, reserved before this approval, seats wanted in request order)
        targets: dict[int, tuple[Seating, ReservedSeats, list[str]]] = {}
        for raw, seat in parsed:
            row = rows[seat.row_key]
            if row is None:
                logger.warning("approval %s: no seating row for %r, skipped", request_id, raw)
                result.skipped.append(raw)
                continue
            if row.id not in targets:
                targets[row.id] = (row, row.reserved(), [])
            targets[row.id][2].append(raw)

        conflicts: list[str] = []
        for _, before, wanted in targets.values():
            conflicts.extend(before.conflicts(wanted))
        if conflicts:
            raise SeatConflictError(conflicts)

        for row, seats, wanted in targets.values():
            added = [raw for raw in wanted if seats.add(raw)]
            if added:
                result.approved.extend(added)
                row.set_reserved(seats)
                session.add(row)

        req.status = SeatRequestStatus.approved
        req.updated_at = _utc_now()
        session.add(req)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(
        "seat request approved",
        extra={"seat_request_id": request_id, "seats_approved": len(result.approved), "seats_skipped": len(result.skipped)},
    )
    return result


def deny_seat_request(session: Session, request_id: int) -> SeatRequest:
    req = session.get(SeatRequest, request_id)
    if req is None:
        raise SeatRequestNotFoundError(f"seat request {request_id} not found")
    req.status = SeatRequestStatus.denied
    req.updated_at = _utc_now()
    session.add(req)
    session.commit()
    session.refresh(req)
    logger.info("seat request denied", extra={"seat_request_id": request_id})
    return req
