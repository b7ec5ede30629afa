from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Optional

logger = logging.getLogger(__name__)


class SeatIdError(ValueError):
    pass


@dataclass(frozen=True)
class SeatId:
    """
    Composite seat identifier encoded as SECTION-ROW-SEAT (e.g. "Main-A-3").

    Sections may contain hyphens; row labels and seat numbers may not.
    """

    section: str
    row_label: str
    seat_number: str

    @classmethod
    def parse(cls, raw: str) -> "SeatId":
        if not isinstance(raw, str):
            raise SeatIdError(f"seat id must be a string, got {type(raw).__name__}")
        parts = raw.strip().split("-")
        if len(parts) < 3:
            raise SeatIdError(f"seat id must look like SECTION-ROW-SEAT: {raw!r}")
        seat_number = parts.pop()
        row_label = parts.pop()
        section = "-".join(parts)
        if not (section and row_label and seat_number):
            raise SeatIdError(f"seat id has an empty part: {raw!r}")
        return cls(section=section, row_label=row_label, seat_number=seat_number)

    @property
    def row_key(self) -> tuple[str, str]:
        return (self.section, self.row_label)

    def __str__(self) -> str:
        return f"{self.section}-{self.row_label}-{self.seat_number}"


class ReservedSeats:
    """
    Ordered, duplicate-free list of seat identifiers held by a seating row
    (or requested by a seat request).
    """

    def __init__(self, seats: Optional[Iterable[Any]] = None):
        self._seats: list[str] = []
        for s in seats or ():
            self.add(str(s))

    def __contains__(self, seat: object) -> bool:
        return str(seat) in self._seats

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._seats))

    def __len__(self) -> int:
        return len(self._seats)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ReservedSeats):
            return self._seats == other._seats
        return NotImplemented

    def __repr__(self) -> str:
        return f"ReservedSeats({self._seats!r})"

    def add(self, seat: str) -> bool:
        seat = str(seat)
        if seat in self._seats:
            return False
        self._seats.append(seat)
        return True

    def conflicts(self, candidates: Iterable[str]) -> list[str]:
        return [c for c in candidates if c in self._seats]

    def to_list(self) -> list[str]:
        return list(self._seats)

    def to_json(self) -> str:
        return json.dumps(self._seats)

    @classmethod
    def from_json(cls, raw: Any) -> "ReservedSeats":
        if raw is None or raw == "":
            return cls()
        if isinstance(raw, (list, tuple)):
            return cls(raw)
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("ignoring malformed seat list: %r", raw)
            return cls()
        if not isinstance(data, list):
            logger.warning("ignoring non-list seat list: %r", raw)
            return cls()
        return cls(data)


def validate_seat_identifier(raw: str) -> str:
    return str(SeatId.parse(raw))
