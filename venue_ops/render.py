from __future__ import annotations

from typing import Iterable, Optional

from venue_backend.app.models import Seating


def _cell(text: Optional[str], width: int) -> str:
    if not text:
        return ".".ljust(width)
    t = str(text)
    if len(t) > width:
        t = t[: max(0, width - 1)] + "…"
    return t.ljust(width)


def render_seating(rows: Iterable[Seating], *, cell_width: int = 10) -> str:
    """One line per seating row: section, row, capacity, then the reserved seat ids."""
    cell_width = max(3, int(cell_width))
    header = " ".join(_cell(h, cell_width) for h in ("SECTION", "ROW", "SEATS", "TYPE")) + " RESERVED"
    lines = [header]
    for r in rows:
        reserved = r.reserved().to_list()
        cells = [r.section, r.row_label, f"{len(reserved)}/{r.total_seats}", r.seat_type]
        line = " ".join(_cell(c, cell_width) for c in cells)
        lines.append(f"{line} {', '.join(reserved) if reserved else '-'}")
    if len(lines) == 1:
        lines.append("(no seating rows)")
    return "\n".join(lines)
