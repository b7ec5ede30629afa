from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from sqlmodel import Session, delete, select

from .models import LayoutHistory, _utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PruneResult:
    deleted_by_count: int = 0
    deleted_by_age: int = 0


def record_snapshot(session: Session, snapshot: Any) -> LayoutHistory:
    entry = LayoutHistory(snapshot=json.dumps(snapshot))
    session.add(entry)
    session.commit()
    session.refresh(entry)
    return entry


def prune_layout_history(session: Session, *, max_entries: int, older_than_days: int) -> PruneResult:
    """Keep the newest `max_entries` snapshots and drop anything older than `older_than_days`."""
    stale_ids = session.exec(
        select(LayoutHistory.id).order_by(LayoutHistory.id.desc()).offset(max(0, int(max_entries)))
    ).all()
    by_count = 0
    if stale_ids:
        res = session.exec(delete(LayoutHistory).where(LayoutHistory.id.in_(list(stale_ids))))
        by_count = int(res.rowcount or 0)

    cutoff = _utc_now() - timedelta(days=int(older_than_days))
    res = session.exec(delete(LayoutHistory).where(LayoutHistory.created_at < cutoff))
    by_age = int(res.rowcount or 0)

    session.commit()
    if by_count or by_age:
        logger.info("pruned layout history", extra={"deleted_by_count": by_count, "deleted_by_age": by_age})
    return PruneResult(deleted_by_count=by_count, deleted_by_age=by_age)
