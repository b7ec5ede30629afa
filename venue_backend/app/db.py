from __future__ import annotations

import logging
from typing import Iterator

from fastapi import Request
from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

logger = logging.getLogger(__name__)

# Columns added after the first schema went live; older databases get them on startup.
_LEGACY_COLUMNS: dict[str, dict[str, str]] = {
    "events": {
        "start_datetime": "DATETIME NULL",
        "end_datetime": "DATETIME NULL",
        "layout_id": "INTEGER NULL",
        "status": "VARCHAR(20) DEFAULT 'published'",
        "visibility": "VARCHAR(20) DEFAULT 'public'",
        "archived_at": "DATETIME NULL",
    },
    "seating": {
        "pos_x": "FLOAT NULL",
        "pos_y": "FLOAT NULL",
        "rotation": "FLOAT DEFAULT 0",
        "status": "VARCHAR(50) DEFAULT 'available'",
    },
    "suggestions": {
        "status": "VARCHAR(50) DEFAULT 'pending'",
        "updated_at": "DATETIME NULL",
    },
    "seat_requests": {
        "staff_notes": "TEXT NULL",
        "updated_at": "DATETIME NULL",
    },
    "admins": {
        "display_name": "VARCHAR(255) NULL",
        "updated_at": "DATETIME NULL",
    },
}


class Database:
    """Owns the engine; one instance per app (or CLI run), passed to whoever needs sessions."""

    def __init__(self, url: str, *, echo: bool = False):
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.url = url
        self.engine: Engine = create_engine(url, echo=echo, pool_pre_ping=True, connect_args=connect_args)

    def init(self) -> None:
        from . import models  # noqa: F401 - ensure models are registered

        SQLModel.metadata.create_all(self.engine)
        self._maybe_migrate()

    def _maybe_migrate(self) -> None:
        try:
            insp = inspect(self.engine)
            existing_tables = set(insp.get_table_names())
            with self.engine.begin() as conn:
                for table, columns in _LEGACY_COLUMNS.items():
                    if table not in existing_tables:
                        continue
                    have = {c["name"] for c in insp.get_columns(table)}
                    for name, ddl in columns.items():
                        if name not in have:
                            logger.info("adding missing column %s.%s", table, name)
                            conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {name} {ddl}"))
        except Exception:
            # Startup stays up; the affected endpoints will report their own failures.
            logger.exception("legacy column migration failed")

    def session(self) -> Session:
        return Session(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def get_session(request: Request) -> Iterator[Session]:
    db: Database = request.app.state.db
    with db.session() as session:
        yield session
