from __future__ import annotations

import argparse
import json
from typing import Optional

from sqlmodel import select

from venue_backend.app.config import ConfigError, Settings
from venue_backend.app.db import Database
from venue_backend.app.history import prune_layout_history
from venue_backend.app.logging_config import setup_logging
from venue_backend.app.models import Seating
from venue_backend.app.stats import dashboard_stats

from .maintenance import OpsError, backfill_start_datetime, create_admin, seed_events
from .render import render_seating


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL (default: DATABASE_URL or the DB_* environment variables)",
    )


def _open(args: argparse.Namespace) -> tuple[Settings, Database]:
    settings = Settings.from_env()
    db = Database(args.database_url or settings.database_url())
    return settings, db


def cmd_init_db(args: argparse.Namespace) -> int:
    _, db = _open(args)
    db.init()
    print(f"Tables ensured on {db.engine.url.render_as_string(hide_password=True)}")
    return 0


def cmd_seed_events(args: argparse.Namespace) -> int:
    _, db = _open(args)
    db.init()
    with db.session() as session:
        inserted = seed_events(session, force=args.force)
    if inserted == 0:
        print("Events already exist; use --force to insert sample events")
    else:
        print(f"Inserted {inserted} sample events")
    return 0


def cmd_backfill(args: argparse.Namespace) -> int:
    _, db = _open(args)
    db.init()
    with db.session() as session:
        res = backfill_start_datetime(session)
    print(f"Backfilled {res.from_date_time} from event_date/event_time, {res.from_created_at} from created_at")
    return 0


def cmd_counts(args: argparse.Namespace) -> int:
    _, db = _open(args)
    with db.session() as session:
        print(json.dumps(dashboard_stats(session)))
    return 0


def cmd_prune_history(args: argparse.Namespace) -> int:
    settings, db = _open(args)
    max_entries = args.max_entries if args.max_entries is not None else settings.layout_history_max
    days = args.older_than_days if args.older_than_days is not None else settings.layout_history_retention_days
    with db.session() as session:
        res = prune_layout_history(session, max_entries=max_entries, older_than_days=days)
    print(f"Deleted {res.deleted_by_count} over the limit of {max_entries}, {res.deleted_by_age} older than {days} days")
    return 0


def cmd_create_admin(args: argparse.Namespace) -> int:
    _, db = _open(args)
    db.init()
    with db.session() as session:
        admin = create_admin(session, username=args.username, password=args.password, email=args.email)
    print(f"Created admin {admin.username!r} (id={admin.id})")
    return 0


def cmd_show_seating(args: argparse.Namespace) -> int:
    _, db = _open(args)
    with db.session() as session:
        stmt = select(Seating)
        if args.event_id is not None:
            stmt = stmt.where(Seating.event_id == args.event_id)
        rows = session.exec(stmt.order_by(Seating.section, Seating.row_label, Seating.seat_number)).all()
        print(render_seating(rows, cell_width=args.width))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="venue_ops", description="Venue hall maintenance commands.")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init-db", help="Create tables and add columns missing from older schemas")
    _add_common_args(p_init)
    p_init.set_defaults(func=cmd_init_db)

    p_seed = sub.add_parser("seed-events", help="Insert sample events into an empty events table")
    _add_common_args(p_seed)
    p_seed.add_argument("--force", action="store_true", help="Insert even if events already exist")
    p_seed.set_defaults(func=cmd_seed_events)

    p_backfill = sub.add_parser("backfill-start-datetime", help="Fill missing start_datetime values")
    _add_common_args(p_backfill)
    p_backfill.set_defaults(func=cmd_backfill)

    p_counts = sub.add_parser("counts", help="Print dashboard counts as JSON")
    _add_common_args(p_counts)
    p_counts.set_defaults(func=cmd_counts)

    p_prune = sub.add_parser("prune-history", help="Apply layout history retention")
    _add_common_args(p_prune)
    p_prune.add_argument("--max-entries", type=int, help="Snapshots to keep (default: LAYOUT_HISTORY_MAX)")
    p_prune.add_argument(
        "--older-than-days", type=int, help="Max snapshot age (default: LAYOUT_HISTORY_RETENTION_DAYS)"
    )
    p_prune.set_defaults(func=cmd_prune_history)

    p_admin = sub.add_parser("create-admin", help="Create an admin login")
    _add_common_args(p_admin)
    p_admin.add_argument("--username", required=True)
    p_admin.add_argument("--password", required=True)
    p_admin.add_argument("--email")
    p_admin.set_defaults(func=cmd_create_admin)

    p_show = sub.add_parser("show-seating", help="Print seating rows and their reserved seats")
    _add_common_args(p_show)
    p_show.add_argument("--event-id", type=int)
    p_show.add_argument("--width", type=int, default=10, help="Cell width for display")
    p_show.set_defaults(func=cmd_show_seating)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    try:
        setup_logging("WARNING", "text")
        return int(args.func(args))
    except (OpsError, ConfigError) as e:
        print(f"Error: {e}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
