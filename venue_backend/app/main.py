from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import Session, select
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import DuplicateAdminError, authenticate, create_admin_user, list_admins, public_admin
from .config import Settings
from .db import Database, get_session
from .history import prune_layout_history, record_snapshot
from .layouts import DefaultLayoutError, default_layout, delete_layout, event_seat_map, list_layouts, save_layout
from .logging_config import new_request_id, request_id_var, setup_logging
from .models import (
    BusinessSetting,
    Event,
    EventStatus,
    EventVisibility,
    LayoutHistory,
    SeatingLayout,
    SeatRequest,
    SeatRequestStatus,
    Seating,
    StageSetting,
    Suggestion,
    _utc_now,
)
from .reservations import SeatConflictError, SeatRequestNotFoundError, approve_seat_request, deny_seat_request
from .schemas import (
    AdminUserCreate,
    EventIn,
    EventRestore,
    LayoutSnapshotIn,
    LoginRequest,
    PruneRequest,
    SeatingIn,
    SeatingLayoutIn,
    SeatingPatch,
    SeatRequestCreate,
    SeatRequestUpdate,
    SettingValue,
    SuggestionCreate,
    SuggestionUpdate,
)
from .seats import ReservedSeats
from .stats import dashboard_stats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _settings(request: Request) -> Settings:
    return request.app.state.settings


@contextmanager
def handler_errors(message: str) -> Iterator[None]:
    """Turn anything but an HTTPException into a logged 500 with a generic message."""
    try:
        yield
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(message)
        raise HTTPException(status_code=500, detail=message) from e


def _event_out(e: Event) -> dict:
    d = e.model_dump()
    d["start_datetime"] = e.effective_start()
    return d


def _seating_out(s: Seating) -> dict:
    d = s.model_dump()
    d["section_name"] = s.section
    d["selected_seats"] = s.reserved().to_list() if s.selected_seats is not None else None
    return d


def _seat_request_out(r: SeatRequest, event: Optional[Event]) -> dict:
    d = r.model_dump()
    d["selected_seats"] = r.seats().to_list()
    d["contact"] = {"email": r.customer_email, "phone": r.customer_phone}
    d["event_title"] = event.title if event else None
    d["start_datetime"] = event.effective_start() if event else None
    return d


def _suggestion_out(s: Suggestion) -> dict:
    d = s.model_dump()
    contact = s.contact_dict()
    d["contact"] = contact
    d["artist_name"] = s.name
    c = contact or {}
    d["contact_name"] = c.get("name") or c.get("contact_name")
    d["contact_email"] = c.get("email") or c.get("contact_email")
    d["contact_phone"] = c.get("phone") or c.get("contact_phone")
    d["music_links"] = c.get("music_links")
    d["social_media"] = c.get("social_media")
    d["genre"] = c.get("genre")
    d["message"] = s.notes or None
    return d


def _encode_setting(value: SettingValue) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)


def _get_or_404(session: Session, model: type, obj_id: int, message: str) -> Any:
    obj = session.get(model, obj_id)
    if obj is None:
        raise HTTPException(status_code=404, detail=message)
    return obj


@router.get("/health")
def health() -> dict:
    return {"success": True, "status": "ok"}


@router.post("/login")
def login(
    payload: LoginRequest,
    session: Session = Depends(get_session),
    settings: Settings = Depends(_settings),
) -> dict:
    with handler_errors("Server error"):
        user = authenticate(session, settings, payload.email, payload.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return {"success": True, "user": user}


# --- Admin users ---


@router.get("/admin/users")
def list_admin_users(session: Session = Depends(get_session)) -> dict:
    with handler_errors("Unable to load admin users."):
        users = [public_admin(a) for a in list_admins(session)]
    return {"success": True, "users": users}


@router.post("/admin/users")
def create_admin_account(payload: AdminUserCreate, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Unable to create admin user."):
        try:
            admin = create_admin_user(
                session,
                username=payload.username,
                password=payload.password,
                email=payload.email,
                display_name=payload.shown_name(),
            )
        except DuplicateAdminError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e
    return {"success": True, "user": public_admin(admin)}


# --- Events ---


@router.get("/events")
def list_events(archived: Optional[bool] = None, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to fetch events"):
        stmt = select(Event)
        if archived is True:
            stmt = stmt.where(Event.archived_at.is_not(None))
        elif archived is False:
            stmt = stmt.where(Event.archived_at.is_(None))
        events = session.exec(stmt).all()
    # Undated events sort last.
    events = sorted(events, key=lambda e: (e.effective_start() is None, e.effective_start() or datetime.min, e.id or 0))
    return {"success": True, "events": [_event_out(e) for e in events]}


@router.post("/events/{event_id}/archive")
def archive_event(event_id: int, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to archive event"):
        e = _get_or_404(session, Event, event_id, "Event not found")
        e.archived_at = _utc_now()
        e.status = EventStatus.archived.value
        e.visibility = EventVisibility.private.value
        session.add(e)
        session.commit()
    logger.info("event archived", extra={"event_id": event_id})
    return {"success": True, "archived": True}


@router.post("/events/{event_id}/restore")
def restore_event(
    event_id: int,
    payload: Optional[EventRestore] = None,
    session: Session = Depends(get_session),
) -> dict:
    payload = payload or EventRestore()
    with handler_errors("Failed to restore event"):
        e = _get_or_404(session, Event, event_id, "Event not found")
        e.archived_at = None
        e.status = payload.status.value
        e.visibility = payload.visibility.value
        session.add(e)
        session.commit()
    logger.info("event restored", extra={"event_id": event_id, "status": payload.status.value})
    return {"success": True, "archived": False}


@router.get("/events/{event_id}")
def get_event(event_id: int, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to fetch event"):
        e = _get_or_404(session, Event, event_id, "Event not found")
    return {"success": True, "event": _event_out(e)}


@router.post("/events")
def create_event(payload: EventIn, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to create event"):
        e = Event(**payload.model_dump())
        session.add(e)
        session.commit()
        session.refresh(e)
    return {"success": True, "id": e.id}


@router.put("/events/{event_id}")
def update_event(event_id: int, payload: EventIn, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to update event"):
        e = _get_or_404(session, Event, event_id, "Event not found")
        for key, value in payload.model_dump().items():
            setattr(e, key, value)
        session.add(e)
        session.commit()
    return {"success": True}


@router.delete("/events/{event_id}")
def delete_event(event_id: int, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to delete event"):
        e = _get_or_404(session, Event, event_id, "Event not found")
        session.delete(e)
        session.commit()
    return {"success": True}


# --- Seating ---


@router.get("/seating")
def list_seating(event_id: Optional[int] = None, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to fetch seating"):
        stmt = select(Seating)
        if event_id is not None:
            stmt = stmt.where(Seating.event_id == event_id)
        rows = session.exec(stmt.order_by(Seating.section, Seating.row_label, Seating.seat_number)).all()
    return {"success": True, "seating": [_seating_out(r) for r in rows]}


@router.get("/seating/event/{event_id}")
def get_event_seating(event_id: int, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to fetch event seating"):
        seat_map = event_seat_map(session, event_id)
    return {"success": True, **seat_map.to_dict()}


@router.get("/seating/{seating_id}")
def get_seating(seating_id: int, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to fetch seating"):
        row = _get_or_404(session, Seating, seating_id, "Seating not found")
    return {"success": True, "seating": _seating_out(row)}


@router.post("/seating")
def save_seating(payload: SeatingIn, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to save seating"):
        fields = {
            "event_id": payload.event_id,
            "section": payload.section,
            "row_label": payload.row_label,
            "seat_number": payload.seat_number,
            "total_seats": payload.total_seats or 1,
            "seat_type": payload.seat_type or "general",
            "is_active": payload.is_active,
            "pos_x": payload.pos_x,
            "pos_y": payload.pos_y,
            "rotation": payload.rotation or 0.0,
            "status": payload.status or "available",
        }
        if payload.id is not None:
            # Layout saves never touch reservations.
            row = _get_or_404(session, Seating, payload.id, "Seating not found")
            for key, value in fields.items():
                setattr(row, key, value)
        else:
            row = Seating(**fields)
            if payload.selected_seats is not None:
                row.set_reserved(ReservedSeats(payload.selected_seats))
        session.add(row)
        session.commit()
        session.refresh(row)
    return {"success": True, "id": row.id}


@router.patch("/seating/{seating_id}")
def patch_seating(seating_id: int, payload: SeatingPatch, session: Session = Depends(get_session)) -> dict:
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No valid fields provided")
    with handler_errors("Failed to update seating"):
        row = _get_or_404(session, Seating, seating_id, "Seating not found")
        for key, value in changes.items():
            if key == "selected_seats":
                row.set_reserved(ReservedSeats(value) if value is not None else None)
            else:
                setattr(row, key, value)
        session.add(row)
        session.commit()
    return {"success": True, "id": seating_id}


@router.delete("/seating/{seating_id}")
def delete_seating(seating_id: int, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to delete seating"):
        row = _get_or_404(session, Seating, seating_id, "Seating not found")
        session.delete(row)
        session.commit()
    return {"success": True}


# --- Seating layouts ---


def _apply_layout(layout: SeatingLayout, payload: SeatingLayoutIn) -> None:
    layout.name = payload.name
    layout.description = payload.description or ""
    layout.is_default = payload.is_default
    layout.layout_data = json.dumps(payload.layout_data if payload.layout_data is not None else [])
    for key in ("stage_position", "stage_size", "canvas_settings"):
        value = getattr(payload, key)
        setattr(layout, key, json.dumps(value) if value is not None else None)


@router.get("/seating-layouts")
def list_seating_layouts(session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to fetch layouts"):
        layouts = list_layouts(session)
    return {"success": True, "layouts": [x.decoded() for x in layouts]}


@router.get("/seating-layouts/default")
def get_default_seating_layout(session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to fetch layout"):
        layout = default_layout(session)
    if layout is None:
        raise HTTPException(status_code=404, detail="No default layout found")
    return {"success": True, "layout": layout.decoded()}


@router.get("/seating-layouts/{layout_id}")
def get_seating_layout(layout_id: int, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to fetch layout"):
        layout = _get_or_404(session, SeatingLayout, layout_id, "Layout not found")
    return {"success": True, "layout": layout.decoded()}


@router.post("/seating-layouts")
def create_seating_layout(payload: SeatingLayoutIn, session: Session = Depends(get_session)) -> dict:
    if not payload.name or not payload.layout_data:
        raise HTTPException(status_code=400, detail="Name and layout_data are required")
    with handler_errors("Failed to create layout"):
        layout = SeatingLayout(name=payload.name)
        _apply_layout(layout, payload)
        layout = save_layout(session, layout)
    return {"success": True, "id": layout.id}


@router.put("/seating-layouts/{layout_id}")
def update_seating_layout(layout_id: int, payload: SeatingLayoutIn, session: Session = Depends(get_session)) -> dict:
    if not payload.name:
        raise HTTPException(status_code=400, detail="Name is required")
    with handler_errors("Failed to update layout"):
        layout = _get_or_404(session, SeatingLayout, layout_id, "Layout not found")
        _apply_layout(layout, payload)
        save_layout(session, layout)
    return {"success": True}


@router.delete("/seating-layouts/{layout_id}")
def delete_seating_layout(layout_id: int, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to delete layout"):
        layout = _get_or_404(session, SeatingLayout, layout_id, "Layout not found")
        try:
            delete_layout(session, layout)
        except DefaultLayoutError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
    return {"success": True}


# --- Settings ---


def _read_settings(session: Session, model: type, key_attr: str, value_attr: str) -> dict[str, Optional[str]]:
    return {getattr(s, key_attr): getattr(s, value_attr) for s in session.exec(select(model)).all()}


def _upsert_statement(dialect: str, model: type, key_attr: str, value_attr: str, key: str, value: Optional[str]) -> Any:
    row = {key_attr: key, value_attr: value}
    if dialect == "mysql":
        stmt = mysql_insert(model.__table__).values(**row)
        return stmt.on_duplicate_key_update({value_attr: stmt.inserted[value_attr]})
    if dialect == "sqlite":
        stmt = sqlite_insert(model.__table__).values(**row)
        return stmt.on_conflict_do_update(index_elements=[key_attr], set_={value_attr: stmt.excluded[value_attr]})
    raise ValueError(f"settings upsert not supported on {dialect}")


def _upsert_settings(session: Session, model: type, key_attr: str, value_attr: str, items: dict[str, SettingValue]) -> None:
    # One INSERT ... ON DUPLICATE KEY / ON CONFLICT per key: concurrent first writes of a key can't collide.
    dialect = session.get_bind().dialect.name
    for key, value in items.items():
        session.exec(_upsert_statement(dialect, model, key_attr, value_attr, key, _encode_setting(value)))
    session.commit()


@router.get("/stage-settings")
def get_stage_settings(session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to fetch stage settings"):
        settings = _read_settings(session, StageSetting, "key_name", "value")
    return {"success": True, "settings": settings}


@router.put("/stage-settings")
def put_stage_settings(payload: dict[str, SettingValue], session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to save stage settings"):
        _upsert_settings(session, StageSetting, "key_name", "value", payload)
    return {"success": True}


@router.get("/settings")
def get_business_settings(session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to fetch settings"):
        settings = _read_settings(session, BusinessSetting, "setting_key", "setting_value")
    return {"success": True, "settings": settings}


@router.put("/settings")
def put_business_settings(payload: dict[str, SettingValue], session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to update settings"):
        _upsert_settings(session, BusinessSetting, "setting_key", "setting_value", payload)
    return {"success": True}


# --- Layout history ---


@router.post("/layout-history")
def create_layout_snapshot(
    payload: LayoutSnapshotIn,
    session: Session = Depends(get_session),
    settings: Settings = Depends(_settings),
) -> dict:
    if payload.snapshot is None or payload.snapshot == "":
        raise HTTPException(status_code=400, detail="No snapshot provided")
    with handler_errors("Failed to store snapshot"):
        entry = record_snapshot(session, payload.snapshot)
    try:
        prune_layout_history(
            session,
            max_entries=settings.layout_history_max,
            older_than_days=settings.layout_history_retention_days,
        )
    except Exception:
        session.rollback()
        logger.exception("prune after insert failed")
    return {"success": True, "id": entry.id}


@router.post("/layout-history/prune")
def prune_layout_snapshots(
    payload: Optional[PruneRequest] = None,
    session: Session = Depends(get_session),
    settings: Settings = Depends(_settings),
) -> dict:
    payload = payload or PruneRequest()
    max_entries = payload.max_entries or settings.layout_history_max
    days = payload.older_than_days or settings.layout_history_retention_days
    deleted_by_count = deleted_by_age = 0
    try:
        res = prune_layout_history(session, max_entries=max_entries, older_than_days=days)
        deleted_by_count, deleted_by_age = res.deleted_by_count, res.deleted_by_age
    except Exception:
        session.rollback()
        logger.exception("manual prune failed")
    return {"success": True, "deleted_by_count": deleted_by_count, "deleted_by_age": deleted_by_age}


@router.get("/layout-history")
def list_layout_snapshots(limit: int = Query(50, ge=1, le=1000), session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to fetch history"):
        rows = session.exec(select(LayoutHistory).order_by(LayoutHistory.id.desc()).limit(limit)).all()
    history = [{"id": r.id, "snapshot": r.snapshot_data(), "created_at": r.created_at} for r in rows]
    return {"success": True, "history": history}


@router.get("/layout-history/{snapshot_id}")
def get_layout_snapshot(snapshot_id: int, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to fetch snapshot"):
        r = _get_or_404(session, LayoutHistory, snapshot_id, "Snapshot not found")
    return {"success": True, "snapshot": {"id": r.id, "snapshot": r.snapshot_data(), "created_at": r.created_at}}


# --- Seat requests ---


@router.get("/seat-requests")
def list_seat_requests(
    event_id: Optional[int] = None,
    status: Optional[SeatRequestStatus] = None,
    session: Session = Depends(get_session),
) -> dict:
    with handler_errors("Failed to fetch seat requests"):
        stmt = select(SeatRequest, Event).join(Event, SeatRequest.event_id == Event.id, isouter=True)
        if event_id is not None:
            stmt = stmt.where(SeatRequest.event_id == event_id)
        if status is not None:
            stmt = stmt.where(SeatRequest.status == status)
        rows = session.exec(stmt.order_by(SeatRequest.created_at.desc(), SeatRequest.id.desc())).all()
    return {"success": True, "requests": [_seat_request_out(r, e) for r, e in rows]}


@router.post("/seat-requests")
def create_seat_request(payload: SeatRequestCreate, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to submit seat request"):
        seats = ReservedSeats(payload.selected_seats)
        contact = payload.contact
        r = SeatRequest(
            event_id=payload.event_id,
            customer_name=payload.customer_name,
            customer_email=contact.email if contact else None,
            customer_phone=contact.phone if contact else None,
            selected_seats=seats.to_json(),
            total_seats=len(seats),
            special_requests=payload.special_requests,
            status=SeatRequestStatus.pending,
        )
        session.add(r)
        session.commit()
        session.refresh(r)
    return {"success": True, "id": r.id}


@router.put("/seat-requests/{request_id}")
def update_seat_request(request_id: int, payload: SeatRequestUpdate, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to update seat request"):
        r = _get_or_404(session, SeatRequest, request_id, "Request not found")
        for key, value in payload.changes().items():
            setattr(r, key, value)
        r.updated_at = _utc_now()
        session.add(r)
        session.commit()
    return {"success": True}


@router.delete("/seat-requests/{request_id}")
def delete_seat_request(request_id: int, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to delete seat request"):
        r = _get_or_404(session, SeatRequest, request_id, "Request not found")
        session.delete(r)
        session.commit()
    return {"success": True}


@router.post("/seat-requests/{request_id}/approve")
def approve_request(request_id: int, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to approve request"):
        try:
            result = approve_seat_request(session, request_id)
        except SeatRequestNotFoundError as e:
            raise HTTPException(status_code=404, detail="Request not found") from e
        except SeatConflictError as e:
            raise HTTPException(
                status_code=409,
                detail={"message": "Conflict - seats already reserved", "conflicts": e.conflicts},
            ) from e
    return {"success": True, "skipped": result.skipped}


@router.post("/seat-requests/{request_id}/deny")
def deny_request(request_id: int, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to deny request"):
        try:
            deny_seat_request(session, request_id)
        except SeatRequestNotFoundError as e:
            raise HTTPException(status_code=404, detail="Request not found") from e
    return {"success": True}


# --- Artist suggestions ---


@router.get("/suggestions")
def list_suggestions(session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to fetch suggestions"):
        rows = session.exec(select(Suggestion).order_by(Suggestion.created_at.desc(), Suggestion.id.desc())).all()
    return {"success": True, "suggestions": [_suggestion_out(s) for s in rows]}


@router.post("/suggestions")
def create_suggestion(payload: SuggestionCreate, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to submit suggestion"):
        contact = payload.contact_record()
        s = Suggestion(
            name=payload.artist(),
            contact=json.dumps(contact) if contact else None,
            notes=payload.note_text(),
            submission_type=payload.kind(),
        )
        session.add(s)
        session.commit()
        session.refresh(s)
    return {"success": True, "id": s.id}


@router.put("/suggestions/{suggestion_id}")
def update_suggestion(suggestion_id: int, payload: SuggestionUpdate, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to update suggestion"):
        s = _get_or_404(session, Suggestion, suggestion_id, "Suggestion not found")
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("status") is not None:
            s.status = changes["status"]
        if "notes" in changes:
            s.notes = changes["notes"]
        s.updated_at = _utc_now()
        session.add(s)
        session.commit()
    return {"success": True}


@router.delete("/suggestions/{suggestion_id}")
def delete_suggestion(suggestion_id: int, session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to delete suggestion"):
        s = _get_or_404(session, Suggestion, suggestion_id, "Suggestion not found")
        session.delete(s)
        session.commit()
    return {"success": True}


# --- Dashboard ---


@router.get("/dashboard-stats")
def get_dashboard_stats(session: Session = Depends(get_session)) -> dict:
    with handler_errors("Failed to fetch dashboard stats"):
        stats = dashboard_stats(session)
    return {"success": True, "stats": stats}


def _failure(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder({"success": False, "message": message, **extra}))


def create_app(settings: Optional[Settings] = None, db: Optional[Database] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    db = db or Database(settings.database_url(), echo=settings.sql_echo)
    setup_logging(settings.log_level, settings.log_format)

    app = FastAPI(title="Venue Hall API", version="0.1.0")
    app.state.settings = settings
    app.state.db = db

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def _request_id(request: Request, call_next):
        rid = request.headers.get("X-Request-ID") or new_request_id()
        token = request_id_var.set(rid)
        try:
            response = await call_next(request)
        except Exception:
            # Caught here, inside the request id scope, so the log record and response both carry it.
            logger.exception("unhandled error on %s %s", request.method, request.url.path)
            response = _failure(500, "Server error")
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = rid
        return response

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if isinstance(exc.detail, dict):
            extra = dict(exc.detail)
            message = str(extra.pop("message", "Request failed"))
            return _failure(exc.status_code, message, **extra)
        return _failure(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _failure(422, "Invalid request", errors=exc.errors())

    @app.on_event("startup")
    def _startup() -> None:
        db.init()

    @app.on_event("shutdown")
    def _shutdown() -> None:
        db.dispose()

    app.include_router(router)
    return app


def main() -> None:
    """Serve the API; `uvicorn venue_backend.app.main:create_app --factory` does the same."""
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
