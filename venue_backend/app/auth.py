from __future__ import annotations

import logging
from typing import Any, Optional

from passlib.context import CryptContext
from sqlmodel import Session, or_, select

from .config import Settings
from .models import Admin

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

DEMO_ADMIN_EMAIL = "admin@venue.local"


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # Unknown or malformed hash format.
        logger.warning("stored password hash could not be identified")
        return False


def authenticate(session: Session, settings: Settings, login: str, password: str) -> Optional[dict[str, Any]]:
    if settings.demo_admin_user and login == settings.demo_admin_user and password == settings.demo_admin_password:
        return {"username": settings.demo_admin_user, "email": DEMO_ADMIN_EMAIL}

    if not login or not password:
        return None
    admin = session.exec(select(Admin).where(or_(Admin.username == login, Admin.email == login)).limit(1)).first()
    if admin is None or not verify_password(password, admin.password_hash):
        return None
    return admin.model_dump(exclude={"password_hash"})


class DuplicateAdminError(ValueError):
    pass


def public_admin(admin: Admin) -> dict[str, Any]:
    """Admin record as shown to other admins: never the hash, always a display name."""
    d = admin.model_dump(exclude={"password_hash"})
    display = (admin.display_name or admin.username or "").strip()
    if not display and admin.email:
        display = admin.email.split("@", 1)[0]
    if admin.email and admin.email.lower().startswith("admin@"):
        display = "Admin"
    d["display_name"] = display or "Admin"
    return d


def list_admins(session: Session) -> list[Admin]:
    return list(session.exec(select(Admin).order_by(Admin.created_at.desc(), Admin.id.desc())).all())


def create_admin_user(
    session: Session,
    *,
    username: str,
    password: str,
    email: Optional[str] = None,
    display_name: Optional[str] = None,
) -> Admin:
    if session.exec(select(Admin).where(Admin.username == username)).first() is not None:
        raise DuplicateAdminError("An admin with that username already exists.")
    if email and session.exec(select(Admin).where(Admin.email == email)).first() is not None:
        raise DuplicateAdminError("An admin with that email already exists.")
    admin = Admin(
        username=username,
        email=email or None,
        display_name=display_name or username,
        password_hash=hash_password(password),
    )
    session.add(admin)
    session.commit()
    session.refresh(admin)
    logger.info("admin user created", extra={"admin_id": admin.id})
    return admin
