"""FastAPI dependency injection — database sessions, auth and collaborators."""
from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.security import SecurityService
from app.core.settings import get_settings
from app.db import models
from app.db.repositories import (
    FamilyRepository,
    MedicationRepository,
    ProfileRepository,
    UserRepository,
    VitalRepository,
)
from app.llm.client import GeminiClient
from app.notification.email_sender import SmtpMailSender
from app.notification.fanout import MailSender
from app.reports.views import (
    FamilyView,
    MedicationView,
    ProfileView,
    UserView,
    VitalView,
    family_view,
    medication_views,
    profile_view,
    user_view,
    vital_view,
)

_engine = None
_SessionLocal = None

_bearer = HTTPBearer(auto_error=False)


def _get_session_factory() -> sessionmaker:
    global _engine, _SessionLocal
    if _SessionLocal is None:
        _engine = create_engine(get_settings().database_url)
        _SessionLocal = sessionmaker(bind=_engine, autocommit=False, autoflush=False)
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """Yield a SQLAlchemy session; commit on success, rollback on error."""
    factory = _get_session_factory()
    db = factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    db: Session = Depends(get_db),
) -> models.User:
    """Resolve the bearer token to a user or fail with 401."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Missing bearer token")
    security = SecurityService(token_salt=get_settings().token_salt)
    user = UserRepository(db).get_by_token_hash(security.hash_token(credentials.credentials))
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid bearer token")
    return user


@dataclass(frozen=True)
class UserRecords:
    """Everything the emergency routes read for one user, already resolved."""

    user: UserView
    profile: ProfileView | None
    medications: list[MedicationView]
    family: FamilyView | None
    latest_vital: VitalView | None


def get_user_records(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserRecords:
    return UserRecords(
        user=user_view(user),
        profile=profile_view(ProfileRepository(db).get_for_user(user.id)),
        medications=medication_views(MedicationRepository(db).list_for_user(user.id)),
        family=family_view(FamilyRepository(db).get_with_contacts(user.family_id)),
        latest_vital=vital_view(VitalRepository(db).latest_for_user(user.id)),
    )


def get_mail_sender() -> MailSender:
    """Return the SMTP sender configured from settings."""
    return SmtpMailSender.from_settings(get_settings())


def get_llm_client() -> GeminiClient:
    """Return a Gemini client configured from settings."""
    return GeminiClient()
