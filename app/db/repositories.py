"""Read-only record lookups used by the emergency routes."""
from __future__ import annotations

from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.db import models

ModelT = TypeVar("ModelT")


class BaseRepository(Generic[ModelT]):
    model: type[ModelT]

    def __init__(self, db: Session):
        self.db = db

    def get(self, entity_id: UUID) -> ModelT | None:
        return self.db.get(self.model, entity_id)


class UserRepository(BaseRepository[models.User]):
    model = models.User

    def get_by_token_hash(self, token_hash: str) -> models.User | None:
        stmt = select(models.User).where(models.User.api_token_hash == token_hash)
        return self.db.execute(stmt).scalars().first()


class FamilyRepository(BaseRepository[models.Family]):
    model = models.Family

    def get_with_contacts(self, family_id: UUID | None) -> models.Family | None:
        if family_id is None:
            return None
        stmt = (
            select(models.Family)
            .where(models.Family.id == family_id)
            .options(selectinload(models.Family.emergency_contacts))
        )
        return self.db.execute(stmt).scalars().first()


class ProfileRepository(BaseRepository[models.Profile]):
    model = models.Profile

    def get_for_user(self, user_id: UUID) -> models.Profile | None:
        stmt = select(models.Profile).where(models.Profile.user_id == user_id)
        return self.db.execute(stmt).scalars().first()


class MedicationRepository(BaseRepository[models.Medication]):
    model = models.Medication

    def list_for_user(self, user_id: UUID) -> list[models.Medication]:
        """Medications for *user_id*, most recently started first."""
        stmt = (
            select(models.Medication)
            .where(models.Medication.user_id == user_id)
            .order_by(models.Medication.start_date.desc().nulls_last())
        )
        return list(self.db.execute(stmt).scalars().all())


class VitalRepository(BaseRepository[models.Vital]):
    model = models.Vital

    def latest_for_user(self, user_id: UUID) -> models.Vital | None:
        stmt = (
            select(models.Vital)
            .where(models.Vital.user_id == user_id)
            .order_by(models.Vital.timestamp.desc())
            .limit(1)
        )
        return self.db.execute(stmt).scalars().first()
