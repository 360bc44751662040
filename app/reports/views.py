"""Read-only record views consumed by the report renderers.

The renderers never touch ORM rows directly; routes convert rows with the
``*_view`` helpers below so rendering stays a pure function of plain data.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from app.db import models


@dataclass(frozen=True)
class UserView:
    name: str
    email: str
    id: str = ""
    family_id: str | None = None


@dataclass(frozen=True)
class ProfileView:
    blood_group: str | None = None
    age: int | None = None
    gender: str | None = None
    dob: date | None = None
    allergies: tuple[str, ...] = ()
    existing_conditions: tuple[str, ...] = ()
    family_doctor_email: tuple[str, ...] = ()


@dataclass(frozen=True)
class MedicationView:
    name: str
    dosage: str
    frequency: str | None = None
    timing: tuple[str, ...] = ()
    stock_count: int | None = None


@dataclass(frozen=True)
class VitalView:
    timestamp: datetime
    bp_systolic: int | None = None
    bp_diastolic: int | None = None
    sugar: float | None = None
    temperature: float | None = None
    weight: float | None = None


@dataclass(frozen=True)
class ContactView:
    name: str
    relation: str
    id: str = ""
    phone: str | None = None
    email: str | None = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "relation": self.relation,
            "phone": self.phone,
            "email": self.email,
        }


@dataclass(frozen=True)
class FamilyView:
    name: str
    contacts: tuple[ContactView, ...] = field(default_factory=tuple)


# ---------------------------------------------------------------------------
# ORM -> view
# ---------------------------------------------------------------------------

def user_view(user: models.User) -> UserView:
    return UserView(
        name=user.name,
        email=user.email,
        id=str(user.id),
        family_id=str(user.family_id) if user.family_id else None,
    )


def profile_view(profile: models.Profile | None) -> ProfileView | None:
    if profile is None:
        return None
    return ProfileView(
        blood_group=profile.blood_group,
        age=profile.age,
        gender=profile.gender,
        dob=profile.dob,
        allergies=tuple(profile.allergies or ()),
        existing_conditions=tuple(profile.existing_conditions or ()),
        family_doctor_email=tuple(profile.family_doctor_email or ()),
    )


def medication_views(medications: list[models.Medication]) -> list[MedicationView]:
    return [
        MedicationView(
            name=m.medicine_name,
            dosage=m.dosage,
            frequency=m.frequency,
            timing=tuple(m.timing or ()),
            stock_count=m.stock_count,
        )
        for m in medications
    ]


def vital_view(vital: models.Vital | None) -> VitalView | None:
    if vital is None:
        return None
    return VitalView(
        timestamp=vital.timestamp,
        bp_systolic=vital.bp_systolic,
        bp_diastolic=vital.bp_diastolic,
        sugar=vital.sugar,
        temperature=vital.temperature,
        weight=vital.weight,
    )


def family_view(family: models.Family | None) -> FamilyView | None:
    if family is None:
        return None
    return FamilyView(
        name=family.name,
        contacts=tuple(
            ContactView(
                id=str(c.id),
                name=c.name,
                relation=c.relation,
                phone=c.phone,
                email=c.email,
            )
            for c in family.emergency_contacts
        ),
    )
