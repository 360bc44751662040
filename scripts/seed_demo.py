#!/usr/bin/env python3
"""Seed demo data: one family with emergency contacts, one user with a
profile, medications and vitals.  Prints the user's bearer token.

Usage:
    python scripts/seed_demo.py          # uses DATABASE_URL from env / .env
    DATABASE_URL=... python scripts/seed_demo.py
"""
from __future__ import annotations

import sys
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import Session

# Ensure project root is on sys.path
sys.path.insert(0, ".")

from app.core.security import SecurityService
from app.core.settings import get_settings
from app.db.base import Base
from app.db.models import EmergencyContact, Family, Medication, Profile, User, Vital


def seed(session: Session, security: SecurityService) -> str:
    """Insert the demo records and return the plain bearer token."""
    now = datetime.now(timezone.utc)

    family = Family(name="Johnson Family")
    session.add(family)
    session.flush()

    contacts = [
        # (name, relation, phone, email)
        ("Mark Johnson", "Spouse", "+12025551001", "mark.johnson@example.com"),
        ("Dr. Priya Patel", "Family Doctor", "+12025551002", "priya.patel@example.com"),
        ("Sam Johnson", "Son", None, "not-an-email"),
    ]
    for position, (name, relation, phone, email) in enumerate(contacts):
        session.add(
            EmergencyContact(
                family_id=family.id,
                position=position,
                name=name,
                relation=relation,
                phone=phone,
                email=email,
            )
        )

    token, token_hash = security.issue_token()
    user = User(
        name="Alice Johnson",
        email="alice.johnson@example.com",
        role="admin",
        family_id=family.id,
        api_token_hash=token_hash,
    )
    session.add(user)
    session.flush()

    session.add(
        Profile(
            user_id=user.id,
            dob=date(1968, 4, 12),
            age=57,
            gender="Female",
            height=165.0,
            weight=68.5,
            blood_group="O+",
            allergies=["Penicillin"],
            existing_conditions=["Type 2 Diabetes", "Hypertension"],
            family_doctor_email=["priya.patel@example.com"],
        )
    )

    medications = [
        # (name, dosage, frequency, timing, stock, days ago)
        ("Metformin", "500mg", "Twice daily", ["Morning", "Night"], 42, 120),
        ("Lisinopril", "10mg", "Once daily", ["Morning"], 18, 30),
    ]
    for name, dosage, frequency, timing, stock, days_ago in medications:
        session.add(
            Medication(
                user_id=user.id,
                medicine_name=name,
                dosage=dosage,
                frequency=frequency,
                timing=timing,
                stock_count=stock,
                start_date=now - timedelta(days=days_ago),
            )
        )

    for days_ago, systolic, diastolic, sugar in [(2, 132, 85, 141.0), (0, 128, 82, 126.0)]:
        session.add(
            Vital(
                user_id=user.id,
                bp_systolic=systolic,
                bp_diastolic=diastolic,
                sugar=sugar,
                temperature=98.4,
                weight=68.5,
                timestamp=now - timedelta(days=days_ago),
            )
        )

    session.commit()
    return token


def main() -> None:
    settings = get_settings()
    engine = create_engine(settings.database_url)
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        token = seed(session, SecurityService(token_salt=settings.token_salt))
    print("Seeded 1 Family (3 contacts), 1 User, 2 Medications, 2 Vitals.")
    print(f"Bearer token: {token}")


if __name__ == "__main__":
    main()
