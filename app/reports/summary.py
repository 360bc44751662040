"""Emergency health summary renderer.

Builds the fixed-structure plain-text report mailed to a family's
emergency contacts.  Section order never changes; a missing value renders
a placeholder instead of dropping its line.  The only exception is the
vital-signs section, which is omitted entirely when no reading exists.

Rendering is a pure function of its inputs plus ``now``; pass ``now``
explicitly for byte-identical output.
"""
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from app.reports.views import (
    FamilyView,
    MedicationView,
    ProfileView,
    UserView,
    VitalView,
)

NOT_PROVIDED = "Not Provided"
NONE_REPORTED = "None reported"
NO_MEDICATIONS = "No current medications"

_INSTRUCTIONS = (
    "1. This is an automated health summary. Please contact emergency services if needed.\n"
    "2. Contact family doctor or nearest emergency room for medical assistance.\n"
    "3. Always verify medication information with healthcare provider.\n"
    "4. For immediate assistance, contact the primary emergency contact listed above."
)
_FOOTER = "This is an automated emergency health summary. Please do not reply."


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_timestamp(value: datetime) -> str:
    """``1/5/2025, 3:04:05 PM`` style timestamp in local time.

    Aware values are converted to the local zone; naive values are taken as
    already local.
    """
    if value.tzinfo is not None:
        value = value.astimezone()
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return f"{value.month}/{value.day}/{value.year}, {hour}:{value:%M:%S} {meridiem}"


def _value(value: object, placeholder: str = NOT_PROVIDED) -> str:
    if value is None or value == "":
        return placeholder
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _joined(values: Sequence[str], placeholder: str) -> str:
    return ", ".join(values) if values else placeholder


def _section(title: str, underline: int, body: str) -> str:
    return f"{title}\n{'-' * underline}\n{body}"


def latest_vital(vitals: Sequence[VitalView]) -> VitalView | None:
    """Most recent reading by timestamp, or ``None`` for no readings."""
    if not vitals:
        return None
    return max(vitals, key=lambda v: v.timestamp)


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

def _personal(user: UserView, family: FamilyView | None, profile: ProfileView | None) -> str:
    lines = [
        f"Name: {user.name}",
        f"Email: {user.email}",
        f"Family Group: {_value(family.name if family else None)}",
    ]
    if profile is None:
        lines.append("No profile information available")
    else:
        lines += [
            f"Blood Group: {_value(profile.blood_group)}",
            f"Age: {_value(profile.age)}",
            f"Gender: {_value(profile.gender)}",
        ]
    return "\n".join(lines)


def _medical(profile: ProfileView | None) -> str:
    if profile is None:
        return "No medical information available"
    return "\n".join(
        [
            f"Allergies: {_joined(profile.allergies, NONE_REPORTED)}",
            f"Existing Conditions: {_joined(profile.existing_conditions, NONE_REPORTED)}",
            f"Family Doctor Email: {_joined(profile.family_doctor_email, 'None registered')}",
        ]
    )


def _medication(med: MedicationView) -> str:
    return (
        f"- {med.name} ({_value(med.dosage)})\n"
        f"    Frequency: {_value(med.frequency)}\n"
        f"    Timing: {_joined(med.timing, NOT_PROVIDED)}\n"
        f"    Stock: {_value(med.stock_count)} units remaining"
    )


def _vitals(vital: VitalView) -> str:
    return "\n".join(
        [
            f"Blood Pressure: {_value(vital.bp_systolic)}/{_value(vital.bp_diastolic)} mmHg",
            f"Blood Sugar: {_value(vital.sugar)} mg/dL",
            f"Temperature: {_value(vital.temperature)}°F",
            f"Weight: {_value(vital.weight)} kg",
            f"Recorded on: {format_timestamp(vital.timestamp)}",
        ]
    )


def _contacts(family: FamilyView | None) -> str:
    if family is None or not family.contacts:
        return "No emergency contacts on file"
    return "\n".join(
        f"- {c.name} ({c.relation})\n"
        f"    Phone: {_value(c.phone, 'Not provided')}\n"
        f"    Email: {_value(c.email, 'Not provided')}"
        for c in family.contacts
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def render_health_summary(
    profile: ProfileView | None,
    medications: Sequence[MedicationView],
    family: FamilyView | None,
    latest: VitalView | Sequence[VitalView] | None,
    user: UserView,
    *,
    now: datetime | None = None,
) -> str:
    """Render the full emergency health summary report.

    *latest* may be a single reading or a sequence of readings; for a
    sequence the most recent one is used.
    """
    if latest is not None and not isinstance(latest, VitalView):
        latest = latest_vital(latest)
    generated = format_timestamp(now or datetime.now())

    sections = [
        _section("HEALTH SUMMARY REPORT", 20, f"Generated on: {generated}"),
        _section("PERSONAL INFORMATION", 18, _personal(user, family, profile)),
        _section("MEDICAL INFORMATION", 17, _medical(profile)),
        _section(
            "CURRENT MEDICATIONS",
            17,
            "\n\n".join(_medication(m) for m in medications) if medications else NO_MEDICATIONS,
        ),
    ]
    if latest is not None:
        sections.append(_section("RECENT VITAL SIGNS", 16, _vitals(latest)))
    sections += [
        _section("EMERGENCY CONTACTS", 16, _contacts(family)),
        _section("EMERGENCY INSTRUCTIONS", 20, _INSTRUCTIONS),
        _FOOTER,
    ]
    return "\n\n".join(sections)


def _medication_list(medications: Sequence[MedicationView]) -> str:
    if not medications:
        return "None"
    return "\n".join(f"- {m.name} ({m.dosage})" for m in medications)


def render_emergency_info(
    user: UserView,
    profile: ProfileView | None,
    medications: Sequence[MedicationView],
    sent_to: str,
) -> str:
    """Short emergency card mailed to a single contact."""
    return "\n".join(
        [
            f"Emergency Information for {user.name}",
            "",
            f"Blood Group: {_value(profile.blood_group if profile else None)}",
            f"Allergies: {_joined(profile.allergies if profile else (), 'None')}",
            f"Existing Conditions: {_joined(profile.existing_conditions if profile else (), 'None')}",
            "",
            "Medications:",
            _medication_list(medications),
            "",
            f"Sent to: {sent_to}",
        ]
    )


def render_contacts_notice(
    user: UserView,
    profile: ProfileView | None,
    medications: Sequence[MedicationView],
    *,
    now: datetime | None = None,
) -> str:
    """Emergency notice mailed to an ad-hoc list of addresses."""
    return "\n".join(
        [
            f"Emergency Health Summary for {user.name}",
            "",
            f"Email: {user.email}",
            f"Blood Group: {_value(profile.blood_group if profile else None)}",
            f"Allergies: {_joined(profile.allergies if profile else (), 'None')}",
            f"Conditions: {_joined(profile.existing_conditions if profile else (), 'None')}",
            "",
            "Medications:",
            _medication_list(medications),
            "",
            f"Sent on: {format_timestamp(now or datetime.now())}",
        ]
    )


def emergency_info_payload(
    user: UserView,
    profile: ProfileView | None,
    medications: Sequence[MedicationView],
    family: FamilyView | None,
) -> dict:
    """JSON emergency card for ``GET /api/emergency``."""
    return {
        "name": user.name,
        "bloodGroup": _value(profile.blood_group if profile else None),
        "allergies": list(profile.allergies) if profile else [],
        "conditions": list(profile.existing_conditions) if profile else [],
        "medications": [{"name": m.name, "dosage": m.dosage} for m in medications],
        "emergencyContacts": [c.as_dict() for c in family.contacts] if family else [],
    }
