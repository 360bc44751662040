"""Prompt templates for AI-generated health summaries.

Templates use Python string ``.format()`` placeholders.  Health data is
serialised to JSON before substitution so the model sees exactly what the
caller posted.
"""
from __future__ import annotations

import json
from datetime import date

# ---------------------------------------------------------------------------
# System prompt for the health assistant
# ---------------------------------------------------------------------------

SYSTEM_PROMPT = (
    "You are a careful personal health assistant.  "
    "You explain health data in plain language, highlight concerning "
    "patterns, and always recommend consulting a qualified healthcare "
    "provider before any change in treatment.  You never diagnose.\n"
    "\n"
    "Patient context:\n"
    "- Name: {name}\n"
    "- Age: {age}\n"
    "- Blood group: {blood_group}\n"
    "- Known conditions: {conditions}\n"
    "- Current medications: {medications}"
)

# ---------------------------------------------------------------------------
# HEALTH_REPORT_SUMMARY
# ---------------------------------------------------------------------------

REPORT_SECTIONS = (
    "Overall Health Assessment",
    "Vital Signs Analysis",
    "Medication Management",
    "Health Trends",
    "Recommendations",
    "Risk Factors (if any)",
    "Next Steps",
)

HEALTH_REPORT_SUMMARY = (
    "Please analyze the following health data and provide a comprehensive "
    "AI-generated health summary report. Include insights, trends, "
    "recommendations, and any concerning patterns. Format the response with "
    "proper sections, bullet points, and clear headings.\n"
    "\n"
    "Health Data:\n"
    "- Patient Profile: {profile}\n"
    "- Vital Signs: {vitals}\n"
    "- Current Medications: {medications}\n"
    "- Health Score Trend: {health_score}\n"
    "\n"
    "Please provide a detailed analysis including:\n"
    "{sections}"
)

_NOT_PROVIDED = "Not provided"
_DAYS_PER_YEAR = 365.25


def _dumps(value: object) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)


def age_from_dob(dob: str | date | None, today: date | None = None) -> int | None:
    """Whole years between *dob* and *today*; ``None`` for missing or unparseable input."""
    if not dob:
        return None
    if isinstance(dob, str):
        try:
            dob = date.fromisoformat(dob[:10])
        except ValueError:
            return None
    today = today or date.today()
    return int((today - dob).days // _DAYS_PER_YEAR)


def build_health_report_prompt(
    *,
    profile: dict,
    vitals: list,
    medications: list,
    health_score: list,
) -> str:
    sections = "\n".join(f"{i}. {name}" for i, name in enumerate(REPORT_SECTIONS, start=1))
    return HEALTH_REPORT_SUMMARY.format(
        profile=_dumps(profile),
        vitals=_dumps(vitals),
        medications=_dumps(medications),
        health_score=_dumps(health_score),
        sections=sections,
    )


def build_system_prompt(*, profile: dict, medications: list, today: date | None = None) -> str:
    age = age_from_dob(profile.get("DOB"), today=today)
    meds = [
        f"{m.get('medicine_name', 'Unknown')} ({m.get('dosage', '?')})"
        for m in medications
        if isinstance(m, dict)
    ]
    return SYSTEM_PROMPT.format(
        name=profile.get("name") or profile.get("user_id") or "Patient",
        age=age if age is not None else _NOT_PROVIDED,
        blood_group=profile.get("blood_group") or _NOT_PROVIDED,
        conditions=", ".join(profile.get("existing_conditions") or []) or "None reported",
        medications=", ".join(meds) or "None",
    )
