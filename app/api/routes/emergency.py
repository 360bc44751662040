"""Emergency information routes.

GET  /api/emergency                 emergency card JSON
POST /api/emergency/share/{id}      email the card to one contact
POST /api/emergency/mail-contacts   email a notice to posted addresses
POST /api/emergency/share-summary   email the full summary to all contacts
POST /api/emergency/generate-summary  AI summary of posted health data
GET  /api/emergency/test            auth echo
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.api.deps import UserRecords, get_current_user, get_llm_client, get_mail_sender, get_user_records
from app.api.responses import delivery_response, notification_error_response, validation_error_response
from app.core.settings import get_settings
from app.db import models
from app.llm.client import GeminiClient, LLMConnectionError, LLMDisabledError, LLMTimeoutError
from app.llm.prompts import build_health_report_prompt, build_system_prompt
from app.notification.errors import NotificationError
from app.notification.fanout import MailSender, dispatch
from app.notification.recipients import filter_recipients
from app.reports.summary import (
    emergency_info_payload,
    render_contacts_notice,
    render_emergency_info,
    render_health_summary,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/emergency", tags=["emergency"])


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class MailContactsBody(BaseModel):
    contacts: Any = None


class HealthReportBody(BaseModel):
    vitals: list = Field(default_factory=list)
    medications: list = Field(default_factory=list)
    profile: dict = Field(default_factory=dict)
    health_score_data: list = Field(default_factory=list, alias="healthScoreData")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.get("", summary="Emergency card for the current user")
def get_emergency_info(records: UserRecords = Depends(get_user_records)):
    return emergency_info_payload(records.user, records.profile, records.medications, records.family)


@router.post("/share/{contact_id}", summary="Email the emergency card to one contact")
async def share_emergency_info(
    contact_id: str,
    records: UserRecords = Depends(get_user_records),
    sender: MailSender = Depends(get_mail_sender),
):
    contact = None
    if records.family is not None:
        contact = next((c for c in records.family.contacts if c.id == contact_id), None)
    candidates = filter_recipients([(contact.email if contact else None) or get_settings().default_emergency_email])
    if not candidates:
        return validation_error_response("Emergency contact email not found.")
    address = candidates[0]

    body = render_emergency_info(records.user, records.profile, records.medications, address)
    try:
        await dispatch(sender, [address], "Emergency Medical Info", body)
    except NotificationError as exc:
        return notification_error_response(exc)

    return {
        "success": True,
        "message": "Emergency info emailed successfully",
        "sharedWith": address,
    }


@router.post("/mail-contacts", summary="Email an emergency notice to posted addresses")
async def mail_emergency_contacts(
    body: MailContactsBody | None = None,
    records: UserRecords = Depends(get_user_records),
    sender: MailSender = Depends(get_mail_sender),
):
    contacts = body.contacts if body is not None else None
    if not isinstance(contacts, list) or not contacts:
        return validation_error_response("No contacts provided.")

    recipients = filter_recipients(contacts)
    if not recipients:
        return validation_error_response("No valid email addresses found.")

    text = render_contacts_notice(records.user, records.profile, records.medications)
    try:
        result = await dispatch(sender, recipients, "🩺 Emergency Medical Info", text)
    except NotificationError as exc:
        return notification_error_response(exc)

    return delivery_response(result, "Emergency info sent successfully.")


@router.post("/share-summary", summary="Email the health summary to every emergency contact")
async def share_summary(
    records: UserRecords = Depends(get_user_records),
    sender: MailSender = Depends(get_mail_sender),
):
    if records.family is None or not records.family.contacts:
        return validation_error_response("No emergency contacts found")

    recipients = filter_recipients(c.email for c in records.family.contacts)
    if not recipients:
        return validation_error_response("No valid emergency contact emails found")

    text = render_health_summary(
        records.profile,
        records.medications,
        records.family,
        records.latest_vital,
        records.user,
    )
    try:
        result = await dispatch(
            sender,
            recipients,
            f"🩺 Emergency Health Summary for {records.user.name}",
            text,
        )
    except NotificationError as exc:
        return notification_error_response(exc)

    return delivery_response(result, "Health summary shared with emergency contacts")


@router.post("/generate-summary", summary="AI-generated summary of posted health data")
def generate_health_report_summary(
    body: HealthReportBody,
    _: models.User = Depends(get_current_user),
    llm: GeminiClient = Depends(get_llm_client),
):
    prompt = build_health_report_prompt(
        profile=body.profile,
        vitals=body.vitals,
        medications=body.medications,
        health_score=body.health_score_data,
    )
    system = build_system_prompt(profile=body.profile, medications=body.medications)

    try:
        summary = llm.generate(prompt, system=system)
    except LLMDisabledError as exc:
        status, error = 503, str(exc)
    except (LLMTimeoutError, LLMConnectionError) as exc:
        logger.error("Health report summary failed: %s", exc)
        status, error = 502, str(exc)
    else:
        return {"success": True, "summary": summary}

    return JSONResponse(
        status_code=status,
        content={
            "success": False,
            "message": "Failed to generate health report summary",
            "error": error,
        },
    )


@router.get("/test", summary="Auth echo")
def test_emergency(user: models.User = Depends(get_current_user)):
    return {
        "message": "Emergency test endpoint working",
        "user": {
            "id": str(user.id),
            "name": user.name,
            "family_id": str(user.family_id) if user.family_id else None,
        },
    }
