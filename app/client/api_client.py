"""REST client for the CareCircle API.

Configuration and credentials are injected: the base URL and timeout come
from an :class:`ApiClientConfig`, bearer tokens from a ``TokenProvider``
callable.  Nothing is read from ambient state.

Every call returns an :class:`ApiResponse`; HTTP and transport errors are
normalised into ``success=False`` with an ``error`` string instead of being
raised.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

TokenProvider = Callable[[], "str | None"]

DEFAULT_BASE_URL = "http://localhost:8000/api"


def _no_token() -> str | None:
    return None


@dataclass(frozen=True)
class ApiClientConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout_s: float = 30.0


@dataclass
class ApiResponse(Generic[T]):
    success: bool
    data: T | None = None
    error: str | None = None


@dataclass
class DeliveryFailure:
    email: str
    error: str


@dataclass
class EmergencyApiResponse:
    """Fan-out payload returned by the emergency mail endpoints."""

    success: bool
    message: str | None = None
    error: str | None = None
    sent_to: list[str] = field(default_factory=list)
    failures: list[DeliveryFailure] = field(default_factory=list)

    @classmethod
    def from_response(cls, response: ApiResponse) -> EmergencyApiResponse:
        data = response.data if isinstance(response.data, dict) else {}
        return cls(
            success=response.success and data.get("success", True),
            message=data.get("message"),
            error=response.error or data.get("error"),
            sent_to=list(data.get("sentTo") or []),
            failures=[
                DeliveryFailure(email=f.get("email", ""), error=f.get("error", ""))
                for f in data.get("failures") or []
            ],
        )

    @property
    def is_partial(self) -> bool:
        return self.success and bool(self.failures)


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(response: httpx.Response, body: Any) -> str:
    if isinstance(body, dict):
        error = body.get("error") or body.get("detail")
        if isinstance(error, str) and error:
            return error
    return f"HTTP {response.status_code}: {response.reason_phrase}"


class ApiClient:
    """Thin wrapper over :class:`httpx.Client` with bearer auth.

    Parameters
    ----------
    config:
        Base URL and timeout.
    token_provider:
        Returns the current access token, or ``None`` when signed out.
    refresh_token_provider:
        Returns the current refresh token for :meth:`refresh_token`.
    transport:
        Optional ``httpx`` transport, e.g. ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        config: ApiClientConfig | None = None,
        *,
        token_provider: TokenProvider = _no_token,
        refresh_token_provider: TokenProvider = _no_token,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config or ApiClientConfig()
        self._token_provider = token_provider
        self._refresh_token_provider = refresh_token_provider
        self._http = httpx.Client(
            base_url=self.config.base_url.rstrip("/"),
            timeout=self.config.timeout_s,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -- core ---------------------------------------------------------------

    def _headers(self, *, multipart: bool) -> dict[str, str]:
        headers: dict[str, str] = {}
        token = self._token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        # httpx sets the multipart boundary itself
        if not multipart:
            headers["Content-Type"] = "application/json"
        return headers

    def request(
        self,
        method: str,
        endpoint: str,
        *,
        json: Any = None,
        files: dict | None = None,
    ) -> ApiResponse:
        try:
            response = self._http.request(
                method,
                endpoint,
                json=json,
                files=files,
                headers=self._headers(multipart=files is not None),
            )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, endpoint, type(exc).__name__)
            return ApiResponse(success=False, error=str(exc) or "Network error")

        body = _json_body(response)
        if not response.is_success:
            return ApiResponse(success=False, data=body, error=_error_message(response, body))

        if body is None:
            body = response.text or None
        return ApiResponse(success=True, data=body)

    def get(self, endpoint: str) -> ApiResponse:
        return self.request("GET", endpoint)

    def post(self, endpoint: str, data: Any = None) -> ApiResponse:
        return self.request("POST", endpoint, json=data)

    def put(self, endpoint: str, data: Any = None) -> ApiResponse:
        return self.request("PUT", endpoint, json=data)

    def delete(self, endpoint: str) -> ApiResponse:
        return self.request("DELETE", endpoint)

    # -- users --------------------------------------------------------------

    def login(self, email: str, password: str) -> ApiResponse:
        return self.post("/users/login", {"email": email, "password": password})

    def register(
        self,
        *,
        name: str,
        email: str,
        password: str,
        role: str,
        family_id: str | None = None,
        relation: str | None = None,
    ) -> ApiResponse:
        payload = {"name": name, "email": email, "password": password, "role": role}
        if family_id is not None:
            payload["familyId"] = family_id
        if relation is not None:
            payload["relation"] = relation
        return self.post("/users/register", payload)

    def logout(self) -> ApiResponse:
        return self.post("/users/logout")

    def get_current_user(self) -> ApiResponse:
        return self.get("/users/current-user")

    def refresh_token(self) -> ApiResponse:
        refresh_token = self._refresh_token_provider()
        if not refresh_token:
            return ApiResponse(success=False, error="No refresh token available")
        return self.post("/users/refresh-token", {"refreshToken": refresh_token})

    # -- profile ------------------------------------------------------------

    def get_profile(self) -> ApiResponse:
        return self.get("/profile")

    def update_profile(self, **fields: Any) -> ApiResponse:
        return self.post("/profile", fields)

    def add_family_doctor(self, email: str) -> ApiResponse:
        return self.post("/profile/family-doctor", {"email": email})

    # -- family -------------------------------------------------------------

    def get_family(self) -> ApiResponse:
        return self.get("/families")

    def update_emergency_contacts(self, contacts: list[dict]) -> ApiResponse:
        return self.put("/families/emergency-contacts", {"contacts": contacts})

    def add_emergency_contact(self, contact: dict) -> ApiResponse:
        return self.post("/families/emergency-contacts", contact)

    def update_emergency_contact(self, contact_id: str, contact: dict) -> ApiResponse:
        return self.put(f"/families/emergency-contacts/{contact_id}", contact)

    def delete_emergency_contact(self, contact_id: str) -> ApiResponse:
        return self.delete(f"/families/emergency-contacts/{contact_id}")

    # -- records ------------------------------------------------------------

    def get_medications(self) -> ApiResponse:
        return self.get("/medications")

    def get_vitals(self) -> ApiResponse:
        return self.get("/vitals")

    def get_notifications(self) -> ApiResponse:
        return self.get("/notifications")

    def get_agent_alerts(self) -> ApiResponse:
        return self.get("/agents/alerts")

    def get_agent(self, agent_id: str) -> ApiResponse:
        return self.get(f"/agent/{agent_id}")

    def upload_prescription(self, filename: str, content: bytes, content_type: str) -> ApiResponse:
        return self.request(
            "POST",
            "/prescriptions",
            files={"file": (filename, content, content_type)},
        )

    def get_prescriptions(self) -> ApiResponse:
        return self.get("/prescriptions")

    def process_prescription(self, prescription_id: str) -> ApiResponse:
        return self.post(f"/prescriptions/{prescription_id}/process-gemini")

    def send_chat_message(self, message: str) -> ApiResponse:
        return self.post("/chat", {"message": message})

    # -- emergency ----------------------------------------------------------

    def get_emergency_info(self) -> ApiResponse:
        return self.get("/emergency")

    def mail_emergency_contacts(self, contacts: list[str]) -> EmergencyApiResponse:
        return EmergencyApiResponse.from_response(
            self.post("/emergency/mail-contacts", {"contacts": contacts})
        )

    def share_summary(self) -> EmergencyApiResponse:
        return EmergencyApiResponse.from_response(self.post("/emergency/share-summary", {}))

    def share_with_contact(self, contact_id: str) -> ApiResponse:
        return self.post(f"/emergency/share/{contact_id}", {})

    def emergency_test(self) -> ApiResponse:
        return self.get("/emergency/test")

    def generate_health_report_summary(
        self,
        *,
        vitals: list,
        medications: list,
        profile: dict,
        health_score_data: list,
    ) -> ApiResponse:
        return self.post(
            "/emergency/generate-summary",
            {
                "vitals": vitals,
                "medications": medications,
                "profile": profile,
                "healthScoreData": health_score_data,
            },
        )
