"""Map notification outcomes onto HTTP responses.

Three outcomes stay distinct on the wire: clean success (200, no
``failures``), partial success (200 with ``failures``) and nothing sent
(400 for validation, 500 for total delivery failure).
"""
from __future__ import annotations

from fastapi.responses import JSONResponse

from app.notification.errors import AllDeliveriesFailedError, ErrorKind, NotificationError
from app.notification.fanout import AggregateResult

_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.DELIVERY: 500,
    ErrorKind.TOTAL_FAILURE: 500,
}

TOTAL_FAILURE_MESSAGE = "Failed to send email to any recipient. Please try again."


def delivery_response(result: AggregateResult, message: str, **extra) -> JSONResponse:
    content: dict = {
        "success": True,
        "message": message,
        "sentTo": list(result.successes),
        **extra,
    }
    if result.failures:
        content["failures"] = [f.as_dict() for f in result.failures]
    return JSONResponse(status_code=200, content=content)


def notification_error_response(exc: NotificationError) -> JSONResponse:
    content: dict = {"success": False, "kind": exc.kind.value}
    if isinstance(exc, AllDeliveriesFailedError):
        content["error"] = TOTAL_FAILURE_MESSAGE
        content["failures"] = [f.as_dict() for f in exc.failures]
    else:
        content["error"] = str(exc)
    return JSONResponse(status_code=_STATUS_BY_KIND[exc.kind], content=content)


def validation_error_response(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "kind": ErrorKind.VALIDATION.value, "error": message},
    )
