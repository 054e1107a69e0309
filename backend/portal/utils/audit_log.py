from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from .request_id import get_request_id

AuditAction = Literal[
    "reservation.created",
    "reservation.cancelled",
    "slot.created",
    "slot.deleted",
]
AuditInitiator = Literal["member", "admin"]

AUDIT_LOGGER_NAME = "audit"

_audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)


def build_audit_event(
    action: AuditAction,
    initiator: AuditInitiator,
    fields: dict[str, Any],
) -> dict[str, Any]:
    """One audit record: envelope first, then the non-empty fields."""
    event: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "action": action,
        "initiator": initiator,
    }
    request_id = get_request_id()
    if request_id:
        event["request_id"] = request_id
    event.update((key, value) for key, value in fields.items() if value is not None)
    return event


def emit_audit_log(
    *,
    action: AuditAction,
    initiator: AuditInitiator,
    slot_id: int,
    user_id: Optional[int],
    reservation_id: Optional[int] = None,
    remaining: Optional[int] = None,
    message: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """Write one JSON line to the audit logger.

    Raises RuntimeError when the record cannot be written, so callers can
    fail the request instead of losing the trail.
    """
    fields: dict[str, Any] = {
        "slot_id": slot_id,
        "user_id": user_id,
        "reservation_id": reservation_id,
        "remaining": remaining,
        "message": message,
    }
    fields.update(extra or {})
    line = json.dumps(build_audit_event(action, initiator, fields), ensure_ascii=True, default=str)
    try:
        _audit_logger.info(line)
    except Exception as exc:
        raise RuntimeError("failed to emit audit log") from exc
