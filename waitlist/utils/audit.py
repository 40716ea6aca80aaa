import hashlib
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_logger = logging.getLogger("audit")

REGISTERED = "WAITLIST_REGISTERED"
TOKEN_ROTATED = "WAITLIST_TOKEN_ROTATED"
ALREADY_CONFIRMED = "WAITLIST_ALREADY_CONFIRMED"
CONFIRMED = "WAITLIST_CONFIRMED"
CONFIRMATION_EMAIL_SENT = "CONFIRMATION_EMAIL_SENT"

# Anything that would let a log reader confirm someone else's entry
SECRET_FIELDS = frozenset({"token", "confirm_url"})


def email_hash(email: Optional[str]) -> Optional[str]:
    if not email or not email.strip():
        return None
    return hashlib.sha256(email.strip().lower().encode()).hexdigest()[:12]


def audit(event: str, *, email: Optional[str] = None, entry_id: Optional[int] = None, **fields: Any) -> None:
    """Write one waitlist audit event as a JSON line on the ``audit`` logger.

    The email is reduced to a short hash; confirmation secrets are redacted.
    """
    payload: Dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event,
    }
    hashed = email_hash(email)
    if hashed:
        payload["email_hash"] = hashed
    if entry_id is not None:
        payload["entry_id"] = entry_id
    for key, value in fields.items():
        payload[key] = "[redacted]" if key in SECRET_FIELDS else value
    _logger.info(json.dumps(payload, ensure_ascii=False, default=str))
