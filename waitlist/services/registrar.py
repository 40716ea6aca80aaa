"""
Waitlist registration and confirmation.

An entry is created pending with a fresh token, may have its token rotated by
re-registering while still pending, and is flipped to confirmed by the link in
the confirmation email. Confirmed entries are never reset and never get a new
token; re-registering one reports the same success as a brand-new signup.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlencode

from email_validator import EmailNotValidError, validate_email

from waitlist.core.exceptions import NotFoundError, PersistenceError, ValidationError
from waitlist.core.security import DEFAULT_TOKEN_BYTES, generate_token
from waitlist.schemas.waitlist import WaitlistEntry
from waitlist.services.email_service import EmailService
from waitlist.services.stores import WaitlistStore
from waitlist.utils.audit import (
    ALREADY_CONFIRMED,
    CONFIRMATION_EMAIL_SENT,
    CONFIRMED,
    REGISTERED,
    TOKEN_ROTATED,
    audit,
)

logger = logging.getLogger(__name__)

MAX_EMAIL_LENGTH = 254


@dataclass(frozen=True)
class RegistrationResult:
    ok: bool = True


def normalize_email(raw: Optional[str]) -> str:
    """Trim and lowercase, then check syntax. Raises ValidationError."""
    email = str(raw or "").strip().lower()
    if not email or len(email) > MAX_EMAIL_LENGTH:
        raise ValidationError()
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(details=str(e)) from e
    return email


def build_confirm_url(base_url: str, token: str, email: str) -> str:
    query = urlencode({"token": token, "email": email})
    return f"{base_url.rstrip('/')}/confirm?{query}"


class Registrar:
    def __init__(self, store: WaitlistStore, notifier: EmailService, public_url: str,
                 token_bytes: int = DEFAULT_TOKEN_BYTES):
        self.store = store
        self.notifier = notifier
        self.public_url = public_url
        self.token_bytes = token_bytes

    def register(self, email_input: Optional[str]) -> RegistrationResult:
        email = normalize_email(email_input)
        token = generate_token(self.token_bytes)

        entry = self.store.find_by_email(email)
        if entry is None:
            self.store.insert_if_absent(email, token)
            # Re-read: a concurrent request may have inserted first
            entry = self.store.find_by_email(email)
            if entry is None:
                raise PersistenceError("entry missing after insert", details=email)
            if entry.token == token:
                audit(REGISTERED, email=email, entry_id=entry.id)
                self._send_confirmation(email, token)
                return RegistrationResult()

        if entry.confirmed:
            audit(ALREADY_CONFIRMED, email=email, entry_id=entry.id)
            return RegistrationResult()

        if not self.store.update_token(email, token):
            # Confirmed between our read and the update
            audit(ALREADY_CONFIRMED, email=email, entry_id=entry.id)
            return RegistrationResult()

        audit(TOKEN_ROTATED, email=email, entry_id=entry.id)
        self._send_confirmation(email, token)
        return RegistrationResult()

    def confirm(self, token: Optional[str], email: Optional[str] = None) -> str:
        """Confirm the entry owning ``token`` and return its email.

        A token whose entry is already confirmed is accepted again without any
        change, so a second click on the same link still succeeds.
        """
        token = (token or "").strip()
        if not token:
            raise NotFoundError()

        entry = self.store.find_pending_by_token(token)
        if entry is not None:
            self._check_email(entry, email)
            if self.store.mark_confirmed(entry.id, token):
                audit(CONFIRMED, email=entry.email, entry_id=entry.id)
                logger.info(f"Confirmed waitlist entry {entry.id}")
                return entry.email
            # Rotated or confirmed since the lookup

        entry = self.store.find_by_token(token)
        if entry is not None and entry.confirmed:
            self._check_email(entry, email)
            return entry.email

        raise NotFoundError()

    def list_entries(self) -> List[WaitlistEntry]:
        return self.store.list_all()

    @staticmethod
    def _check_email(entry: WaitlistEntry, email: Optional[str]) -> None:
        if email is None or not email.strip():
            return
        if email.strip().lower() != entry.email:
            raise NotFoundError(details="token and email refer to different entries")

    def _send_confirmation(self, email: str, token: str) -> None:
        confirm_url = build_confirm_url(self.public_url, token, email)
        result = self.notifier.send_confirmation(email, confirm_url)
        if result.ok:
            audit(CONFIRMATION_EMAIL_SENT, email=email, sent=True)
        else:
            # Entry is already persisted; delivery failures are logged and dropped
            logger.warning(f"Confirmation email failed: {result.error}")
            audit(CONFIRMATION_EMAIL_SENT, email=email, sent=False)
