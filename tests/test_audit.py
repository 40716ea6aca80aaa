import json
import logging

import pytest

from waitlist.utils.audit import CONFIRMED, REGISTERED, audit, email_hash


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.lines = []

    def emit(self, record):
        self.lines.append(record.getMessage())


@pytest.fixture
def audit_lines():
    logger = logging.getLogger("audit")
    handler = ListHandler()
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    yield handler.lines
    logger.removeHandler(handler)
    logger.setLevel(previous_level)


def test_audit_hashes_email_and_redacts_secrets(audit_lines):
    audit(CONFIRMED, email=" User@Example.com", entry_id=3, token="abc", confirm_url="https://x/confirm?token=abc")

    payload = json.loads(audit_lines[-1])
    assert payload["event"] == CONFIRMED
    assert payload["entry_id"] == 3
    assert payload["email_hash"] == email_hash("user@example.com")
    assert payload["token"] == payload["confirm_url"] == "[redacted]"
    assert "example.com" not in audit_lines[-1]


def test_email_hash_ignores_blank_input():
    assert email_hash(None) is None
    assert email_hash("   ") is None


def test_registration_audit_never_carries_the_token(audit_lines, registrar, notifier):
    registrar.register("user@example.com")

    events = [json.loads(line) for line in audit_lines]
    assert REGISTERED in [e["event"] for e in events]
    assert all(notifier.last_token not in line for line in audit_lines)
