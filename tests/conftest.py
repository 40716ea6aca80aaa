from typing import List, Tuple
from urllib.parse import parse_qs, urlparse

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from waitlist.core.config import Settings
from waitlist.core.database import init_db, make_engine, make_session_factory
from waitlist.core.exceptions import PersistenceError
from waitlist.main import create_app
from waitlist.services.email_service import DeliveryResult
from waitlist.services.registrar import Registrar
from waitlist.services.stores import SqlWaitlistStore, WaitlistStore

PUBLIC_URL = "https://waitlist.example.com"


class RecordingNotifier:
    """Stands in for EmailService; remembers every confirmation it was asked to send."""

    def __init__(self):
        self.sent: List[Tuple[str, str]] = []
        self.fail = False

    def send_confirmation(self, to: str, confirm_url: str) -> DeliveryResult:
        self.sent.append((to, confirm_url))
        if self.fail:
            return DeliveryResult(ok=False, error="smtp unreachable")
        return DeliveryResult(ok=True)

    @property
    def last_token(self) -> str:
        return token_from_url(self.sent[-1][1])


class BrokenStore(WaitlistStore):
    """Every call fails the way an unreachable backend does."""

    def _fail(self, *args, **kwargs):
        raise PersistenceError("database operation failed", details="could not connect to db-internal-7:5432")

    find_by_email = _fail
    insert_if_absent = _fail
    update_token = _fail
    find_pending_by_token = _fail
    find_by_token = _fail
    mark_confirmed = _fail
    list_all = _fail
    ping = _fail


def token_from_url(url: str) -> str:
    return parse_qs(urlparse(url).query)["token"][0]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_BACKEND="sql",
        DATABASE_URL="sqlite:///:memory:",
        MAIL_TRANSPORT="log",
        PUBLIC_URL=PUBLIC_URL,
        RATE_LIMIT_ENABLED=False,
        STATIC_DIR=str(tmp_path / "no-static"),
    )


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite:///:memory:")
    init_db(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return SqlWaitlistStore(session_factory)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def registrar(store, notifier):
    return Registrar(store=store, notifier=notifier, public_url=PUBLIC_URL)


@pytest.fixture
def app(settings, store, notifier):
    return create_app(settings=settings, store=store, notifier=notifier)


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
