import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from waitlist.core.exceptions import ConfigurationError
from waitlist.main import create_app

from conftest import BrokenStore, RecordingNotifier


@pytest.mark.asyncio
async def test_pre_register_accepts_valid_email(client, store, notifier):
    r = await client.post("/api/pre-register", json={"email": "  User@Example.com "})

    assert r.status_code == 200
    assert r.json() == {"ok": True}
    assert store.find_by_email("user@example.com") is not None
    assert len(notifier.sent) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{"email": "not-an-email"}, {"email": ""}, {}])
async def test_pre_register_rejects_invalid_email(client, store, body):
    r = await client.post("/api/pre-register", json=body)

    assert r.status_code == 400
    assert r.json() == {"error": "invalid email"}
    assert store.list_all() == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "request_kwargs",
    [
        {"json": {"email": 123}},
        {"json": {"email": ["user@example.com"]}},
        {"json": ["user@example.com"]},
        {"data": {"email": "user@example.com"}},
        {"content": "{not json", "headers": {"content-type": "application/json"}},
    ],
)
async def test_pre_register_rejects_malformed_body(client, store, request_kwargs):
    r = await client.post("/api/pre-register", **request_kwargs)

    assert r.status_code == 400
    assert r.json() == {"error": "invalid email"}
    assert store.list_all() == []


@pytest.mark.asyncio
async def test_pre_register_response_does_not_reveal_existing_email(client, notifier):
    first = await client.post("/api/pre-register", json={"email": "user@example.com"})
    await client.get("/confirm", params={"token": notifier.last_token})
    second = await client.post("/api/pre-register", json={"email": "user@example.com"})

    assert first.status_code == second.status_code == 200
    assert first.json() == second.json()


@pytest.mark.asyncio
async def test_pre_register_backend_failure_is_generic_500(settings):
    app = create_app(settings=settings, store=BrokenStore(), notifier=RecordingNotifier())
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.post("/api/pre-register", json={"email": "user@example.com"})

    assert r.status_code == 500
    assert r.json() == {"error": "server error"}


@pytest.mark.asyncio
async def test_confirm_flow_renders_thank_you_page(client, store, notifier):
    await client.post("/api/pre-register", json={"email": "user@example.com"})

    r = await client.get("/confirm", params={"token": notifier.last_token, "email": "user@example.com"})

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert "user@example.com" in r.text
    assert store.find_by_email("user@example.com").confirmed is True


@pytest.mark.asyncio
async def test_confirm_link_clicked_twice_still_succeeds(client, notifier):
    await client.post("/api/pre-register", json={"email": "user@example.com"})
    token = notifier.last_token

    first = await client.get("/confirm", params={"token": token})
    second = await client.get("/confirm", params={"token": token})

    assert first.status_code == 200
    assert second.status_code == 200


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{}, {"token": ""}, {"token": "f" * 64}])
async def test_confirm_with_missing_or_unknown_token_is_400(client, params):
    r = await client.get("/confirm", params=params)

    assert r.status_code == 400
    assert "invalid or has expired" in r.text


@pytest.mark.asyncio
async def test_confirm_backend_failure_hides_internal_detail(settings):
    app = create_app(settings=settings, store=BrokenStore(), notifier=RecordingNotifier())
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/confirm", params={"token": "a" * 64})

    assert r.status_code == 500
    assert "db-internal-7" not in r.text
    assert "try again later" in r.text


@pytest.mark.asyncio
async def test_admin_waitlist_lists_newest_first(client, notifier):
    await client.post("/api/pre-register", json={"email": "first@example.com"})
    await client.post("/api/pre-register", json={"email": "second@example.com"})
    await client.get("/confirm", params={"token": notifier.last_token})

    r = await client.get("/api/admin/waitlist")

    assert r.status_code == 200
    body = r.json()
    assert [item["email"] for item in body] == ["second@example.com", "first@example.com"]
    assert set(body[0]) == {"id", "email", "createdAt", "confirmed"}
    assert body[0]["confirmed"] is True
    assert body[1]["confirmed"] is False


@pytest.mark.asyncio
async def test_admin_waitlist_backend_failure_is_generic_500(settings):
    app = create_app(settings=settings, store=BrokenStore(), notifier=RecordingNotifier())
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/api/admin/waitlist")

    assert r.status_code == 500
    assert r.json() == {"error": "server error"}


@pytest.mark.asyncio
async def test_health_endpoints(client):
    assert (await client.get("/health")).json() == {"status": "healthy"}
    assert (await client.get("/health/ready")).json() == {"status": "ready"}


@pytest.mark.asyncio
async def test_readiness_reports_unavailable_store(settings):
    app = create_app(settings=settings, store=BrokenStore(), notifier=RecordingNotifier())
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/health/ready")

    assert r.status_code == 503


def test_startup_builds_resources_from_settings(settings):
    app = create_app(settings=settings)

    with TestClient(app) as test_client:
        r = test_client.post("/api/pre-register", json={"email": "user@example.com"})
        assert r.status_code == 200
        assert app.state.store.find_by_email("user@example.com") is not None


def test_startup_aborts_when_connectivity_is_missing(settings):
    broken = settings.model_copy(update={"DATABASE_BACKEND": "supabase", "SUPABASE_URL": "", "SUPABASE_KEY": ""})
    app = create_app(settings=broken)

    with pytest.raises(ConfigurationError) as exc_info:
        for handler in app.router.on_startup:
            handler()

    assert exc_info.value.missing == ["SUPABASE_URL", "SUPABASE_KEY"]


def test_static_directory_is_served(settings, tmp_path, store, notifier):
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<h1>Coming soon</h1>", encoding="utf-8")
    app = create_app(settings=settings.model_copy(update={"STATIC_DIR": str(public)}), store=store, notifier=notifier)

    with TestClient(app) as test_client:
        assert "Coming soon" in test_client.get("/").text
        assert test_client.get("/health").json() == {"status": "healthy"}
