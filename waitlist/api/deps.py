from fastapi import Depends, Request

from waitlist.core.config import Settings
from waitlist.core.exceptions import RateLimitExceeded
from waitlist.services.page_renderer import PageRenderer
from waitlist.services.registrar import Registrar


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_renderer(request: Request) -> PageRenderer:
    return request.app.state.renderer


def get_registrar(request: Request, settings: Settings = Depends(get_settings)) -> Registrar:
    """Registrar over the process-wide store and notifier"""
    return Registrar(
        store=request.app.state.store,
        notifier=request.app.state.notifier,
        public_url=settings.PUBLIC_URL,
        token_bytes=settings.TOKEN_BYTES,
    )


def rate_limit(request: Request) -> None:
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return
    client_ip = request.client.host if request.client else None
    if not limiter.allow_for_client(client_ip):
        raise RateLimitExceeded(details=f"client={client_ip}")
