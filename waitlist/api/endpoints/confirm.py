import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from waitlist.api.deps import get_registrar, get_renderer
from waitlist.core.exceptions import NotFoundError, PersistenceError
from waitlist.services.page_renderer import PageRenderer
from waitlist.services.registrar import Registrar

logger = logging.getLogger(__name__)

router = APIRouter(tags=["confirm"])

INVALID_LINK_MESSAGE = "This confirmation link is invalid or has expired."
SERVER_ERROR_MESSAGE = "We couldn't confirm your email right now. Please try again later."


@router.get("/confirm", response_class=HTMLResponse)
def confirm(
    token: Optional[str] = None,
    email: Optional[str] = None,
    registrar: Registrar = Depends(get_registrar),
    renderer: PageRenderer = Depends(get_renderer),
):
    if not token or not token.strip():
        return HTMLResponse(renderer.error(INVALID_LINK_MESSAGE), status_code=400)
    try:
        confirmed_email = registrar.confirm(token, email)
    except NotFoundError:
        return HTMLResponse(renderer.error(INVALID_LINK_MESSAGE), status_code=400)
    except PersistenceError as e:
        # Backend detail stays in the server log
        logger.error(f"Confirmation failed: {e.message} ({e.details})")
        return HTMLResponse(renderer.error(SERVER_ERROR_MESSAGE), status_code=500)
    return HTMLResponse(renderer.thank_you(confirmed_email))
