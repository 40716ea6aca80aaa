import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from waitlist.api.deps import get_registrar
from waitlist.core.exceptions import PersistenceError, ValidationError
from waitlist.schemas.waitlist import ErrorOut, PreRegisterIn, PreRegisterOut
from waitlist.services.registrar import Registrar

logger = logging.getLogger(__name__)

router = APIRouter(tags=["public"])


@router.post(
    "/pre-register",
    response_model=PreRegisterOut,
    responses={400: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)
def pre_register(payload: PreRegisterIn, registrar: Registrar = Depends(get_registrar)):
    """Add an email to the waiting list and send the confirmation link.

    The response is identical whether or not the email was already listed.
    """
    try:
        registrar.register(payload.email)
    except ValidationError:
        return JSONResponse(status_code=400, content={"error": "invalid email"})
    except PersistenceError as e:
        logger.error(f"Pre-registration failed: {e.message} ({e.details})")
        return JSONResponse(status_code=500, content={"error": "server error"})
    return PreRegisterOut(ok=True)
