import logging
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from waitlist.api.deps import get_registrar
from waitlist.core.exceptions import PersistenceError
from waitlist.schemas.waitlist import ErrorOut, WaitlistAdminItem
from waitlist.services.registrar import Registrar

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# TODO: gate behind an admin credential before exposing outside a private network
@router.get("/waitlist", response_model=List[WaitlistAdminItem], responses={500: {"model": ErrorOut}})
def list_waitlist(registrar: Registrar = Depends(get_registrar)):
    """All waitlist entries, newest first"""
    try:
        entries = registrar.list_entries()
    except PersistenceError as e:
        logger.error(f"Listing waitlist failed: {e.message} ({e.details})")
        return JSONResponse(status_code=500, content={"error": "server error"})
    return [WaitlistAdminItem.model_validate(entry.model_dump()) for entry in entries]
