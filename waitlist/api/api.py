from fastapi import APIRouter, Depends

from waitlist.api.deps import rate_limit
from waitlist.api.endpoints import admin, confirm, public

api_router = APIRouter(dependencies=[Depends(rate_limit)])

api_router.include_router(public.router)
api_router.include_router(admin.router)

pages_router = APIRouter()
pages_router.include_router(confirm.router)
