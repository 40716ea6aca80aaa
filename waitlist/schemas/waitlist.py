from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
import enum


class WaitlistStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"


class WaitlistEntry(BaseModel):
    """Backend-independent snapshot of a waitlist row."""
    id: int
    email: str
    token: Optional[str] = None
    confirmed: bool = False
    created_at: datetime

    class Config:
        from_attributes = True

    @property
    def status(self) -> WaitlistStatus:
        return WaitlistStatus.CONFIRMED if self.confirmed else WaitlistStatus.PENDING


class PreRegisterIn(BaseModel):
    email: Optional[str] = None


class PreRegisterOut(BaseModel):
    ok: bool = True


class ErrorOut(BaseModel):
    error: str


class WaitlistAdminItem(BaseModel):
    id: int
    email: str
    created_at: datetime = Field(alias="createdAt")
    confirmed: bool

    class Config:
        from_attributes = True
        populate_by_name = True
