# Import all models here for Alembic
from waitlist.models.waitlist_entry import WaitlistEntry

__all__ = [
    "WaitlistEntry",
]
