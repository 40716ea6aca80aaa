"""
Persistence adapters for waitlist entries.

The registrar talks to a ``WaitlistStore`` only; which backend sits behind it
is decided once at startup by ``build_store``.
"""
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import httpx
from postgrest.exceptions import APIError
from sqlalchemy import desc, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from waitlist.core.config import Settings
from waitlist.core.database import init_db, make_engine, make_session_factory
from waitlist.core.exceptions import PersistenceError
from waitlist.models.waitlist_entry import WaitlistEntry as WaitlistEntryModel
from waitlist.schemas.waitlist import WaitlistEntry

logger = logging.getLogger(__name__)


class WaitlistStore(ABC):
    @abstractmethod
    def find_by_email(self, email: str) -> Optional[WaitlistEntry]:
        ...

    @abstractmethod
    def insert_if_absent(self, email: str, token: str) -> bool:
        """Insert a pending entry; False when the email is already present."""

    @abstractmethod
    def update_token(self, email: str, new_token: str) -> bool:
        """Rotate the token of a pending entry; False when no pending row matched."""

    @abstractmethod
    def find_pending_by_token(self, token: str) -> Optional[WaitlistEntry]:
        ...

    @abstractmethod
    def find_by_token(self, token: str) -> Optional[WaitlistEntry]:
        ...

    @abstractmethod
    def mark_confirmed(self, entry_id: int, token: str) -> bool:
        """Confirm a pending entry still holding ``token``; False when it no longer does."""

    @abstractmethod
    def list_all(self) -> List[WaitlistEntry]:
        ...

    @abstractmethod
    def ping(self) -> None:
        ...

    def close(self) -> None:
        pass


class SqlWaitlistStore(WaitlistStore):
    """SQLAlchemy store: an embedded SQLite file or any server database."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @classmethod
    def from_url(cls, database_url: str) -> "SqlWaitlistStore":
        engine = make_engine(database_url)
        init_db(engine)
        return cls(make_session_factory(engine))

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except IntegrityError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database operation failed: {e}")
            raise PersistenceError("database operation failed", details=str(e)) from e
        finally:
            db.close()

    @staticmethod
    def _snapshot(row: Optional[WaitlistEntryModel]) -> Optional[WaitlistEntry]:
        return WaitlistEntry.model_validate(row) if row is not None else None

    def find_by_email(self, email: str) -> Optional[WaitlistEntry]:
        with self._session() as db:
            row = db.query(WaitlistEntryModel).filter(WaitlistEntryModel.email == email).first()
            return self._snapshot(row)

    def insert_if_absent(self, email: str, token: str) -> bool:
        try:
            with self._session() as db:
                db.add(WaitlistEntryModel(email=email, token=token, confirmed=False))
                db.commit()
        except IntegrityError:
            # email already exists; the caller re-reads the winning row
            logger.info("Waitlist insert lost a uniqueness race; keeping existing row")
            return False
        return True

    def update_token(self, email: str, new_token: str) -> bool:
        with self._session() as db:
            result = db.execute(
                update(WaitlistEntryModel)
                .where(WaitlistEntryModel.email == email, WaitlistEntryModel.confirmed.is_(False))
                .values(token=new_token)
            )
            db.commit()
            return result.rowcount > 0

    def find_pending_by_token(self, token: str) -> Optional[WaitlistEntry]:
        with self._session() as db:
            row = (
                db.query(WaitlistEntryModel)
                .filter(WaitlistEntryModel.token == token, WaitlistEntryModel.confirmed.is_(False))
                .first()
            )
            return self._snapshot(row)

    def find_by_token(self, token: str) -> Optional[WaitlistEntry]:
        with self._session() as db:
            row = db.query(WaitlistEntryModel).filter(WaitlistEntryModel.token == token).first()
            return self._snapshot(row)

    def mark_confirmed(self, entry_id: int, token: str) -> bool:
        with self._session() as db:
            result = db.execute(
                update(WaitlistEntryModel)
                .where(
                    WaitlistEntryModel.id == entry_id,
                    WaitlistEntryModel.token == token,
                    WaitlistEntryModel.confirmed.is_(False),
                )
                .values(confirmed=True)
            )
            db.commit()
            return result.rowcount > 0

    def list_all(self) -> List[WaitlistEntry]:
        with self._session() as db:
            rows = (
                db.query(WaitlistEntryModel)
                .order_by(desc(WaitlistEntryModel.created_at), desc(WaitlistEntryModel.id))
                .all()
            )
            return [WaitlistEntry.model_validate(r) for r in rows]

    def ping(self) -> None:
        with self._session() as db:
            db.execute(text("SELECT 1"))

    def close(self) -> None:
        bind = self._session_factory.kw.get("bind")
        if bind is not None:
            bind.dispose()


class SupabaseWaitlistStore(WaitlistStore):
    """Managed Postgres reached through the Supabase (PostgREST) client."""

    def __init__(self, client: Any, table: str = "waitlist"):
        self._client = client
        self._table_name = table

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseWaitlistStore":
        from supabase import create_client

        return cls(create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY), settings.SUPABASE_TABLE)

    def _table(self):
        return self._client.table(self._table_name)

    def _execute(self, query) -> List[Dict[str, Any]]:
        try:
            response = query.execute()
        except (APIError, httpx.HTTPError) as e:
            logger.error(f"Supabase request failed: {e}")
            raise PersistenceError("supabase request failed", details=str(e)) from e
        return response.data or []

    @staticmethod
    def _first(rows: List[Dict[str, Any]]) -> Optional[WaitlistEntry]:
        return WaitlistEntry.model_validate(rows[0]) if rows else None

    def find_by_email(self, email: str) -> Optional[WaitlistEntry]:
        return self._first(self._execute(self._table().select("*").eq("email", email).limit(1)))

    def insert_if_absent(self, email: str, token: str) -> bool:
        rows = self._execute(
            self._table().upsert(
                {"email": email, "token": token, "confirmed": False},
                on_conflict="email",
                ignore_duplicates=True,
            )
        )
        # PostgREST only returns the rows it actually inserted
        return len(rows) > 0

    def update_token(self, email: str, new_token: str) -> bool:
        rows = self._execute(
            self._table().update({"token": new_token}).eq("email", email).eq("confirmed", False)
        )
        return len(rows) > 0

    def find_pending_by_token(self, token: str) -> Optional[WaitlistEntry]:
        return self._first(
            self._execute(self._table().select("*").eq("token", token).eq("confirmed", False).limit(1))
        )

    def find_by_token(self, token: str) -> Optional[WaitlistEntry]:
        return self._first(self._execute(self._table().select("*").eq("token", token).limit(1)))

    def mark_confirmed(self, entry_id: int, token: str) -> bool:
        rows = self._execute(
            self._table()
            .update({"confirmed": True})
            .eq("id", entry_id)
            .eq("token", token)
            .eq("confirmed", False)
        )
        return len(rows) > 0

    def list_all(self) -> List[WaitlistEntry]:
        rows = self._execute(self._table().select("*").order("created_at", desc=True).order("id", desc=True))
        return [WaitlistEntry.model_validate(r) for r in rows]

    def ping(self) -> None:
        self._execute(self._table().select("id").limit(1))


def build_store(settings: Settings) -> WaitlistStore:
    backend = settings.DATABASE_BACKEND.strip().lower()
    if backend == "supabase":
        logger.info("Using Supabase waitlist store")
        return SupabaseWaitlistStore.from_settings(settings)
    logger.info("Using SQL waitlist store")
    return SqlWaitlistStore.from_url(settings.DATABASE_URL)
