"""
auth/store.py -- Credential Store: the only writer of user records.

Pattern: Repository. CredentialStore is the capability interface the
orchestrator depends on (create / find / exists); concrete backends are
injected, never imported globally, so a durable backend can replace the
in-memory one without touching auth/service.py.

Backends:
  InMemoryCredentialStore -- the reference store. A dict keyed by normalized
      username behind one threading.Lock. create() performs the uniqueness
      check and the insert inside the same critical section, so two racing
      registrations for the same name resolve to exactly one winner.

  SqlCredentialStore -- SQLAlchemy Core adapter. Uniqueness is a UNIQUE
      constraint; the database arbitrates races and IntegrityError becomes
      DuplicateUser. All queries use bound parameters.

Keys: every method expects an already-normalized username (see
auth.validation.normalize_username). The store does not fold case itself.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import abc
import logging
import threading

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from auth.errors import DuplicateUser
from auth.models import UserRecord

logger = logging.getLogger("authgate.store")


class CredentialStore(abc.ABC):
    """Capability interface for user-record storage."""

    @abc.abstractmethod
    def create(self, record: UserRecord) -> UserRecord:
        """Insert record atomically. Raises DuplicateUser if the username is taken."""

    @abc.abstractmethod
    def find_by_username(self, username: str) -> UserRecord | None: ...

    @abc.abstractmethod
    def find_by_id(self, user_id: str) -> UserRecord | None: ...

    @abc.abstractmethod
    def exists(self, username: str) -> bool: ...

    @abc.abstractmethod
    def count(self) -> int: ...

    def close(self) -> None:
        """Release backend resources. No-op by default."""


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class InMemoryCredentialStore(CredentialStore):
    """Volatile store; contents are lost on restart.

    Usage:
        store = InMemoryCredentialStore()
        store.create(UserRecord(id="user-1", username="alice_01", password_hash=h, created_at=ts))
        store.find_by_username("alice_01")
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_username: dict[str, UserRecord] = {}
        self._by_id: dict[str, UserRecord] = {}

    def create(self, record: UserRecord) -> UserRecord:
        with self._lock:
            if record.username in self._by_username or record.id in self._by_id:
                raise DuplicateUser()
            self._by_username[record.username] = record
            self._by_id[record.id] = record
        return record

    def find_by_username(self, username: str) -> UserRecord | None:
        with self._lock:
            return self._by_username.get(username)

    def find_by_id(self, user_id: str) -> UserRecord | None:
        with self._lock:
            return self._by_id.get(user_id)

    def exists(self, username: str) -> bool:
        with self._lock:
            return username in self._by_username

    def count(self) -> int:
        with self._lock:
            return len(self._by_username)

    def close(self) -> None:
        with self._lock:
            self._by_username.clear()
            self._by_id.clear()


# ---------------------------------------------------------------------------
# SQLAlchemy backend
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(64), primary_key=True),
    Column("username", String(32), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _is_memory_url(db_url: str) -> bool:
    return db_url.rstrip("/") in ("sqlite:", "sqlite+pysqlite:") or ":memory:" in db_url or "mode=memory" in db_url


class SqlCredentialStore(CredentialStore):
    """Repository over any SQLAlchemy URL.

    In-memory SQLite URLs (sqlite://, :memory:, mode=memory) get a StaticPool
    so every thread shares the one connection that holds the database. File
    databases use the default pool with WAL journaling.
    """

    def __init__(self, db_url: str) -> None:
        engine_args: dict = {}
        is_sqlite = db_url.startswith("sqlite")
        in_memory = is_sqlite and _is_memory_url(db_url)
        if is_sqlite:
            engine_args["connect_args"] = {"check_same_thread": False}
        if in_memory:
            engine_args["poolclass"] = StaticPool
        self.engine: Engine = create_engine(db_url, **engine_args)
        if is_sqlite and not in_memory:
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def create(self, record: UserRecord) -> UserRecord:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    _users.insert().values(
                        id=record.id,
                        username=record.username,
                        password_hash=record.password_hash,
                        created_at=record.created_at,
                    )
                )
        except IntegrityError as exc:
            raise DuplicateUser() from exc
        return record

    def find_by_username(self, username: str) -> UserRecord | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_record(row) if row is not None else None

    def find_by_id(self, user_id: str) -> UserRecord | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_record(row) if row is not None else None

    def exists(self, username: str) -> bool:
        with self.engine.connect() as conn:
            row = conn.execute(select(_users.c.id).where(_users.c.username == username)).fetchone()
        return row is not None

    def count(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def close(self) -> None:
        self.engine.dispose()


def _row_to_record(row) -> UserRecord:
    return UserRecord(
        id=row.id,
        username=row.username,
        password_hash=row.password_hash,
        created_at=row.created_at,
    )


def build_store(backend: str, db_url: str = "") -> CredentialStore:
    """Return the backend named by STORE_BACKEND ("memory" or "sql")."""
    if backend == "memory":
        logger.info("Using in-memory credential store")
        return InMemoryCredentialStore()
    if backend == "sql":
        logger.info("Using SQL credential store")
        return SqlCredentialStore(db_url)
    raise ValueError(f"Unknown store backend: {backend!r}")
