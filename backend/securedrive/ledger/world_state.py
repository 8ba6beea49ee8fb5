"""
Keyed document store the services run against.

Writes are staged until ``commit()``; an operation that raises before
committing leaves the store untouched once the caller rolls back.
"""
import json
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, Optional, Tuple, Type, TypeVar

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from securedrive.core.exceptions import InvalidArgument, NotFound
from securedrive.ledger.selectors import matches, validate_selector
from securedrive.models.state import StateEntry
from securedrive.schemas.common import LedgerRecord


logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=LedgerRecord)


def _decode(raw: bytes) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        return None


def _check_key(key: str) -> None:
    if not key:
        raise InvalidArgument("world-state key must not be empty")


class WorldState(ABC):
    """Abstract keyed store: point get/put/delete plus selector queries."""

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Return the value under ``key`` or None."""

    @abstractmethod
    async def put(self, key: str, value: bytes) -> None:
        """Write ``value`` under ``key``."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``; a missing key is not an error."""

    @abstractmethod
    def query(self, selector: Dict[str, Any]) -> AsyncIterator[Tuple[str, bytes]]:
        """Yield (key, value) pairs whose decoded document matches ``selector``."""

    @abstractmethod
    async def compare_and_put(
        self,
        key: str,
        expected: Optional[bytes],
        value: bytes
    ) -> bool:
        """
        Write ``value`` only if the current value equals ``expected``
        (None meaning "absent"). Returns whether the write happened.
        """

    @abstractmethod
    async def commit(self) -> None:
        """Make staged writes durable."""

    @abstractmethod
    async def rollback(self) -> None:
        """Discard staged writes."""

    async def get_record(self, key: str, record_cls: Type[RecordT]) -> Optional[RecordT]:
        raw = await self.get(key)
        if raw is None:
            return None
        return record_cls.from_bytes(raw)

    async def require_record(
        self,
        key: str,
        record_cls: Type[RecordT],
        description: str
    ) -> RecordT:
        record = await self.get_record(key, record_cls)
        if record is None:
            raise NotFound(f"{description} not found")
        return record

    async def put_record(self, key: str, record: LedgerRecord) -> None:
        await self.put(key, record.to_bytes())

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None


class InMemoryWorldState(WorldState):
    """Dict-backed store for tests and single-process use."""

    _DELETED = None

    def __init__(self):
        self._committed: Dict[str, bytes] = {}
        self._staged: Dict[str, Optional[bytes]] = {}
        self._lock = threading.Lock()

    def _current(self, key: str) -> Optional[bytes]:
        if key in self._staged:
            return self._staged[key]
        return self._committed.get(key)

    async def get(self, key: str) -> Optional[bytes]:
        _check_key(key)
        with self._lock:
            return self._current(key)

    async def put(self, key: str, value: bytes) -> None:
        _check_key(key)
        with self._lock:
            self._staged[key] = bytes(value)

    async def delete(self, key: str) -> None:
        _check_key(key)
        with self._lock:
            self._staged[key] = self._DELETED

    async def query(self, selector: Dict[str, Any]) -> AsyncIterator[Tuple[str, bytes]]:
        validate_selector(selector)
        with self._lock:
            keys = sorted(set(self._committed) | set(self._staged))
            snapshot = [(k, self._current(k)) for k in keys]

        for key, value in snapshot:
            if value is None:
                continue
            if matches(selector, key, _decode(value)):
                yield key, value

    async def compare_and_put(
        self,
        key: str,
        expected: Optional[bytes],
        value: bytes
    ) -> bool:
        _check_key(key)
        with self._lock:
            if self._current(key) != expected:
                return False
            self._staged[key] = bytes(value)
            return True

    async def commit(self) -> None:
        with self._lock:
            for key, value in self._staged.items():
                if value is None:
                    self._committed.pop(key, None)
                else:
                    self._committed[key] = value
            self._staged.clear()

    async def rollback(self) -> None:
        with self._lock:
            self._staged.clear()


class SQLWorldState(WorldState):
    """World state persisted in the ``state_entries`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _entry(self, key: str) -> Optional[StateEntry]:
        result = await self.db.execute(
            select(StateEntry).where(StateEntry.key == key)
        )
        return result.scalar_one_or_none()

    async def get(self, key: str) -> Optional[bytes]:
        _check_key(key)
        entry = await self._entry(key)
        return entry.value if entry else None

    async def put(self, key: str, value: bytes) -> None:
        _check_key(key)
        entry = await self._entry(key)
        if entry:
            entry.value = value
            entry.version = entry.version + 1
        else:
            self.db.add(StateEntry(key=key, value=value, version=1))
        await self.db.flush()

    async def delete(self, key: str) -> None:
        _check_key(key)
        entry = await self._entry(key)
        if entry:
            await self.db.delete(entry)
            await self.db.flush()

    async def query(self, selector: Dict[str, Any]) -> AsyncIterator[Tuple[str, bytes]]:
        validate_selector(selector)
        result = await self.db.execute(
            select(StateEntry.key, StateEntry.value).order_by(StateEntry.key)
        )
        rows = result.all()

        for key, value in rows:
            if matches(selector, key, _decode(value)):
                yield key, value

    async def compare_and_put(
        self,
        key: str,
        expected: Optional[bytes],
        value: bytes
    ) -> bool:
        _check_key(key)
        if expected is None:
            if await self._entry(key) is not None:
                return False
            self.db.add(StateEntry(key=key, value=value, version=1))
            try:
                await self.db.flush()
            except IntegrityError:
                logger.warning("Conditional insert of %s lost a race", key)
                await self.db.rollback()
                return False
            return True

        result = await self.db.execute(
            update(StateEntry)
            .where(StateEntry.key == key, StateEntry.value == expected)
            .values(value=value, version=StateEntry.version + 1)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
