"""Game session store and point ledger with Redis backend and in-memory option."""

import asyncio
import copy
import json
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Sequence

import redis.asyncio as redis
from redis.exceptions import LockError, RedisError, WatchError

from config import config
from core.errors import StorageError
from core.ledger import GameLogEntry, LedgerEntry, apply_entries

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """
    Abstract store for game sessions and point balances.

    A session write and the ledger entries it produced are committed as one
    unit: either both land or neither does.
    """

    def __init__(
        self,
        starting_points: int | None = None,
        lock_timeout: float | None = None,
        history_limit: int | None = None,
    ) -> None:
        self._starting_points = (
            config.game.starting_points if starting_points is None else starting_points
        )
        self._lock_timeout = lock_timeout or config.store.lock_timeout
        self._history_limit = history_limit or config.store.history_limit

    @abstractmethod
    async def get(self, session_id: str) -> dict[str, Any] | None:
        """Get session data."""
        ...

    @abstractmethod
    async def get_balance(self, user_id: str) -> int:
        """Get a user's point balance."""
        ...

    @abstractmethod
    async def commit(
        self,
        session: dict[str, Any],
        entries: Sequence[LedgerEntry] = (),
        log: GameLogEntry | None = None,
    ) -> int:
        """
        Persist a session together with its ledger entries.

        Args:
            session: Serialized session (must carry "id" and "userId")
            entries: Ledger entries for the session's user, applied in order
            log: Game log record to append, for settled rounds

        Returns:
            The user's balance after the commit

        Raises:
            InsufficientFunds: An entry would take the balance below zero.
                Nothing is written.
        """
        ...

    @abstractmethod
    async def history(self, user_id: str, limit: int | None = None) -> list[GameLogEntry]:
        """Get a user's settled rounds, newest first."""
        ...

    @abstractmethod
    def lock(self, session_id: str):
        """Async context manager serializing actions on one session."""
        ...

    async def close(self) -> None:
        """Release backend resources."""


class InMemorySessionStore(SessionStore):
    """In-memory session store for local development and tests."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._sessions: dict[str, dict[str, Any]] = {}
        self._balances: dict[str, int] = {}
        self._logs: dict[str, list[GameLogEntry]] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    async def get(self, session_id: str) -> dict[str, Any] | None:
        """Get session data."""
        data = self._sessions.get(session_id)
        return copy.deepcopy(data) if data is not None else None

    async def get_balance(self, user_id: str) -> int:
        """Get a user's point balance."""
        return self._balances.get(user_id, self._starting_points)

    async def commit(
        self,
        session: dict[str, Any],
        entries: Sequence[LedgerEntry] = (),
        log: GameLogEntry | None = None,
    ) -> int:
        """Persist a session together with its ledger entries."""
        # No awaits below: validation and writes happen in one event loop step.
        user_id = session["userId"]
        new_balance = apply_entries(
            self._balances.get(user_id, self._starting_points), entries
        )

        self._sessions[session["id"]] = copy.deepcopy(session)
        self._balances[user_id] = new_balance
        if log is not None:
            logs = self._logs.setdefault(user_id, [])
            logs.insert(0, log)
            del logs[self._history_limit:]
        return new_balance

    async def history(self, user_id: str, limit: int | None = None) -> list[GameLogEntry]:
        """Get a user's settled rounds, newest first."""
        return list(self._logs.get(user_id, [])[: limit or self._history_limit])

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        """
        Serialize actions on one session with a per-session asyncio.Lock.

        The lock entry lives only while someone holds or waits for it, so
        requests for unknown session ids leave nothing behind.
        """
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._lock_users[session_id] = self._lock_users.get(session_id, 0) + 1
        try:
            try:
                async with asyncio.timeout(self._lock_timeout):
                    await lock.acquire()
            except TimeoutError:
                logger.warning("Timed out waiting for lock on session %s", session_id)
                raise StorageError("Game session is busy") from None
            try:
                yield
            finally:
                lock.release()
        finally:
            self._lock_users[session_id] -= 1
            if not self._lock_users[session_id]:
                del self._lock_users[session_id]
                del self._locks[session_id]


class RedisSessionStore(SessionStore):
    """Redis-backed session store and ledger."""

    def __init__(self, redis_client: "redis.Redis", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._redis = redis_client
        self._prefix = "blackjack:"

    def _key(self, session_id: str) -> str:
        """Get Redis key for session."""
        return f"{self._prefix}session:{session_id}"

    def _balance_key(self, user_id: str) -> str:
        return f"{self._prefix}balance:{user_id}"

    def _history_key(self, user_id: str) -> str:
        return f"{self._prefix}history:{user_id}"

    async def get(self, session_id: str) -> dict[str, Any] | None:
        """Get session data."""
        try:
            data = await self._redis.get(self._key(session_id))
        except RedisError as exc:
            raise StorageError() from exc
        if data is None:
            return None
        return json.loads(data)

    async def get_balance(self, user_id: str) -> int:
        """Get a user's point balance."""
        try:
            value = await self._redis.get(self._balance_key(user_id))
        except RedisError as exc:
            raise StorageError() from exc
        return self._starting_points if value is None else int(value)

    async def commit(
        self,
        session: dict[str, Any],
        entries: Sequence[LedgerEntry] = (),
        log: GameLogEntry | None = None,
    ) -> int:
        """
        Persist a session together with its ledger entries.

        The balance key is WATCHed while the new balance is computed, then
        session, balance and log are written in a single MULTI/EXEC. A
        concurrent balance change aborts the EXEC and the balance is re-read.
        """
        user_id = session["userId"]
        balance_key = self._balance_key(user_id)
        history_key = self._history_key(user_id)

        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                while True:
                    try:
                        await pipe.watch(balance_key)
                        current = await pipe.get(balance_key)
                        balance = self._starting_points if current is None else int(current)
                        new_balance = apply_entries(balance, entries)

                        pipe.multi()
                        pipe.set(self._key(session["id"]), json.dumps(session))
                        pipe.set(balance_key, new_balance)
                        if log is not None:
                            pipe.lpush(history_key, json.dumps(log.to_dict()))
                            pipe.ltrim(history_key, 0, self._history_limit - 1)
                        await pipe.execute()
                        return new_balance
                    except WatchError:
                        logger.debug("Balance for %s changed during commit, retrying", user_id)
                        continue
        except RedisError as exc:
            raise StorageError() from exc

    async def history(self, user_id: str, limit: int | None = None) -> list[GameLogEntry]:
        """Get a user's settled rounds, newest first."""
        limit = limit or self._history_limit
        try:
            rows = await self._redis.lrange(self._history_key(user_id), 0, limit - 1)
        except RedisError as exc:
            raise StorageError() from exc
        return [GameLogEntry.from_dict(json.loads(row)) for row in rows]

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        """Serialize actions on one session with a Redis lock."""
        lock = self._redis.lock(
            f"{self._prefix}lock:{session_id}",
            timeout=self._lock_timeout * 2,
            blocking_timeout=self._lock_timeout,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as exc:
            raise StorageError() from exc
        if not acquired:
            logger.warning("Timed out waiting for lock on session %s", session_id)
            raise StorageError("Game session is busy")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                logger.warning("Lock on session %s expired before release", session_id)

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self._redis.aclose()


# Global session store instance
_session_store: SessionStore | None = None


async def get_session_store() -> SessionStore:
    """Get or create the session store."""
    global _session_store

    if _session_store is not None:
        return _session_store

    if config.store.backend == "redis":
        redis_client = redis.from_url(config.redis.url)
        try:
            await redis_client.ping()
        except RedisError as exc:
            logger.error("Redis at %s:%s is unreachable", config.redis.host, config.redis.port)
            raise StorageError() from exc
        _session_store = RedisSessionStore(redis_client)
        logger.info("Using Redis session store at %s:%s", config.redis.host, config.redis.port)
    else:
        _session_store = InMemorySessionStore()
        logger.info("Using in-memory session store")

    return _session_store


async def close_session_store() -> None:
    """Close and forget the global session store."""
    global _session_store

    if _session_store is not None:
        await _session_store.close()
        _session_store = None
