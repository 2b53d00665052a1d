import logging
import secrets
import time

import redis.asyncio as redis
from pydantic import BaseModel, ConfigDict, Field

from technews.config import settings

logger = logging.getLogger(__name__)


class SessionData(BaseModel):
    """Server-side record bound to an authenticated client."""

    user_id: int
    username: str
    logged_in: bool = Field(True, alias="loggedIn")
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------

class MemorySessionBackend:
    """Process-local backend.  Records vanish with the process."""

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._records: dict[str, tuple[float, str]] = {}

    async def set(self, key: str, value: str, ttl: int) -> None:
        now = self._clock()
        self._prune(now)
        self._records[key] = (now + ttl, value)

    async def get(self, key: str) -> str | None:
        entry = self._records.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at <= self._clock():
            del self._records[key]
            return None
        return value

    async def delete(self, key: str) -> int:
        return 1 if self._records.pop(key, None) is not None else 0

    async def close(self) -> None:
        self._records.clear()

    def _prune(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._records.items() if expires_at <= now]
        for key in expired:
            del self._records[key]

    def __len__(self) -> int:
        return len(self._records)


class RedisSessionBackend:
    """Redis backend; expiry is delegated to the key TTL."""

    def __init__(self, url: str) -> None:
        self._redis = redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )

    async def ping(self) -> None:
        await self._redis.ping()

    async def set(self, key: str, value: str, ttl: int) -> None:
        await self._redis.set(key, value, ex=ttl)

    async def get(self, key: str) -> str | None:
        return await self._redis.get(key)

    async def delete(self, key: str) -> int:
        return await self._redis.delete(key)

    async def close(self) -> None:
        await self._redis.aclose()


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class SessionStore:
    """
    Keyed session store: token -> ``SessionData``.

    Unlike a cache, backend errors are not swallowed.  A session that
    could not be written must fail the request that tried to open it,
    so ``RedisError`` propagates to the store-failure handler.
    """

    key_prefix = "session:"

    def __init__(self, backend=None, ttl: int | None = None) -> None:
        self.backend = backend
        self.ttl = ttl or settings.SESSION_TTL

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Build the configured backend.  Called once at application startup."""
        if self.backend is not None:
            return
        if settings.SESSION_BACKEND == "memory":
            self.backend = MemorySessionBackend()
            logger.warning("Using in-memory session store; sessions are lost on restart")
            return
        backend = RedisSessionBackend(settings.REDIS_URL)
        await backend.ping()
        self.backend = backend
        logger.info("Session store connected: %s", settings.REDIS_URL)

    async def disconnect(self) -> None:
        if self.backend is not None:
            await self.backend.close()
            self.backend = None

    def _key(self, token: str) -> str:
        return f"{self.key_prefix}{token}"

    def _require_backend(self):
        if self.backend is None:
            raise RuntimeError("Session store is not connected")
        return self.backend

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def create(self, data: SessionData) -> str:
        """Persist *data* under a fresh token and return the token."""
        backend = self._require_backend()
        token = secrets.token_urlsafe(32)
        await backend.set(self._key(token), data.model_dump_json(by_alias=True), self.ttl)
        return token

    async def get(self, token: str) -> SessionData | None:
        """Return the record for *token*, or None if absent or expired."""
        raw = await self._require_backend().get(self._key(token))
        if raw is None:
            return None
        return SessionData.model_validate_json(raw)

    async def destroy(self, token: str) -> bool:
        return await self._require_backend().delete(self._key(token)) > 0


# Module-level singleton shared across all request handlers.
sessions = SessionStore()
