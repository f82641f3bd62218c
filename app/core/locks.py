"""
Redis-based distributed lock for singleton background jobs.

The request path never takes this lock: every order and refund transition
is a single conditional UPDATE (see core.transitions). The lock only keeps
two workers from running the same periodic sweep at once.

Usage:
    from core.locks import DistributedLock

    with DistributedLock("settlement:audit", ttl=120, blocking=False):
        sweep()
"""

from __future__ import annotations

import time
import uuid
from typing import TYPE_CHECKING

from django_redis import get_redis_connection

from core.exceptions import LockAcquisitionError

if TYPE_CHECKING:
    from redis import Redis


class DistributedLock:
    """
    Redis lock with TTL and token-based ownership.

    Args:
        key: Lock identifier (prefixed with "lock:")
        ttl: Seconds before the lock auto-releases
        blocking: If True, acquire() polls until ``timeout``
        timeout: Maximum wait in seconds (blocking mode only)

    Raises:
        LockAcquisitionError: From acquire()/__enter__ when the lock is held
    """

    # Atomic check-and-delete so we never release someone else's lock
    RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    def __init__(
        self,
        key: str,
        ttl: int = 30,
        blocking: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self.key = f"lock:{key}"
        self.ttl = ttl
        self.blocking = blocking
        self.timeout = timeout
        self._token: str | None = None
        self._redis: Redis | None = None

    def _get_redis(self) -> Redis:
        if self._redis is None:
            self._redis = get_redis_connection("default")
        return self._redis

    def _try_acquire(self, redis: Redis) -> bool:
        return bool(redis.set(self.key, self._token, nx=True, ex=self.ttl))

    def acquire(self) -> bool:
        self._token = str(uuid.uuid4())
        redis = self._get_redis()

        if self.blocking:
            deadline = time.monotonic() + self.timeout
            while time.monotonic() < deadline:
                if self._try_acquire(redis):
                    return True
                time.sleep(0.05)
            self._token = None
            raise LockAcquisitionError(
                f"Failed to acquire lock '{self.key}' within {self.timeout}s",
                details={"key": self.key, "timeout": self.timeout},
            )

        if not self._try_acquire(redis):
            self._token = None
            raise LockAcquisitionError(
                f"Lock '{self.key}' is already held",
                details={"key": self.key},
            )
        return True

    def release(self) -> bool:
        """Release the lock if we hold it. Safe to call more than once."""
        if self._token is None:
            return False
        result = self._get_redis().eval(self.RELEASE_SCRIPT, 1, self.key, self._token)
        self._token = None
        return bool(result)

    @property
    def is_held(self) -> bool:
        return self._token is not None

    def __enter__(self) -> DistributedLock:
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
