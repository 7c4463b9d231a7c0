"""Cooldown Store for the faucet.

Features:
- One Redis key per lower-cased address holding the last claim time (ms)
- Key TTL equal to the cooldown period so stale records expire on their own
- Connection and command failures surfaced as StoreUnavailableError
- Blocking client calls run in a worker thread, off the event loop
"""

import asyncio
import logging

from redis import Redis, RedisError

logger = logging.getLogger(__name__)

KEY_PREFIX = "faucet-cooldown:"
DEFAULT_TIMEOUT_SECONDS = 5.0


class StoreUnavailableError(Exception):
    """Raised when the cooldown store cannot be reached."""


def format_cooldown(remaining_ms: int) -> str:
    """Format remaining cooldown for user display."""
    seconds = max(1, remaining_ms // 1000)
    if seconds < 60:
        return f"Please wait {seconds} seconds before next request"
    if seconds < 3600:
        return f"Please wait {seconds // 60}m {seconds % 60}s before next request"
    hours = seconds / 3600
    return f"Please try again in {hours:.1f} hours"


def normalize_address(address: str) -> str:
    """Canonical cooldown key component for an address."""
    return address.strip().lower()


class CooldownStore:
    """Redis-backed mapping of address to last successful claim.

    Parameters
    ----------
    redis : Redis
        Redis client. Decoded responses are expected.
    """

    def __init__(self, redis: Redis):
        self._redis = redis

    @classmethod
    def from_url(
        cls, redis_url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS
    ) -> "CooldownStore":
        """Create a store for a Redis URL.

        The connection is established lazily on the first command. Connecting
        and every command give up after ``timeout`` seconds, so an unreachable
        server surfaces as StoreUnavailableError.
        """
        return cls(
            Redis.from_url(
                redis_url,
                decode_responses=True,
                socket_timeout=timeout,
                socket_connect_timeout=timeout,
            )
        )

    def _key(self, address: str) -> str:
        return f"{KEY_PREFIX}{normalize_address(address)}"

    async def _call(self, command: str, *args, **kwargs):
        try:
            return await asyncio.to_thread(getattr(self._redis, command), *args, **kwargs)
        except RedisError as e:
            raise StoreUnavailableError(str(e)) from e

    async def get_last_claim(self, address: str) -> int | None:
        """Get the last claim timestamp for an address.

        Parameters
        ----------
        address : str
            Recipient address, any casing.

        Returns
        -------
        int | None
            Milliseconds since epoch, or None if no live record exists.

        Raises
        ------
        StoreUnavailableError
            If Redis cannot be reached.
        """
        value = await self._call("get", self._key(address))
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            logger.warning(
                "Ignoring malformed cooldown record",
                extra={"address": normalize_address(address), "value": value},
            )
            return None

    async def set_last_claim(self, address: str, timestamp_ms: int, ttl_seconds: int) -> None:
        """Record a claim for an address, overwriting any previous one.

        Raises
        ------
        StoreUnavailableError
            If Redis cannot be reached.
        """
        await self._call("set", self._key(address), str(timestamp_ms), ex=ttl_seconds)

        logger.debug(
            "Cooldown recorded",
            extra={"address": normalize_address(address), "ttl_seconds": ttl_seconds},
        )

    async def clear(self, address: str) -> bool:
        """Remove the cooldown for an address (operator function).

        Returns
        -------
        bool
            True if a record existed.
        """
        removed = await self._call("delete", self._key(address))

        logger.info("Cooldown reset", extra={"address": normalize_address(address)})
        return bool(removed)

    async def ping(self) -> bool:
        """Check store connectivity."""
        return bool(await self._call("ping"))
