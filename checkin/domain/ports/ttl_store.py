from typing import Protocol


class TTLStorePort(Protocol):
    """
    Shared key/value store with per-key expiry.

    Every operation is atomic for the single key it touches; nothing here
    spans several keys.
    """

    async def get(self, key: str) -> str | None:
        """Return the value, or None if absent or expired."""

    async def set(self, key: str, value: str, ttl_seconds: float | None = None) -> None:
        """Store/replace the value; ttl_seconds=None means no expiry."""

    async def delete(self, key: str) -> None:
        """Remove the key if present."""

    async def take(self, key: str) -> str | None:
        """Read and remove in one step. Of two concurrent callers only one gets the value."""

    async def compare_and_delete(self, key: str, expected: str) -> bool:
        """Delete key only if its value equals `expected`. True if deleted."""

    async def keys(self, pattern: str) -> list[str]:
        """Glob-style key enumeration. O(n) over the key space."""

    async def try_acquire_lock(self, key: str, owner: str, ttl_seconds: float) -> bool:
        """Set key=owner only if the key is absent. True if we now hold it."""

    async def release_lock(self, key: str, owner: str) -> bool:
        """Delete key only if its value is still `owner`. True if deleted."""
