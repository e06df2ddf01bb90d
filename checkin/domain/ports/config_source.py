from typing import Protocol


class ConfigSourcePort(Protocol):
    async def get(self, key: str) -> str | None:
        """Read a value from durable configuration; None if unset."""
