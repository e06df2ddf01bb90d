from typing import Protocol


class SyncStepPort(Protocol):
    async def run(self) -> None:
        """Run one synchronization pass (contacts, calendar, ...)."""


class NotifierPort(Protocol):
    async def notify(self, message: str) -> None:
        """Post a message to the admin channel."""
