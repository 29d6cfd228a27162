"""Notifier protocol: delivery channel for settlement reports."""
from typing import Protocol


class Notifier(Protocol):
    """Abstract interface for sending settlement notifications."""

    async def send_alert(self, message: str, subject: str = "") -> bool: ...

    async def send_log(self, message: str, silent: bool = True) -> bool: ...
