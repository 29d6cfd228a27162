"""Transactional execution substrate.

Collaborators bound to a :class:`Substrate` register the inverse of every
state mutation they make. ``atomic()`` frames collect those inverses; a frame
that exits with an exception replays them in reverse so the world looks as if
the frame never ran. Events emitted inside a frame are held back until the
outermost frame commits.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, TypeVar

from .addresses import normalize_address

logger = logging.getLogger(__name__)

UndoAction = Callable[[], None]
Subscriber = Callable[[Any], None]
T = TypeVar("T")


class _Frame:
    def __init__(self) -> None:
        self.undo_log: list[UndoAction] = []
        self.events: list[Any] = []

    def merge(self, child: "_Frame") -> None:
        self.undo_log.extend(child.undo_log)
        self.events.extend(child.events)

    def rollback(self) -> None:
        for undo in reversed(self.undo_log):
            undo()
        self.undo_log.clear()
        self.events.clear()


class Substrate:
    """Single-threaded execution environment with all-or-nothing frames."""

    def __init__(self) -> None:
        self._frames: list[_Frame] = []
        self._subscribers: list[Subscriber] = []
        self._contracts: dict[str, Any] = {}
        self._senders: list[str] = []

    # ------------------------------------------------------------------
    # Address book
    # ------------------------------------------------------------------

    def deploy(self, contract: Any) -> Any:
        """Make ``contract`` reachable by its ``address`` attribute."""
        address = normalize_address(contract.address)
        if address in self._contracts:
            raise ValueError(f"Address already in use: {address}")
        self._contracts[address] = contract
        return contract

    def contract(self, address: str) -> Any:
        try:
            return self._contracts[address.lower()]
        except KeyError:
            raise LookupError(f"No contract at {address}") from None

    # ------------------------------------------------------------------
    # Contract-to-contract calls
    # ------------------------------------------------------------------

    @property
    def caller(self) -> str | None:
        """Sender of the innermost :meth:`call` in progress, if any."""
        return self._senders[-1] if self._senders else None

    def call(self, sender: Any, method: Callable[..., T], *args: Any) -> T:
        """Invoke ``method`` with :attr:`caller` set to ``sender``'s address.

        ``sender`` must be the very object deployed at its address, so a
        caller identity cannot be claimed with a bare address string.
        """
        address = normalize_address(sender.address)
        if self._contracts.get(address) is not sender:
            raise LookupError(f"Sender {address} is not the contract deployed there")
        self._senders.append(address)
        try:
            return method(*args)
        finally:
            self._senders.pop()

    # ------------------------------------------------------------------
    # Journal
    # ------------------------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return bool(self._frames)

    @property
    def depth(self) -> int:
        return len(self._frames)

    def record(self, undo: UndoAction) -> None:
        """Register the inverse of a mutation that just happened."""
        if self._frames:
            self._frames[-1].undo_log.append(undo)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        frame = _Frame()
        self._frames.append(frame)
        try:
            yield
        except BaseException:
            self._frames.pop()
            logger.debug(
                "Rolling back %d state change(s) at depth %d",
                len(frame.undo_log), len(self._frames) + 1,
            )
            frame.rollback()
            raise
        self._frames.pop()
        if self._frames:
            self._frames[-1].merge(frame)
        else:
            self._publish(frame.events)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def emit(self, event: Any) -> None:
        if self._frames:
            self._frames[-1].events.append(event)
        else:
            self._publish([event])

    def _publish(self, events: list[Any]) -> None:
        for event in events:
            for subscriber in self._subscribers:
                try:
                    subscriber(event)
                except Exception as e:
                    logger.error("Event subscriber failed: %s", e)
