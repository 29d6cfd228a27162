"""Formats settlement outcomes and dispatches them to notifiers."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..config import NotificationsConfig
from ..errors import FlashSwapError, InsufficientProfit
from ..interfaces.notifier import Notifier
from ..models import SettlementResult
from ..notifications import EmailNotifier, TelegramNotifier

logger = logging.getLogger(__name__)


class SettlementReporter:
    """Sends one message per settlement outcome to every enabled notifier."""

    def __init__(self, notifiers: list[Notifier] | None = None) -> None:
        self._notifiers: list[Notifier] = list(notifiers or [])

    @classmethod
    def from_config(cls, config: NotificationsConfig) -> "SettlementReporter":
        notifiers: list[Notifier] = []
        if config.telegram.enabled:
            notifiers.append(TelegramNotifier(config.telegram))
        if config.email.enabled:
            notifiers.append(EmailNotifier(config.email))
        return cls(notifiers)

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _short(address: str) -> str:
        if len(address) > 16:
            return f"{address[:10]}...{address[-6:]}"
        return address

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    def format_result(self, result: SettlementResult) -> str:
        return (
            f"Liquidated {self._short(result.borrower)}\n"
            f"\n"
            f"Debt token: {self._short(result.debt_token)}\n"
            f"Borrowed: {result.borrowed_amount}\n"
            f"Minted: {result.minted_amount}\n"
            f"Collateral seized: {result.collateral_received}\n"
            f"Repaid to pool: {result.repayment_owed}\n"
            f"Profit: {result.profit}\n"
            f"\n"
            f"Initiator: {self._short(result.initiator)}\n"
            f"{self._now_str()} UTC"
        )

    def format_failure(self, error: FlashSwapError) -> str:
        lines = [f"Settlement aborted: {type(error).__name__}", "", str(error)]
        if isinstance(error, InsufficientProfit):
            shortfall = error.repayment_owed + error.min_profit + 1 - error.collateral_received
            lines.append(f"Shortfall: {shortfall}")
        lines += ["", f"{self._now_str()} UTC"]
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    async def report(self, result: SettlementResult) -> None:
        message = self.format_result(result)
        for notifier in self._notifiers:
            try:
                await notifier.send_alert(message, subject="Flash liquidation settled")
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)

    async def report_failure(self, error: FlashSwapError) -> None:
        message = self.format_failure(error)
        for notifier in self._notifiers:
            try:
                await notifier.send_log(message, silent=True)
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)
