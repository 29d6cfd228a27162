"""Data models. All frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Reserves:
    """Pool reserves observed in a single read, ordered by asset role."""

    base: int
    quote: int
    block_timestamp: int = 0


@dataclass(frozen=True)
class LoanRequest:
    """Decoded callback request; lives for one settlement only."""

    initiator: str
    borrower: str
    debt_token: str
    quote_amount: int
    min_profit: int


@dataclass(frozen=True)
class SettlementResult:
    """Record emitted once per successful settlement."""

    initiator: str
    borrower: str
    debt_token: str
    borrowed_amount: int
    minted_amount: int
    collateral_received: int
    repayment_owed: int
    profit: int
