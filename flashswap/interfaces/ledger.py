"""Lending ledger protocol. Only the liquidation entry point is used."""
from typing import Protocol


class LendingLedger(Protocol):
    """External ledger owning debt positions and collateral custody."""

    @property
    def address(self) -> str: ...

    def liquidate_borrow(
        self,
        caller: str,
        borrower: str,
        debt_token: str,
        repay_amount: int,
        collateral_token: str,
    ) -> None: ...
