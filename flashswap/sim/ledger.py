"""Lending ledger holding debt positions and custodying collateral."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from fractions import Fraction

from ..addresses import normalize_address
from ..errors import CollaboratorError
from ..substrate import Substrate
from .token import SimProxyToken, SimToken

logger = logging.getLogger(__name__)


class LedgerError(CollaboratorError):
    pass


@dataclass
class DebtPosition:
    debt: int = 0
    collateral: int = 0


class SimLendingLedger:
    """Tracks one collateral asset per borrower against a debt-proxy token.

    Valuation uses a fixed ``collateral_price`` (debt units per collateral
    unit) that callers move explicitly to make positions go underwater.
    """

    def __init__(
        self,
        substrate: Substrate,
        address: str,
        collateral_token: SimToken,
        collateral_price: Fraction,
        collateralization_ratio: Fraction = Fraction(3, 2),
        liquidation_incentive: Fraction = Fraction(11, 10),
    ) -> None:
        self._substrate = substrate
        self.address = normalize_address(address)
        self.collateral_token = collateral_token
        self.collateral_price = Fraction(collateral_price)
        self.collateralization_ratio = Fraction(collateralization_ratio)
        self.liquidation_incentive = Fraction(liquidation_incentive)
        self._debt_tokens: dict[str, SimProxyToken] = {}
        self._positions: dict[tuple[str, str], DebtPosition] = {}

    def list_debt_token(self, token: SimProxyToken) -> None:
        self._debt_tokens[token.address] = token

    def position(self, borrower: str, debt_token: str) -> DebtPosition:
        return self._positions.get((borrower.lower(), debt_token.lower()), DebtPosition())

    def _set_position(self, borrower: str, debt_token: str, debt: int, collateral: int) -> None:
        key = (borrower.lower(), debt_token.lower())
        previous = self._positions.get(key)
        self._positions[key] = DebtPosition(debt=debt, collateral=collateral)

        def undo() -> None:
            if previous is None:
                self._positions.pop(key, None)
            else:
                self._positions[key] = previous

        self._substrate.record(undo)

    def open_position(self, borrower: str, debt_token: str, debt: int, collateral: int) -> None:
        """Record a borrow backed by ``collateral`` held in custody by the ledger."""
        if debt_token.lower() not in self._debt_tokens:
            raise LedgerError(f"Debt token {debt_token} is not listed")
        current = self.position(borrower, debt_token)
        self.collateral_token.mint(self.address, collateral)
        self._set_position(
            borrower, debt_token, current.debt + debt, current.collateral + collateral
        )

    def is_underwater(self, borrower: str, debt_token: str) -> bool:
        pos = self.position(borrower, debt_token)
        if pos.debt == 0:
            return False
        return pos.collateral * self.collateral_price < pos.debt * self.collateralization_ratio

    def seizable_collateral(self, repay_amount: int) -> int:
        return int(repay_amount * self.liquidation_incentive / self.collateral_price)

    def liquidate_borrow(
        self,
        caller: str,
        borrower: str,
        debt_token: str,
        repay_amount: int,
        collateral_token: str,
    ) -> None:
        proxy = self._debt_tokens.get(debt_token.lower())
        if proxy is None:
            raise LedgerError(f"Debt token {debt_token} is not listed")
        if collateral_token.lower() != self.collateral_token.address:
            raise LedgerError(f"Collateral {collateral_token} is not held by this ledger")
        if repay_amount <= 0:
            raise LedgerError("Repay amount must be positive")
        if not self.is_underwater(borrower, debt_token):
            raise LedgerError(f"Account {borrower} is not underwater")

        pos = self.position(borrower, debt_token)
        if repay_amount > pos.debt:
            raise LedgerError(f"Repay amount {repay_amount} exceeds debt {pos.debt}")
        seized = self.seizable_collateral(repay_amount)
        if seized > pos.collateral:
            raise LedgerError(
                f"Seizable collateral {seized} exceeds deposited {pos.collateral}"
            )

        proxy.burn(caller, repay_amount)
        self._set_position(borrower, debt_token, pos.debt - repay_amount, pos.collateral - seized)
        self.collateral_token.transfer(self.address, caller, seized)
        logger.debug(
            "Liquidated %s: repaid %d %s, seized %d %s",
            borrower, repay_amount, proxy.symbol, seized, self.collateral_token.symbol,
        )
