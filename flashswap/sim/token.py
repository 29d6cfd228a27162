"""Journaled fungible token and debt-proxy token."""
from __future__ import annotations

import logging

from ..addresses import normalize_address
from ..errors import CollaboratorError
from ..payload import MAX_UINT256
from ..substrate import Substrate

logger = logging.getLogger(__name__)


class TokenError(CollaboratorError):
    pass


class SimToken:
    """Fungible token whose every mutation can be rolled back by the substrate."""

    def __init__(
        self, substrate: Substrate, address: str, symbol: str, decimals: int = 18
    ) -> None:
        self._substrate = substrate
        self.address = normalize_address(address)
        self.symbol = symbol
        self.decimals = decimals
        self.total_supply = 0
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        # Recipients for which transfer() reports failure instead of moving funds.
        self.failing_recipients: set[str] = set()

    # ------------------------------------------------------------------
    # Journaled setters
    # ------------------------------------------------------------------

    def _set_balance(self, holder: str, value: int) -> None:
        previous = self._balances.get(holder, 0)
        self._balances[holder] = value
        self._substrate.record(lambda: self._balances.__setitem__(holder, previous))

    def _set_allowance(self, owner: str, spender: str, value: int) -> None:
        key = (owner, spender)
        previous = self._allowances.get(key, 0)
        self._allowances[key] = value
        self._substrate.record(lambda: self._allowances.__setitem__(key, previous))

    def _set_total_supply(self, value: int) -> None:
        previous = self.total_supply
        self.total_supply = value
        self._substrate.record(lambda: setattr(self, "total_supply", previous))

    def _move(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise TokenError(f"Negative transfer amount: {amount}")
        balance = self.balance_of(sender)
        if balance < amount:
            raise TokenError(
                f"{self.symbol}: balance {balance} of {sender} is less than {amount}"
            )
        self._set_balance(sender, balance - amount)
        self._set_balance(to, self.balance_of(to) + amount)

    # ------------------------------------------------------------------
    # Fungible token surface
    # ------------------------------------------------------------------

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder.lower(), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner.lower(), spender.lower()), 0)

    def approve(self, caller: str, spender: str, amount: int) -> bool:
        self._set_allowance(caller.lower(), spender.lower(), amount)
        return True

    def transfer(self, caller: str, to: str, amount: int) -> bool:
        to = to.lower()
        if to in self.failing_recipients:
            logger.debug("%s: transfer of %d to %s reported as failed", self.symbol, amount, to)
            return False
        self._move(caller.lower(), to, amount)
        return True

    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> bool:
        owner, spender = owner.lower(), caller.lower()
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise TokenError(
                f"{self.symbol}: allowance {allowed} of {spender} over {owner} is less than {amount}"
            )
        if allowed != MAX_UINT256:
            self._set_allowance(owner, spender, allowed - amount)
        self._move(owner, to.lower(), amount)
        return True

    def mint(self, to: str, amount: int) -> None:
        self._set_total_supply(self.total_supply + amount)
        to = to.lower()
        self._set_balance(to, self.balance_of(to) + amount)

    def burn(self, holder: str, amount: int) -> None:
        holder = holder.lower()
        balance = self.balance_of(holder)
        if balance < amount:
            raise TokenError(f"{self.symbol}: cannot burn {amount} from {holder}, balance {balance}")
        self._set_balance(holder, balance - amount)
        self._set_total_supply(self.total_supply - amount)


class SimProxyToken(SimToken):
    """Debt-proxy token minted against supplied underlying.

    ``mint_fee_bps`` withholds a share of each mint so that the minted amount
    differs from the nominal supplied amount.
    """

    def __init__(
        self,
        substrate: Substrate,
        address: str,
        symbol: str,
        underlying: SimToken,
        decimals: int = 18,
        mint_fee_bps: int = 0,
    ) -> None:
        super().__init__(substrate, address, symbol, decimals)
        if not 0 <= mint_fee_bps < 10_000:
            raise ValueError(f"mint_fee_bps out of range: {mint_fee_bps}")
        self.underlying = underlying
        self.mint_fee_bps = mint_fee_bps

    def supply_underlying(self, caller: str, amount: int) -> None:
        if amount <= 0:
            raise TokenError(f"{self.symbol}: supply amount must be positive")
        self.underlying.transfer_from(self.address, caller, self.address, amount)
        minted = amount - amount * self.mint_fee_bps // 10_000
        self.mint(caller, minted)
