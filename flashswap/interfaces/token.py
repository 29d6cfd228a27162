"""Fungible token protocols: balances, allowances and proxy-token minting."""
from typing import Protocol


class FungibleToken(Protocol):
    """Standard fungible-asset primitives. ``caller`` is the acting identity."""

    @property
    def address(self) -> str: ...

    def balance_of(self, holder: str) -> int: ...

    def allowance(self, owner: str, spender: str) -> int: ...

    def approve(self, caller: str, spender: str, amount: int) -> bool: ...

    def transfer(self, caller: str, to: str, amount: int) -> bool: ...


class ProxyToken(FungibleToken, Protocol):
    """Debt-proxy token issuer; mints proxy tokens for supplied underlying."""

    def supply_underlying(self, caller: str, amount: int) -> None: ...
