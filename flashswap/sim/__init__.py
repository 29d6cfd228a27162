"""In-memory collaborators bound to a :class:`~flashswap.substrate.Substrate`.

These stand in for the pool, the ledger and the token contracts when running
simulations and tests. They implement only what the executor calls.
"""
from .ledger import LedgerError, SimLendingLedger
from .pool import ConstantProductPool, PoolError
from .token import SimProxyToken, SimToken, TokenError

__all__ = [
    "ConstantProductPool",
    "LedgerError",
    "PoolError",
    "SimLendingLedger",
    "SimProxyToken",
    "SimToken",
    "TokenError",
]
