"""Protocol interfaces for the external collaborators."""
from .ledger import LendingLedger
from .notifier import Notifier
from .pool import FlashSwapCallee, Pool, ReserveSource
from .token import FungibleToken, ProxyToken

__all__ = [
    "FlashSwapCallee",
    "FungibleToken",
    "LendingLedger",
    "Notifier",
    "Pool",
    "ProxyToken",
    "ReserveSource",
]
