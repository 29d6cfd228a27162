"""Trusted-counterparty configuration, mutable by the admin only."""
from __future__ import annotations

import logging

from .addresses import normalize_address, same_address
from .errors import NotAuthorized
from .interfaces.ledger import LendingLedger
from .interfaces.pool import Pool

logger = logging.getLogger(__name__)


class Registry:
    """Holds the active trusted pool, the ledger, and a pool registry.

    Only the active pool is trusted by the settlement callback. Pools in
    ``pairs`` become trusted through :meth:`activate_pool`.
    """

    def __init__(self, admin: str) -> None:
        self.admin = normalize_address(admin)
        self.pool: Pool | None = None
        self.ledger: LendingLedger | None = None
        self.pairs: dict[str, Pool] = {}

    def _only_admin(self, caller: str, action: str) -> None:
        if not same_address(caller, self.admin):
            raise NotAuthorized(caller, action)

    def configure(self, caller: str, pool: Pool, ledger: LendingLedger) -> None:
        self._only_admin(caller, "configure")
        self.pool = pool
        self.ledger = ledger
        logger.info("Configured pool %s and ledger %s", pool.address, ledger.address)

    def register_pool(self, caller: str, pool_id: str, pool: Pool) -> None:
        self._only_admin(caller, "register a pool")
        if pool_id in self.pairs:
            logger.info("Replacing pool '%s': %s -> %s", pool_id, self.pairs[pool_id].address, pool.address)
        self.pairs[pool_id] = pool

    def activate_pool(self, caller: str, pool_id: str) -> None:
        self._only_admin(caller, "activate a pool")
        if self.ledger is None:
            raise ValueError("Configure a ledger before activating a pool")
        self.pool = self.pairs[pool_id]
        logger.info("Activated pool '%s' (%s)", pool_id, self.pool.address)

    def is_trusted_pool(self, address: str) -> bool:
        return self.pool is not None and same_address(address, self.pool.address)
