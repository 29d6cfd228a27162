"""Builds an in-memory world from config and runs one flash liquidation."""
from __future__ import annotations

import logging

from ..config import AppConfig
from ..executor import FlashLiquidator, request_flash_liquidation
from ..models import SettlementResult
from ..registry import Registry
from ..sim import ConstantProductPool, SimLendingLedger, SimProxyToken, SimToken
from ..substrate import Substrate

logger = logging.getLogger(__name__)


class Simulation:
    """Deploys pool, ledger and tokens on a fresh substrate per config."""

    def __init__(self, config: AppConfig) -> None:
        if config.simulation is None:
            raise ValueError("No 'simulation' section in configuration")
        self._config = config
        ex, sim = config.executor, config.simulation

        self.substrate = Substrate()
        self.base = self.substrate.deploy(SimToken(self.substrate, ex.base_token, "BASE"))
        self.quote = self.substrate.deploy(SimToken(self.substrate, ex.quote_token, "QUOTE"))
        self.proxy = self.substrate.deploy(
            SimProxyToken(
                self.substrate,
                sim.debt_token,
                "PROXY",
                underlying=self.quote,
                mint_fee_bps=sim.mint_fee_bps,
            )
        )

        # Pairs order their tokens by address.
        token0, token1 = sorted((self.base, self.quote), key=lambda t: t.address)
        self.pool = self.substrate.deploy(
            ConstantProductPool(self.substrate, ex.pool, token0, token1)
        )
        self.base.mint(self.pool.address, sim.base_reserve)
        self.quote.mint(self.pool.address, sim.quote_reserve)
        self.pool.sync()

        self.ledger = self.substrate.deploy(
            SimLendingLedger(
                self.substrate,
                ex.ledger,
                collateral_token=self.base,
                collateral_price=sim.collateral_price,
                collateralization_ratio=sim.collateralization_ratio,
                liquidation_incentive=sim.liquidation_incentive,
            )
        )
        self.ledger.list_debt_token(self.proxy)
        self.ledger.open_position(sim.borrower, self.proxy.address, sim.debt, sim.collateral)

        self.registry = Registry(ex.admin)
        self.registry.configure(ex.admin, self.pool, self.ledger)
        self.liquidator = self.substrate.deploy(
            FlashLiquidator(self.substrate, ex.address, self.registry, self.base, self.quote)
        )

        self.results: list[SettlementResult] = []
        self.substrate.subscribe(self._collect)

    def _collect(self, event: object) -> None:
        if isinstance(event, SettlementResult):
            logger.info(
                "Liquidated %s: borrowed %d, seized %d, repaid %d, profit %d",
                event.borrower,
                event.borrowed_amount,
                event.collateral_received,
                event.repayment_owed,
                event.profit,
            )
            self.results.append(event)

    def run(self) -> SettlementResult:
        """Trigger the flash swap; settlement errors propagate after rollback."""
        sim = self._config.simulation
        if sim is None:
            raise ValueError("No 'simulation' section in configuration")
        logger.info(
            "Simulating liquidation of %s: borrow %d against reserves %d / %d",
            sim.borrower, sim.borrow_amount, sim.base_reserve, sim.quote_reserve,
        )
        request_flash_liquidation(
            self.liquidator,
            sim.initiator,
            sim.borrower,
            sim.debt_token,
            sim.borrow_amount,
            sim.min_profit,
        )
        return self.results[-1]
