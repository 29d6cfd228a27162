"""Constant-product pair with optimistic (flash) transfers."""
from __future__ import annotations

import logging

from ..addresses import normalize_address
from ..errors import CollaboratorError
from ..interfaces.pool import FlashSwapCallee
from ..substrate import Substrate
from .token import SimToken

logger = logging.getLogger(__name__)

# Input fee of 0.3%, applied as balance * 1000 - amount_in * 3.
FEE_SCALE = 1000
FEE_UNITS = 3


class PoolError(CollaboratorError):
    pass


class ConstantProductPool:
    """Two-token pool that lends its reserves for the duration of a swap.

    Reserves are only updated once the callback has returned and the
    fee-adjusted constant product has been verified.
    """

    def __init__(
        self, substrate: Substrate, address: str, token0: SimToken, token1: SimToken
    ) -> None:
        self._substrate = substrate
        self.address = normalize_address(address)
        self._token0 = token0
        self._token1 = token1
        self.reserve0 = 0
        self.reserve1 = 0
        self.block_timestamp = 0

    def token0(self) -> str:
        return self._token0.address

    def token1(self) -> str:
        return self._token1.address

    def get_reserves(self) -> tuple[int, int, int]:
        return self.reserve0, self.reserve1, self.block_timestamp

    def _update(self, reserve0: int, reserve1: int) -> None:
        previous = (self.reserve0, self.reserve1, self.block_timestamp)
        self.reserve0, self.reserve1 = reserve0, reserve1
        self.block_timestamp += 1

        def undo() -> None:
            self.reserve0, self.reserve1, self.block_timestamp = previous

        self._substrate.record(undo)

    def sync(self) -> None:
        """Set reserves to the pool's current token balances."""
        self._update(
            self._token0.balance_of(self.address), self._token1.balance_of(self.address)
        )

    def swap(
        self, caller: str, amount0_out: int, amount1_out: int, to: str, data: bytes
    ) -> None:
        with self._substrate.atomic():
            self._swap(caller, amount0_out, amount1_out, to, data)

    def _swap(
        self, caller: str, amount0_out: int, amount1_out: int, to: str, data: bytes
    ) -> None:
        if amount0_out <= 0 and amount1_out <= 0:
            raise PoolError("Insufficient output amount")
        reserve0, reserve1 = self.reserve0, self.reserve1
        if amount0_out >= reserve0 or amount1_out >= reserve1:
            raise PoolError("Insufficient liquidity")

        if amount0_out > 0:
            self._token0.transfer(self.address, to, amount0_out)
        if amount1_out > 0:
            self._token1.transfer(self.address, to, amount1_out)
        if data:
            callee: FlashSwapCallee = self._substrate.contract(to)
            self._substrate.call(
                self, callee.on_flash_swap, caller, amount0_out, amount1_out, data
            )

        balance0 = self._token0.balance_of(self.address)
        balance1 = self._token1.balance_of(self.address)
        amount0_in = max(balance0 - (reserve0 - amount0_out), 0)
        amount1_in = max(balance1 - (reserve1 - amount1_out), 0)
        if amount0_in <= 0 and amount1_in <= 0:
            raise PoolError("Insufficient input amount")

        adjusted0 = balance0 * FEE_SCALE - amount0_in * FEE_UNITS
        adjusted1 = balance1 * FEE_SCALE - amount1_in * FEE_UNITS
        if adjusted0 * adjusted1 < reserve0 * reserve1 * FEE_SCALE**2:
            raise PoolError("K")

        self._update(balance0, balance1)
        logger.debug(
            "Swap settled: in (%d, %d) out (%d, %d), reserves (%d, %d)",
            amount0_in, amount1_in, amount0_out, amount1_out, balance0, balance1,
        )
