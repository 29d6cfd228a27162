"""Constant-product pool protocols and the flash-swap callback."""
from typing import Protocol


class ReserveSource(Protocol):
    """Anything that reports a pair's token ordering and reserves."""

    def token0(self) -> str: ...

    def token1(self) -> str: ...

    def get_reserves(self) -> tuple[int, int, int]: ...


class Pool(ReserveSource, Protocol):
    """AMM pair that can lend its reserves for the duration of a swap."""

    @property
    def address(self) -> str: ...

    def swap(
        self, caller: str, amount0_out: int, amount1_out: int, to: str, data: bytes
    ) -> None: ...


class FlashSwapCallee(Protocol):
    """Receiver of optimistically transferred pool liquidity.

    The pool is identified by the substrate's recorded caller, never by an
    argument.
    """

    @property
    def address(self) -> str: ...

    def on_flash_swap(
        self, initiator: str, amount0: int, amount1: int, data: bytes
    ) -> None: ...
