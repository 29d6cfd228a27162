"""Flash-swap liquidation executor: the settlement callback and its trigger."""
from __future__ import annotations

import enum
import logging

from .addresses import normalize_address, same_address
from .errors import (
    InsufficientProfit,
    ProfitTransferFailed,
    RepaymentTransferFailed,
    UnauthorizedCaller,
    UnexpectedLoanAsset,
)
from .interfaces.ledger import LendingLedger
from .interfaces.pool import Pool
from .interfaces.token import FungibleToken, ProxyToken
from .models import LoanRequest, SettlementResult
from .payload import MAX_UINT256, decode_payload, encode_payload
from .pricing import get_repay_base_amount
from .registry import Registry
from .substrate import Substrate

logger = logging.getLogger(__name__)


class SettlementState(enum.Enum):
    IDLE = "idle"
    AUTHORIZING_CALLBACK = "authorizing_callback"
    MINTING = "minting"
    LIQUIDATING = "liquidating"
    SETTLING = "settling"
    COMPLETED = "completed"
    ABORTED = "aborted"


class FlashLiquidator:
    """Liquidates underwater borrowers with liquidity flash-borrowed from a pool.

    The pool disburses quote asset and calls back into :meth:`on_flash_swap`.
    The quote asset is supplied to the debt-proxy issuer, the minted proxy
    tokens repay the borrower's debt on the ledger, and the seized base-asset
    collateral repays the pool. Whatever is left goes to the initiator.
    """

    def __init__(
        self,
        substrate: Substrate,
        address: str,
        registry: Registry,
        base_token: FungibleToken,
        quote_token: FungibleToken,
    ) -> None:
        if same_address(base_token.address, quote_token.address):
            raise ValueError("Base and quote tokens must differ")
        self._substrate = substrate
        self.address = normalize_address(address)
        self.registry = registry
        self.base_token = base_token
        self.quote_token = quote_token
        self.state = SettlementState.IDLE

    # ------------------------------------------------------------------
    # Callback entry points
    # ------------------------------------------------------------------

    def on_flash_swap(
        self, initiator: str, amount0: int, amount1: int, data: bytes
    ) -> None:
        """Pool-facing hook; maps the pool's token order onto base/quote."""
        pool = self._trusted_pool()
        if same_address(pool.token0(), self.base_token.address):
            base_amount, quote_amount = amount0, amount1
        else:
            base_amount, quote_amount = amount1, amount0
        self.on_loan_disbursed(initiator, base_amount, quote_amount, data)

    def on_loan_disbursed(
        self,
        initiator: str,
        base_amount: int,
        quote_amount: int,
        data: bytes,
    ) -> None:
        """Run one settlement. Any failure rolls back every step and re-raises.

        Only valid while the trusted pool's :meth:`Substrate.call` is in
        progress; the pool is identified by :attr:`Substrate.caller`.
        """
        try:
            with self._substrate.atomic():
                result = self._settle(initiator, base_amount, quote_amount, data)
        except Exception as e:
            self.state = SettlementState.ABORTED
            logger.warning("Settlement aborted (%s): %s", type(e).__name__, e)
            raise

        # The enclosing swap can still revert this settlement.
        logger.debug(
            "Settled %s: borrowed %d, minted %d, seized %d, repaid %d, profit %d",
            result.borrower,
            result.borrowed_amount,
            result.minted_amount,
            result.collateral_received,
            result.repayment_owed,
            result.profit,
        )

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _enter(self, state: SettlementState) -> None:
        logger.debug("Settlement %s -> %s", self.state.value, state.value)
        self.state = state

    def _trusted_pool(self) -> Pool:
        caller = self._substrate.caller
        pool = self.registry.pool
        if pool is None or caller is None or not self.registry.is_trusted_pool(caller):
            raise UnauthorizedCaller(caller, pool.address if pool else None)
        return pool

    def _settle(
        self,
        initiator: str,
        base_amount: int,
        quote_amount: int,
        data: bytes,
    ) -> SettlementResult:
        self._enter(SettlementState.AUTHORIZING_CALLBACK)
        pool = self._trusted_pool()
        if base_amount != 0:
            raise UnexpectedLoanAsset(base_amount)

        self._enter(SettlementState.MINTING)
        debt_token, borrower, min_profit = decode_payload(data)
        request = LoanRequest(
            initiator=normalize_address(initiator),
            borrower=borrower,
            debt_token=debt_token,
            quote_amount=quote_amount,
            min_profit=min_profit,
        )
        minted = self._mint(request)

        self._enter(SettlementState.LIQUIDATING)
        collateral_received = self._liquidate(request, minted)

        self._enter(SettlementState.SETTLING)
        repayment_owed = get_repay_base_amount(pool, self.base_token.address, quote_amount)
        if not collateral_received > repayment_owed + min_profit:
            raise InsufficientProfit(collateral_received, repayment_owed, min_profit)

        if not self.base_token.transfer(self.address, pool.address, repayment_owed):
            raise RepaymentTransferFailed(pool.address, repayment_owed)
        profit = collateral_received - repayment_owed
        if not self.base_token.transfer(self.address, request.initiator, profit):
            raise ProfitTransferFailed(request.initiator, profit)

        result = SettlementResult(
            initiator=request.initiator,
            borrower=request.borrower,
            debt_token=request.debt_token,
            borrowed_amount=quote_amount,
            minted_amount=minted,
            collateral_received=collateral_received,
            repayment_owed=repayment_owed,
            profit=profit,
        )
        self._substrate.emit(result)
        self._enter(SettlementState.COMPLETED)
        return result

    def _mint(self, request: LoanRequest) -> int:
        """Supply the borrowed quote asset and return the proxy tokens received."""
        proxy: ProxyToken = self._substrate.contract(request.debt_token)

        allowance = self.quote_token.allowance(self.address, proxy.address)
        if allowance < request.quote_amount:
            self.quote_token.approve(self.address, proxy.address, MAX_UINT256)

        before = proxy.balance_of(self.address)
        proxy.supply_underlying(self.address, request.quote_amount)
        after = proxy.balance_of(self.address)
        return after - before

    def _liquidate(self, request: LoanRequest, repay_amount: int) -> int:
        """Repay the borrower's debt and return the collateral received."""
        ledger: LendingLedger | None = self.registry.ledger
        if ledger is None:
            raise ValueError("No ledger configured")

        before = self.base_token.balance_of(self.address)
        ledger.liquidate_borrow(
            self.address,
            request.borrower,
            request.debt_token,
            repay_amount,
            self.base_token.address,
        )
        after = self.base_token.balance_of(self.address)
        return after - before


def request_flash_liquidation(
    liquidator: FlashLiquidator,
    caller: str,
    borrower: str,
    debt_token: str,
    quote_amount: int,
    min_profit: int,
) -> None:
    """Borrow ``quote_amount`` from the active pool to liquidate ``borrower``.

    The pool calls back into ``liquidator`` before the swap returns; the
    settlement outcome is published as a :class:`SettlementResult` event.
    """
    pool = liquidator.registry.pool
    if pool is None:
        raise ValueError("No active pool configured")
    if quote_amount <= 0:
        raise ValueError(f"Borrowed amount must be positive, got {quote_amount}")

    data = encode_payload(debt_token, borrower, min_profit)
    if same_address(pool.token0(), liquidator.quote_token.address):
        amount0_out, amount1_out = quote_amount, 0
    else:
        amount0_out, amount1_out = 0, quote_amount

    logger.info(
        "Requesting flash swap of %d quote from %s to liquidate %s",
        quote_amount, pool.address, borrower,
    )
    pool.swap(caller, amount0_out, amount1_out, liquidator.address, data)
