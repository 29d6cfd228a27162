"""Settlement error taxonomy.

Every error aborts the whole settlement; the substrate rolls back before the
exception reaches the caller. Amounts relevant to the failure are kept as
attributes so the caller can decide whether to resubmit.
"""
from __future__ import annotations


class FlashSwapError(Exception):
    """Base class for all settlement failures."""


class UnauthorizedCaller(FlashSwapError):
    def __init__(self, caller: str | None, trusted: str | None) -> None:
        self.caller = caller
        self.trusted = trusted
        super().__init__(f"Callback caller {caller} is not the trusted pool {trusted}")


class UnexpectedLoanAsset(FlashSwapError):
    def __init__(self, base_amount: int) -> None:
        self.base_amount = base_amount
        super().__init__(f"Loan disbursed {base_amount} of the base asset; only the quote asset may be borrowed")


class ReserveArithmeticError(FlashSwapError, ArithmeticError):
    """Repayment requested against a reserve that cannot cover the loan."""

    def __init__(self, quote_reserve: int, quote_amount: int) -> None:
        self.quote_reserve = quote_reserve
        self.quote_amount = quote_amount
        super().__init__(
            f"Quote reserve {quote_reserve} must exceed borrowed amount {quote_amount}"
        )


class MalformedPayload(FlashSwapError):
    pass


class InsufficientProfit(FlashSwapError):
    def __init__(self, collateral_received: int, repayment_owed: int, min_profit: int) -> None:
        self.collateral_received = collateral_received
        self.repayment_owed = repayment_owed
        self.min_profit = min_profit
        super().__init__(
            f"Collateral {collateral_received} does not exceed repayment "
            f"{repayment_owed} + minimum profit {min_profit}"
        )


class RepaymentTransferFailed(FlashSwapError):
    def __init__(self, pool: str, amount: int) -> None:
        self.pool = pool
        self.amount = amount
        super().__init__(f"Transfer of {amount} base asset to pool {pool} failed")


class NotAuthorized(FlashSwapError):
    def __init__(self, caller: str, action: str) -> None:
        self.caller = caller
        self.action = action
        super().__init__(f"{caller} is not allowed to {action}")


class ProfitTransferFailed(FlashSwapError):
    def __init__(self, recipient: str, amount: int) -> None:
        self.recipient = recipient
        self.amount = amount
        super().__init__(f"Transfer of {amount} profit to {recipient} failed")


class CollaboratorError(FlashSwapError):
    """An external collaborator (pool, ledger, token) rejected a call."""
