"""Reserve pricing: exact fee-inclusive repayment for a flash swap. No I/O."""
from __future__ import annotations

from .errors import ReserveArithmeticError
from .interfaces.pool import ReserveSource
from .models import Reserves

# 0.3% trading fee expressed as x * 1000 / 997.
FEE_NUMERATOR = 1000
FEE_DENOMINATOR = 997


def repayment_amount(base_reserve: int, quote_reserve: int, quote_amount: int) -> int:
    """Base-asset amount owed to the pool for borrowing ``quote_amount``.

    owed = floor(base * amount * 1000 / ((quote - amount) * 997)) + 1

    The trailing +1 rounds up so the pool's invariant check never fails by one
    unit on repayment.
    """
    if quote_amount < 0:
        raise ValueError(f"Borrowed amount must be non-negative, got {quote_amount}")
    if quote_reserve <= quote_amount:
        raise ReserveArithmeticError(quote_reserve, quote_amount)
    numerator = base_reserve * quote_amount * FEE_NUMERATOR
    denominator = (quote_reserve - quote_amount) * FEE_DENOMINATOR
    return numerator // denominator + 1


def read_reserves(pool: ReserveSource, base_token: str) -> Reserves:
    """Read both reserves in one call and order them as (base, quote)."""
    reserve0, reserve1, timestamp = pool.get_reserves()
    if pool.token0().lower() == base_token.lower():
        return Reserves(base=reserve0, quote=reserve1, block_timestamp=timestamp)
    return Reserves(base=reserve1, quote=reserve0, block_timestamp=timestamp)


def get_repay_base_amount(pool: ReserveSource, base_token: str, quote_amount: int) -> int:
    """Repayment owed to ``pool`` for ``quote_amount``, from its current reserves."""
    reserves = read_reserves(pool, base_token)
    return repayment_amount(reserves.base, reserves.quote, quote_amount)
