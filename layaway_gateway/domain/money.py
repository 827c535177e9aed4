"""Fixed-point money helpers. All amounts are integer minor units (cents)."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple

from layaway_gateway.domain.exceptions import ValidationError

MINOR_UNITS = 100


def divide_half_up(amount_cents: int, divisor: int) -> int:
    """Integer division rounding half away from zero"""
    if divisor <= 0:
        raise ValueError("divisor must be positive")
    sign = -1 if amount_cents < 0 else 1
    return sign * ((2 * abs(amount_cents) + divisor) // (2 * divisor))


def split_installments(total_cents: int, installment_count: int) -> Tuple[int, int]:
    """
    Split a total into equal installments.

    The regular installment is total / count rounded half-up. The final
    installment absorbs the rounding drift so that
    installment * (count - 1) + final == total exactly.

    Example:
        1_000_000 / 12 -> 83_333 (x11) + 83_337
    """
    installment_cents = divide_half_up(total_cents, installment_count)
    final_cents = total_cents - installment_cents * (installment_count - 1)

    if final_cents <= 0:
        raise ValidationError(
            f"Total of {total_cents} cannot be split into {installment_count} installments",
            field="installment_count",
        )

    return installment_cents, final_cents


def to_decimal(amount_cents: int) -> Decimal:
    """Display value for API responses, e.g. 123456 -> Decimal("1234.56")"""
    return (Decimal(amount_cents) / MINOR_UNITS).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
