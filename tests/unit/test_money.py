"""Unit tests for fixed-point money helpers"""

import pytest
from decimal import Decimal
from layaway_gateway.domain.exceptions import ValidationError
from layaway_gateway.domain.money import (
    divide_half_up,
    split_installments,
    to_decimal,
)


def test_divide_half_up_rounds_half_away_from_zero():
    assert divide_half_up(10, 4) == 3  # 2.5 -> 3
    assert divide_half_up(9, 4) == 2  # 2.25 -> 2
    assert divide_half_up(11, 4) == 3  # 2.75 -> 3
    assert divide_half_up(-10, 4) == -3


def test_divide_half_up_rejects_non_positive_divisor():
    with pytest.raises(ValueError):
        divide_half_up(10, 0)


def test_split_installments_exact():
    assert split_installments(1_200_000, 12) == (100_000, 100_000)


def test_split_installments_corrects_last():
    """1,000,000 / 12 -> 11 x 83,333 + 83,337"""
    installment, final = split_installments(1_000_000, 12)

    assert installment == 83_333
    assert final == 83_337
    assert installment * 11 + final == 1_000_000


def test_split_installments_rejects_total_too_small_for_count():
    """2 / 3 rounds up to 1 per installment, leaving nothing for the last"""
    with pytest.raises(ValidationError) as exc_info:
        split_installments(2, 3)
    assert exc_info.value.field == "installment_count"


@pytest.mark.parametrize(
    "total, count",
    [(999_999, 7), (1_000_001, 60), (10_007, 2), (5_000_050, 13), (123_457, 59)],
)
def test_split_installments_sums_to_total(total, count):
    installment, final = split_installments(total, count)
    assert installment * (count - 1) + final == total
    assert final > 0


def test_to_decimal_for_display():
    assert to_decimal(1235) == Decimal("12.35")
    assert to_decimal(100_000) == Decimal("1000.00")
    assert to_decimal(-50) == Decimal("-0.50")
