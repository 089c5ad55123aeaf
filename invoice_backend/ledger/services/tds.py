# PATH: ledger/services/tds.py

"""
TDS (tax deducted at source)

payable = invoice amount - TDS

Rules:
- TDS = amount * percentage / 100
- tds_rounded -> ceiling to the next whole unit (10% of 51 = 6.00, not 5.10)
- non-positive amount or percentage -> no TDS
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal

TWOPLACES = Decimal("0.01")
HUNDRED = Decimal("100")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class TdsCalculation:
    tds_amount: Decimal
    payable_amount: Decimal
    exact_tds: Decimal
    is_rounded: bool


def calculate_tds(*, amount, percentage, rounded: bool = False) -> TdsCalculation:
    amount = Decimal(str(amount or "0"))
    percentage = Decimal(str(percentage or "0"))

    if amount <= 0 or percentage <= 0:
        return TdsCalculation(
            tds_amount=Decimal("0.00"),
            payable_amount=_money(amount),
            exact_tds=Decimal("0.00"),
            is_rounded=False,
        )

    exact = amount * percentage / HUNDRED
    tds = exact.to_integral_value(rounding=ROUND_CEILING) if rounded else exact

    return TdsCalculation(
        tds_amount=_money(tds),
        payable_amount=_money(amount - tds),
        exact_tds=_money(exact),
        is_rounded=rounded and tds != exact,
    )


def payable_amount(*, amount, tds_applicable: bool, percentage, rounded: bool) -> Decimal:
    if not tds_applicable or not percentage:
        return _money(amount)
    return calculate_tds(amount=amount, percentage=percentage, rounded=rounded).payable_amount
