from __future__ import annotations

from decimal import Decimal

from taxplan.core.brackets import quantize_cents

D = Decimal


def corporate_tax(
    income: D,
    small_business_rate: D,
    small_business_limit: D,
    general_rate: D,
) -> D:
    # Small business rate up to the limit, general rate on the excess.
    income = max(D("0"), income)
    if income <= small_business_limit:
        return quantize_cents(income * small_business_rate)
    return quantize_cents(
        small_business_limit * small_business_rate
        + (income - small_business_limit) * general_rate
    )


__all__ = ["corporate_tax"]
