from __future__ import annotations

from decimal import Decimal

from taxplan.core.brackets import quantize_cents

D = Decimal


def pensionable_base(income: D, floor: D, ceiling: D) -> D:
    pensionable = min(income, ceiling)
    return max(D("0"), pensionable - floor)


def pension_contribution(income: D, floor: D, ceiling: D, rate: D) -> D:
    """CPP-style contribution on earnings between ``floor`` and ``ceiling``."""
    return quantize_cents(pensionable_base(income, floor, ceiling) * rate)


def maximum_contribution(floor: D, ceiling: D, rate: D) -> D:
    return pension_contribution(ceiling, floor, ceiling, rate)


__all__ = ["maximum_contribution", "pension_contribution", "pensionable_base"]
