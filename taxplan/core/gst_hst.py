from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Sequence

from taxplan.core.models import ExpenseRecord, GstHstSummary, IncomeRecord

D = Decimal

_ZERO = D("0.00")


def _recorded(amounts: Iterable[D | None]) -> tuple[D, int]:
    total = _ZERO
    count = 0
    for amount in amounts:
        if amount:
            total += amount
            if amount > 0:
                count += 1
    return total, count


def summarize(
    income_records: Sequence[IncomeRecord],
    expense_records: Sequence[ExpenseRecord],
) -> GstHstSummary:
    """Net GST/HST position: tax collected on income less input tax credits on expenses."""
    collected, collected_count = _recorded(r.sales_tax_collected for r in income_records)
    credits, credit_count = _recorded(r.sales_tax_paid for r in expense_records)
    return GstHstSummary(
        collected=collected,
        input_tax_credits=credits,
        net_owing=collected - credits,
        transaction_count=collected_count + credit_count,
    )


__all__ = ["summarize"]
