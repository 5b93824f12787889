from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from taxplan.core.models import CategoryTotal, ExpenseRecord, IncomeRecord, MonthlyTotals

D = Decimal

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

CATEGORY_LABELS: dict[str, str] = {
    "equipment": "Equipment",
    "travel": "Travel",
    "meals": "Meals",
    "accommodation": "Accommodation",
    "union_dues": "Union Dues",
    "agent_fees": "Agent Fees",
    "wardrobe": "Wardrobe",
    "training": "Training",
    "office_supplies": "Office",
    "phone_internet": "Phone/Internet",
    "vehicle": "Vehicle",
    "professional_services": "Professional",
    "marketing": "Marketing",
    "insurance": "Insurance",
    "other": "Other",
}


def monthly_totals(
    income_records: Sequence[IncomeRecord],
    expense_records: Sequence[ExpenseRecord],
) -> list[MonthlyTotals]:
    income = [D("0.00")] * 12
    expenses = [D("0.00")] * 12
    for record in income_records:
        income[record.date.month - 1] += record.amount
    for record in expense_records:
        expenses[record.date.month - 1] += record.amount
    return [
        MonthlyTotals(month=month, income=income[i], expenses=expenses[i])
        for i, month in enumerate(MONTHS)
    ]


def expenses_by_category(expense_records: Sequence[ExpenseRecord]) -> list[CategoryTotal]:
    totals: dict[str, D] = {}
    for record in expense_records:
        totals[record.category] = totals.get(record.category, D("0.00")) + record.amount
    rows = [
        CategoryTotal(category=category, label=CATEGORY_LABELS.get(category, category), amount=amount)
        for category, amount in totals.items()
    ]
    rows.sort(key=lambda row: row.amount, reverse=True)
    return rows


__all__ = ["CATEGORY_LABELS", "MONTHS", "expenses_by_category", "monthly_totals"]
