from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from taxplan.core.brackets import marginal_tax, quantize_cents
from taxplan.core.contributions import pension_contribution
from taxplan.core.models import ExpenseRecord, IncomeRecord, TaxCalculationResult
from taxplan.core.rates import JurisdictionRates, RateSchedule

D = Decimal

_ZERO = D("0.00")


@dataclass(frozen=True)
class IncomeTaxBreakdown:
    federal_tax: D
    provincial_tax: D

    @property
    def total(self) -> D:
        return self.federal_tax + self.provincial_tax


def income_tax(amount: D, schedule: RateSchedule, province: JurisdictionRates) -> IncomeTaxBreakdown:
    """Federal and provincial marginal tax on ``amount``, each net of its basic personal credit."""
    return IncomeTaxBreakdown(
        federal_tax=marginal_tax(amount, schedule.federal.brackets, schedule.federal.basic_personal_amount),
        provincial_tax=marginal_tax(amount, province.brackets, province.basic_personal_amount),
    )


def gross_income(income_records: Iterable[IncomeRecord]) -> D:
    return sum((record.amount for record in income_records), _ZERO)


def deductible_expenses(expense_records: Iterable[ExpenseRecord]) -> D:
    # Non-deductible expenses are excluded entirely.
    return sum(
        (record.amount for record in expense_records if record.is_tax_deductible),
        _ZERO,
    )


def effective_rate(total_owed: D, net_income: D) -> D:
    if net_income <= 0:
        return _ZERO
    return quantize_cents(total_owed / net_income * 100)


def compute_personal_tax(
    income_records: Iterable[IncomeRecord],
    expense_records: Iterable[ExpenseRecord],
    schedule: RateSchedule,
    jurisdiction: str | None,
) -> TaxCalculationResult:
    province = schedule.province(jurisdiction)
    gross = gross_income(income_records)
    expenses = deductible_expenses(expense_records)
    net_income = max(_ZERO, gross - expenses)

    taxes = income_tax(net_income, schedule, province)
    cpp = schedule.contribution
    contribution = pension_contribution(net_income, cpp.floor, cpp.ceiling, cpp.rate)
    total_income_tax = taxes.total
    total_owed = total_income_tax + contribution

    return TaxCalculationResult(
        tax_year=schedule.tax_year,
        province=province.code,
        gross_income=gross,
        total_expenses=expenses,
        net_income=net_income,
        federal_tax=taxes.federal_tax,
        provincial_tax=taxes.provincial_tax,
        total_income_tax=total_income_tax,
        contribution=contribution,
        total_owed=total_owed,
        effective_tax_rate=effective_rate(total_owed, net_income),
    )


__all__ = [
    "IncomeTaxBreakdown",
    "compute_personal_tax",
    "deductible_expenses",
    "effective_rate",
    "gross_income",
    "income_tax",
]
