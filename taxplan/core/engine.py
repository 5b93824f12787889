"""Engine entry points used by the HTTP layer, the CLI and storage adapters.

Storage backends only supply records; every calculation goes through here.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from functools import lru_cache
from typing import Iterable, Protocol, Sequence

from taxplan.config import get_settings
from taxplan.core import dashboard, gst_hst, optimization, personal
from taxplan.core.models import (
    ExpenseRecord,
    GstHstSummary,
    IncomeRecord,
    OptimizationResult,
    SubjectSummary,
    TaxCalculationResult,
)
from taxplan.core.rates import get_rate_schedule

D = Decimal

logger = logging.getLogger("taxplan.engine")


class RecordSource(Protocol):
    def get_income_records(self, subject_id: str) -> Sequence[IncomeRecord]: ...

    def get_expense_records(self, subject_id: str) -> Sequence[ExpenseRecord]: ...

    def get_jurisdiction_code(self, subject_id: str) -> str | None: ...


@lru_cache(maxsize=256)
def _cached_personal_tax(
    income_records: tuple[IncomeRecord, ...],
    expense_records: tuple[ExpenseRecord, ...],
    jurisdiction: str | None,
    tax_year: int,
) -> TaxCalculationResult:
    return personal.compute_personal_tax(
        income_records, expense_records, get_rate_schedule(tax_year), jurisdiction
    )


def compute_personal_tax(
    income_records: Iterable[IncomeRecord],
    expense_records: Iterable[ExpenseRecord],
    jurisdiction: str | None,
    tax_year: int,
) -> TaxCalculationResult:
    income = tuple(income_records)
    expenses = tuple(expense_records)
    if get_settings().cache_results:
        return _cached_personal_tax(income, expenses, jurisdiction, tax_year)
    return personal.compute_personal_tax(income, expenses, get_rate_schedule(tax_year), jurisdiction)


def compute_optimization(
    corporate_income: D,
    tax_year: int,
    province: str | None = None,
    split_grid: Sequence[int | D] | None = None,
) -> OptimizationResult:
    settings = get_settings()
    schedule = get_rate_schedule(tax_year)
    result = optimization.search(
        corporate_income,
        schedule,
        province or settings.default_province,
        split_grid if split_grid is not None else settings.split_grid(),
    )
    logger.debug(
        "Optimized %s over %s splits: best salary %s%%",
        result.corporate_income,
        len(result.scenarios),
        result.optimal.salary_percent,
    )
    return result


def compute_gst_hst_summary(
    income_records: Sequence[IncomeRecord],
    expense_records: Sequence[ExpenseRecord],
) -> GstHstSummary:
    return gst_hst.summarize(income_records, expense_records)


def compute_for_subject(source: RecordSource, subject_id: str, tax_year: int) -> SubjectSummary:
    income = source.get_income_records(subject_id)
    expenses = source.get_expense_records(subject_id)
    jurisdiction = source.get_jurisdiction_code(subject_id)
    return SubjectSummary(
        subject_id=subject_id,
        tax=compute_personal_tax(income, expenses, jurisdiction, tax_year),
        gst_hst=compute_gst_hst_summary(income, expenses),
        monthly=dashboard.monthly_totals(income, expenses),
        expenses_by_category=dashboard.expenses_by_category(expenses),
    )


def clear_cache() -> None:
    _cached_personal_tax.cache_clear()


__all__ = [
    "RecordSource",
    "clear_cache",
    "compute_for_subject",
    "compute_gst_hst_summary",
    "compute_optimization",
    "compute_personal_tax",
]
