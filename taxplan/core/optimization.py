"""Salary / dividend split search.

Every grid point is evaluated independently and the best one is picked with a
stable argmax: the first scenario with the strictly greatest after-tax income
wins, so ties resolve to the earliest grid entry.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from taxplan.core.brackets import quantize_cents
from taxplan.core.contributions import pension_contribution
from taxplan.core.corporate import corporate_tax
from taxplan.core.dividends import dividend_tax
from taxplan.core.models import DividendSalaryScenario, OptimizationResult
from taxplan.core.personal import income_tax
from taxplan.core.rates import JurisdictionRates, RateSchedule

D = Decimal

DEFAULT_SPLIT_GRID: tuple[int, ...] = (0, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100)


def _check_grid(split_grid: Sequence[int | D]) -> list[D]:
    if not split_grid:
        raise ValueError("Split grid must contain at least one salary percentage")
    grid = [D(str(percent)) for percent in split_grid]
    for percent in grid:
        if percent < 0 or percent > 100:
            raise ValueError(f"Salary percentage {percent} outside 0..100")
    return grid


def evaluate_split(
    corporate_income: D,
    salary_percent: D,
    schedule: RateSchedule,
    province: JurisdictionRates,
) -> DividendSalaryScenario:
    salary_amount = quantize_cents(corporate_income * salary_percent / 100)
    dividend_amount = corporate_income - salary_amount

    # Salary is deducted before corporate tax; only the retained dividend leg is taxed.
    corp = schedule.corporate
    corp_tax = corporate_tax(
        dividend_amount, corp.small_business_rate, corp.small_business_limit, corp.general_rate
    )
    after_corp_tax_dividend = dividend_amount - corp_tax

    tax_on_salary = income_tax(salary_amount, schedule, province).total
    div = schedule.dividend
    tax_on_dividend = dividend_tax(
        after_corp_tax_dividend,
        div.gross_up_rate,
        div.credit_rate,
        schedule.federal.brackets,
        province.brackets,
        schedule.federal.basic_personal_amount,
        province.basic_personal_amount,
    )
    personal_tax = tax_on_salary + tax_on_dividend

    cpp = schedule.contribution
    contribution = pension_contribution(salary_amount, cpp.floor, cpp.ceiling, cpp.rate)

    total_tax = corp_tax + personal_tax + contribution
    return DividendSalaryScenario(
        salary_percent=salary_percent,
        salary_amount=salary_amount,
        dividend_amount=dividend_amount,
        personal_tax=personal_tax,
        corporate_tax=corp_tax,
        contribution=contribution,
        total_tax=total_tax,
        after_tax_income=corporate_income - total_tax,
    )


def optimal_index(scenarios: Sequence[DividendSalaryScenario]) -> int:
    best = 0
    for index, scenario in enumerate(scenarios):
        if scenario.after_tax_income > scenarios[best].after_tax_income:
            best = index
    return best


def search(
    corporate_income: D,
    schedule: RateSchedule,
    province_code: str | None = None,
    split_grid: Sequence[int | D] = DEFAULT_SPLIT_GRID,
) -> OptimizationResult:
    grid = _check_grid(split_grid)
    income = quantize_cents(max(D("0"), corporate_income))
    province = schedule.province(province_code)

    scenarios = [evaluate_split(income, percent, schedule, province) for percent in grid]
    best = optimal_index(scenarios)
    scenarios[best] = scenarios[best].model_copy(update={"is_optimal": True})

    return OptimizationResult(
        tax_year=schedule.tax_year,
        province=province.code,
        corporate_income=income,
        scenarios=scenarios,
        optimal=scenarios[best],
    )


__all__ = ["DEFAULT_SPLIT_GRID", "evaluate_split", "optimal_index", "search"]
