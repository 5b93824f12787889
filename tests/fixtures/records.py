from datetime import date
from decimal import Decimal

from taxplan.core.models import ExpenseRecord, IncomeRecord


def income(amount: str, *, when: str = "2024-06-01", gst: str | None = None, kind: str = "wages") -> IncomeRecord:
  return IncomeRecord(
    amount=Decimal(amount),
    date=date.fromisoformat(when),
    income_type=kind,
    sales_tax_collected=Decimal(gst) if gst is not None else None,
  )


def expense(
  amount: str,
  *,
  when: str = "2024-06-01",
  deductible: bool = True,
  gst: str | None = None,
  category: str = "equipment",
) -> ExpenseRecord:
  return ExpenseRecord(
    amount=Decimal(amount),
    date=date.fromisoformat(when),
    category=category,
    is_tax_deductible=deductible,
    sales_tax_paid=Decimal(gst) if gst is not None else None,
  )


def make_sample_records() -> tuple[list[IncomeRecord], list[ExpenseRecord]]:
  incomes = [income("50000.00"), income("30000.00", when="2024-09-15")]
  expenses = [expense("5000.00"), expense("2000.00", deductible=False, category="meals")]
  return incomes, expenses
