from decimal import Decimal
import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator


_CENT = Decimal("0.01")

# Upper bound for any single money amount accepted at the record boundary.
MAX_AMOUNT = Decimal("1000000000000")


def _quantize_decimal(value: Decimal | None) -> Decimal | None:
    if value is None:
        return None
    return value.quantize(_CENT)


class IncomeRecord(BaseModel):
    amount: Decimal = Field(..., ge=0, le=MAX_AMOUNT)
    date: datetime.date
    income_type: str = "wages"
    description: str | None = None
    sales_tax_collected: Decimal | None = Field(default=None, ge=0, le=MAX_AMOUNT)

    model_config = ConfigDict(frozen=True)

    _quantize_amounts = field_validator(
        "amount",
        "sales_tax_collected",
        mode="after",
    )(_quantize_decimal)


class ExpenseRecord(BaseModel):
    amount: Decimal = Field(..., ge=0, le=MAX_AMOUNT)
    date: datetime.date
    category: str = "other"
    description: str | None = None
    vendor: str | None = None
    is_tax_deductible: bool = True
    sales_tax_paid: Decimal | None = Field(default=None, ge=0, le=MAX_AMOUNT)

    model_config = ConfigDict(frozen=True)

    _quantize_amounts = field_validator(
        "amount",
        "sales_tax_paid",
        mode="after",
    )(_quantize_decimal)


class TaxCalculationResult(BaseModel):
    tax_year: int
    province: str
    gross_income: Decimal
    total_expenses: Decimal
    net_income: Decimal
    federal_tax: Decimal
    provincial_tax: Decimal
    total_income_tax: Decimal
    contribution: Decimal
    total_owed: Decimal
    effective_tax_rate: Decimal

    model_config = ConfigDict(frozen=True)


class DividendSalaryScenario(BaseModel):
    salary_percent: Decimal
    salary_amount: Decimal
    dividend_amount: Decimal
    personal_tax: Decimal
    corporate_tax: Decimal
    contribution: Decimal
    total_tax: Decimal
    after_tax_income: Decimal
    is_optimal: bool = False

    model_config = ConfigDict(frozen=True)


class OptimizationResult(BaseModel):
    tax_year: int
    province: str
    corporate_income: Decimal
    scenarios: list[DividendSalaryScenario]
    optimal: DividendSalaryScenario

    model_config = ConfigDict(frozen=True)


class GstHstSummary(BaseModel):
    collected: Decimal
    input_tax_credits: Decimal
    net_owing: Decimal
    transaction_count: int

    model_config = ConfigDict(frozen=True)


class MonthlyTotals(BaseModel):
    month: str
    income: Decimal = Decimal("0.00")
    expenses: Decimal = Decimal("0.00")


class CategoryTotal(BaseModel):
    category: str
    label: str
    amount: Decimal


class SubjectSummary(BaseModel):
    subject_id: str
    tax: TaxCalculationResult
    gst_hst: GstHstSummary
    monthly: list[MonthlyTotals]
    expenses_by_category: list[CategoryTotal]
