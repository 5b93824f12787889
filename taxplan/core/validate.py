from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable, Optional, Sequence

from taxplan.core.models import ExpenseRecord, IncomeRecord


@dataclass
class ValidationIssue:
    code: str
    message: str
    field: Optional[str] = None
    severity: str = "error"

    def to_dict(self) -> dict[str, str | None]:
        return asdict(self)


@dataclass(frozen=True)
class IssueTemplate:
    code: str
    message: str
    severity: str = "error"


_MAX_RECORDS_PER_TYPE = 5000

ISSUE_UNSUPPORTED_YEAR = IssueTemplate(
    "unsupported_tax_year",
    "No rate table is available for the requested tax year.",
)
ISSUE_UNKNOWN_PROVINCE = IssueTemplate(
    "unknown_province",
    "Province code is not recognized; the default province will be used.",
    severity="warning",
)
ISSUE_RECORD_OUTSIDE_YEAR = IssueTemplate(
    "record_outside_tax_year",
    "Record is dated outside the tax year and is still included.",
    severity="warning",
)
ISSUE_SALES_TAX_EXCEEDS_AMOUNT = IssueTemplate(
    "sales_tax_exceeds_amount",
    "Recorded GST/HST exceeds the transaction amount.",
)
ISSUE_RECORD_COUNT_LIMIT = IssueTemplate(
    "record_count_exceeded",
    f"More than {_MAX_RECORDS_PER_TYPE} records of one type in a single request.",
)


def _emit(issues: list[ValidationIssue], template: IssueTemplate, field: str | None) -> None:
    issues.append(ValidationIssue(template.code, template.message, field=field, severity=template.severity))


def _field_path(collection: str, index: int, field: str | None = None) -> str:
    if field:
        return f"{collection}[{index}].{field}"
    return f"{collection}[{index}]"


def _validate_collection(
    collection: str,
    records: Sequence[IncomeRecord] | Sequence[ExpenseRecord],
    tax_field: str,
    tax_year: int,
    issues: list[ValidationIssue],
) -> None:
    if len(records) > _MAX_RECORDS_PER_TYPE:
        _emit(issues, ISSUE_RECORD_COUNT_LIMIT, collection)
    for index, record in enumerate(records):
        if record.date.year != tax_year:
            _emit(issues, ISSUE_RECORD_OUTSIDE_YEAR, _field_path(collection, index, "date"))
        sales_tax = getattr(record, tax_field)
        if sales_tax is not None and sales_tax > record.amount:
            _emit(issues, ISSUE_SALES_TAX_EXCEEDS_AMOUNT, _field_path(collection, index, tax_field))


def validate_records(
    income_records: Sequence[IncomeRecord],
    expense_records: Sequence[ExpenseRecord],
    tax_year: int,
    province: str | None,
    supported_years: Iterable[int],
    known_provinces: Iterable[str],
) -> list[ValidationIssue]:
    """Boundary checks that go beyond field types.

    Negative amounts and malformed dates never reach this point; the record
    models reject them. Warnings do not block a calculation, errors do.
    """
    issues: list[ValidationIssue] = []
    if tax_year not in set(supported_years):
        _emit(issues, ISSUE_UNSUPPORTED_YEAR, "tax_year")
    if province and province.strip().upper() not in set(known_provinces):
        _emit(issues, ISSUE_UNKNOWN_PROVINCE, "province")
    _validate_collection("income", income_records, "sales_tax_collected", tax_year, issues)
    _validate_collection("expenses", expense_records, "sales_tax_paid", tax_year, issues)
    return issues


def has_errors(issues: Iterable[ValidationIssue]) -> bool:
    return any(issue.severity == "error" for issue in issues)


__all__ = ["IssueTemplate", "ValidationIssue", "has_errors", "validate_records"]
