from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any

from taxplan.core.models import ExpenseRecord, IncomeRecord

logger = logging.getLogger("taxplan.storage")

DEMO_SUBJECT_ID = "demo-user"


class InMemoryRecordStore:
    """Record source backed by plain dictionaries.

    Holds records only. Tax math lives in ``taxplan.core.engine``.
    """

    def __init__(self, default_province: str = "ON") -> None:
        self._income: dict[str, list[IncomeRecord]] = defaultdict(list)
        self._expenses: dict[str, list[ExpenseRecord]] = defaultdict(list)
        self._provinces: dict[str, str] = {}
        self._default_province = default_province

    def add_income(self, subject_id: str, record: IncomeRecord | dict[str, Any]) -> IncomeRecord:
        if not isinstance(record, IncomeRecord):
            record = IncomeRecord.model_validate(record)
        self._income[subject_id].append(record)
        return record

    def add_expense(self, subject_id: str, record: ExpenseRecord | dict[str, Any]) -> ExpenseRecord:
        if not isinstance(record, ExpenseRecord):
            record = ExpenseRecord.model_validate(record)
        self._expenses[subject_id].append(record)
        return record

    def set_jurisdiction(self, subject_id: str, province: str) -> None:
        self._provinces[subject_id] = province.upper()

    def get_income_records(self, subject_id: str) -> list[IncomeRecord]:
        return list(self._income.get(subject_id, ()))

    def get_expense_records(self, subject_id: str) -> list[ExpenseRecord]:
        return list(self._expenses.get(subject_id, ()))

    def get_jurisdiction_code(self, subject_id: str) -> str:
        return self._provinces.get(subject_id, self._default_province)

    def subjects(self) -> list[str]:
        return sorted(set(self._income) | set(self._expenses) | set(self._provinces))


_DEMO_INCOME: tuple[tuple[str, str, str, str], ...] = (
    ("15000", "2024-01-15", "wages", "Lead grip work"),
    ("8500", "2024-02-20", "wages", "Key grip"),
    ("2500", "2024-03-10", "per_diem", "Travel days"),
    ("12000", "2024-04-05", "wages", "Best boy grip"),
    ("1800", "2024-05-15", "residuals", "Q1 residuals"),
    ("9500", "2024-06-01", "wages", "Grip crew"),
    ("3200", "2024-07-20", "per_diem", "Location shoot"),
    ("11000", "2024-08-10", "wages", "Rigging grip"),
    ("7500", "2024-09-05", "wages", "Day call"),
    ("14000", "2024-10-15", "wages", "Lead grip"),
    ("2200", "2024-11-01", "residuals", "Q3 residuals"),
    ("6000", "2024-12-01", "wages", "Short film work"),
)

_DEMO_EXPENSES: tuple[tuple[str, str, str, str, str], ...] = (
    ("1200", "2024-01-10", "equipment", "Film Gear Rental", "Personal grip kit maintenance"),
    ("450", "2024-02-15", "union_dues", "IATSE Local 873", "Quarterly dues"),
    ("320", "2024-03-05", "travel", "Air Canada", "Flight to set location"),
    ("180", "2024-04-20", "meals", "Various", "On-set meals during hiatus"),
    ("800", "2024-05-10", "training", "Film Skills Academy", "Safety certification renewal"),
    ("450", "2024-06-15", "union_dues", "IATSE Local 873", "Quarterly dues"),
    ("2500", "2024-07-01", "equipment", "B&H Photo", "New rigging equipment"),
    ("150", "2024-08-20", "phone_internet", "Rogers", "Mobile plan - business portion"),
    ("600", "2024-09-10", "agent_fees", "Talent Agency", "Commission on recent jobs"),
    ("450", "2024-10-15", "union_dues", "IATSE Local 873", "Quarterly dues"),
    ("280", "2024-11-05", "wardrobe", "Work Wear Store", "Steel-toe boots replacement"),
    ("350", "2024-12-01", "professional_services", "Tax Prep Inc", "Accountant retainer"),
)


def seeded_demo_store() -> InMemoryRecordStore:
    store = InMemoryRecordStore()
    store.set_jurisdiction(DEMO_SUBJECT_ID, "ON")
    for amount, when, income_type, description in _DEMO_INCOME:
        store.add_income(
            DEMO_SUBJECT_ID,
            IncomeRecord(
                amount=Decimal(amount),
                date=date.fromisoformat(when),
                income_type=income_type,
                description=description,
            ),
        )
    for amount, when, category, vendor, description in _DEMO_EXPENSES:
        store.add_expense(
            DEMO_SUBJECT_ID,
            ExpenseRecord(
                amount=Decimal(amount),
                date=date.fromisoformat(when),
                category=category,
                vendor=vendor,
                description=description,
            ),
        )
    logger.debug(
        "Seeded demo store: %s income, %s expenses",
        len(_DEMO_INCOME),
        len(_DEMO_EXPENSES),
    )
    return store


__all__ = ["DEMO_SUBJECT_ID", "InMemoryRecordStore", "seeded_demo_store"]
