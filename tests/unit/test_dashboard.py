from decimal import Decimal as D

from taxplan.core import engine
from taxplan.core.dashboard import MONTHS, expenses_by_category, monthly_totals
from taxplan.storage import DEMO_SUBJECT_ID, InMemoryRecordStore, seeded_demo_store
from tests.fixtures.records import expense, income


def test_monthly_totals_bucket_by_month():
    rows = monthly_totals(
        [income("100", when="2024-01-05"), income("50", when="2024-01-20")],
        [expense("30", when="2024-12-31", deductible=False)],
    )
    assert [row.month for row in rows] == list(MONTHS)
    assert rows[0].income == D("150.00")
    assert rows[11].expenses == D("30.00")
    assert rows[5].income == D("0")


def test_expenses_by_category_sorted_descending():
    rows = expenses_by_category(
        [
            expense("10", category="meals"),
            expense("40", category="union_dues"),
            expense("5", category="custom"),
            expense("15", category="meals"),
        ]
    )
    assert [(row.category, row.amount) for row in rows] == [
        ("union_dues", D("40.00")),
        ("meals", D("25.00")),
        ("custom", D("5.00")),
    ]
    assert rows[0].label == "Union Dues"
    assert rows[2].label == "custom"


def test_demo_subject_summary():
    summary = engine.compute_for_subject(seeded_demo_store(), DEMO_SUBJECT_ID, 2024)
    assert summary.tax.gross_income == D("93200.00")
    assert summary.tax.total_expenses == D("7730.00")
    assert summary.tax.net_income == D("85470.00")
    assert summary.tax.province == "ON"
    assert summary.monthly[0].income == D("15000.00")
    assert summary.expenses_by_category[0].category == "equipment"
    assert summary.expenses_by_category[0].amount == D("3700.00")
    assert summary.gst_hst.transaction_count == 0


def test_store_isolates_subjects():
    store = InMemoryRecordStore()
    store.add_income("a", {"amount": "100", "date": "2024-02-01"})
    store.add_expense("b", {"amount": "20", "date": "2024-02-01", "category": "meals"})
    store.set_jurisdiction("b", "bc")
    assert len(store.get_income_records("a")) == 1
    assert store.get_income_records("b") == []
    assert store.get_jurisdiction_code("a") == "ON"
    assert store.get_jurisdiction_code("b") == "BC"
    assert store.subjects() == ["a", "b"]
