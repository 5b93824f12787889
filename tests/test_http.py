import logging

import pytest
from fastapi.testclient import TestClient

from taxplan.api.http import app as api_app
from taxplan.config import get_settings
from taxplan.core.brackets import RateTableError

SAMPLE = {
    "province": "ON",
    "income": [
        {"amount": "50000.00", "date": "2024-06-01"},
        {"amount": "30000.00", "date": "2024-09-15"},
    ],
    "expenses": [
        {"amount": "5000.00", "date": "2024-06-01", "category": "equipment"},
        {"amount": "2000.00", "date": "2024-06-01", "category": "meals", "is_tax_deductible": False},
    ],
}


@pytest.fixture
def client():
    with TestClient(api_app) as test_client:
        yield test_client


def test_health_reports_years_and_build(client):
    resp = client.get("/health")
    body = resp.json()
    assert resp.status_code == 200
    assert body["status"] == "ok"
    assert body["supported_tax_years"] == [2024, 2025]
    assert set(body["build"]) == {"version", "sha"}


def test_compute_returns_totals_and_breakdown(client):
    resp = client.post("/tax/2024/compute", json=SAMPLE)
    body = resp.json()
    assert resp.status_code == 200
    assert body["ok"] is True
    assert body["issues"] == []
    calc = body["calculation"]
    assert calc["net_income"] == pytest.approx(75000.00)
    assert calc["federal_tax"] == pytest.approx(9946.57)
    assert calc["provincial_tax"] == pytest.approx(4127.06)
    assert calc["contribution"] == pytest.approx(7735.00)
    assert calc["total_owed"] == pytest.approx(21808.63)
    federal = body["breakdown"]["federal"]
    assert [s["rate"] for s in federal] == pytest.approx([0.15, 0.205])
    assert federal[-1]["taxable_amount"] == pytest.approx(75000 - 55867)


def test_compute_reports_blocking_issues(client):
    payload = dict(SAMPLE, income=[{"amount": "100", "date": "2024-01-01", "sales_tax_collected": "500"}])
    body = client.post("/tax/2024/compute", json=payload).json()
    assert body["ok"] is False
    assert [i["code"] for i in body["issues"]] == ["sales_tax_exceeds_amount"]


def test_compute_unknown_year_is_not_calculated(client):
    body = client.post("/tax/1999/compute", json=SAMPLE).json()
    assert body["ok"] is False
    assert body["issues"][0]["code"] == "unsupported_tax_year"


def test_compute_unknown_province_falls_back_with_warning(client):
    body = client.post("/tax/2024/compute", json=dict(SAMPLE, province="XX")).json()
    assert body["ok"] is True
    assert body["issues"][0]["code"] == "unknown_province"
    assert body["calculation"]["province"] == "ON"


def test_negative_amount_is_rejected(client):
    payload = dict(SAMPLE, income=[{"amount": "-1", "date": "2024-01-01"}])
    resp = client.post("/tax/2024/compute", json=payload)
    assert resp.status_code == 422


def test_unknown_fields_are_rejected(client):
    resp = client.post("/gst-hst", json={"income": [], "expenses": [], "refunds": []})
    assert resp.status_code == 422


def test_optimization_endpoint(client):
    resp = client.get("/optimization", params={"corporate_income": "100000", "tax_year": 2024})
    body = resp.json()
    assert resp.status_code == 200
    assert len(body["scenarios"]) == 11
    assert sum(1 for s in body["scenarios"] if s["is_optimal"]) == 1
    assert body["optimal"]["is_optimal"] is True
    assert body["province"] == "ON"


def test_optimization_rejects_negative_income_and_unknown_year(client):
    assert client.get("/optimization", params={"corporate_income": "-5"}).status_code == 422
    resp = client.get("/optimization", params={"tax_year": 1999})
    assert resp.status_code == 400
    assert "1999" in resp.json()["detail"]


def test_rates_endpoint(client):
    body = client.get("/rates/2025").json()
    assert body["tax_year"] == 2025
    assert body["federal"]["rates"][0] == pytest.approx(0.145)
    assert body["contribution"]["ceiling"] == pytest.approx(71300)
    assert "QC" in body["provinces"]
    assert client.get("/rates/1999").status_code == 400


def test_gst_hst_endpoint(client):
    payload = {
        "income": [{"amount": "5000", "date": "2024-03-01", "sales_tax_collected": "500"}],
        "expenses": [{"amount": "7000", "date": "2024-03-02", "sales_tax_paid": "700"}],
    }
    body = client.post("/gst-hst", json=payload).json()
    assert body["net_owing"] == pytest.approx(-200)
    assert body["transaction_count"] == 2


def test_demo_dashboard(client):
    body = client.get("/demo/dashboard").json()
    assert body["subject_id"] == "demo-user"
    assert body["tax"]["net_income"] == pytest.approx(85470)
    assert body["monthly"][0] == {"month": "Jan", "income": 15000, "expenses": 1200}
    assert body["expenses_by_category"][0]["category"] == "equipment"


def test_lifespan_opens_and_closes_log_file(monkeypatch, tmp_path):
    monkeypatch.setenv("TAXPLAN_FILE_LOGGING", "true")
    monkeypatch.setenv("TAXPLAN_LOG_DIR", str(tmp_path / "logs"))
    get_settings.cache_clear()
    base = logging.getLogger("taxplan")

    with TestClient(api_app) as test_client:
        handler = api_app.state.telemetry_handler
        assert handler in base.handlers
        assert sorted(api_app.state.rate_schedules) == [2024, 2025]
        test_client.get("/health")

    assert handler not in base.handlers
    assert not hasattr(api_app.state, "telemetry_handler")
    assert (tmp_path / "logs" / "planner.log").exists()


def test_amounts_beyond_the_cap_are_rejected(client):
    payload = dict(SAMPLE, income=[{"amount": "1e30", "date": "2024-01-01"}])
    assert client.post("/tax/2024/compute", json=payload).status_code == 422
    gst = {"income": [], "expenses": [{"amount": "10", "date": "2024-01-01", "sales_tax_paid": "1e30"}]}
    assert client.post("/gst-hst", json=gst).status_code == 422
    resp = client.get("/optimization", params={"corporate_income": "1e30"})
    assert resp.status_code == 422


def test_year_zero_is_not_replaced_by_the_default(client):
    assert client.get("/optimization", params={"tax_year": 0}).status_code == 400
    assert client.get("/demo/dashboard", params={"tax_year": 0}).status_code == 400


def test_broken_rate_table_does_not_leak_the_log_handler(monkeypatch, tmp_path):
    rates_dir = tmp_path / "rates"
    rates_dir.mkdir()
    (rates_dir / "2024.toml").write_text("tax_year = \n", encoding="utf-8")
    monkeypatch.setenv("TAXPLAN_RATES_DIR", str(rates_dir))
    monkeypatch.setenv("TAXPLAN_FILE_LOGGING", "true")
    monkeypatch.setenv("TAXPLAN_LOG_DIR", str(tmp_path / "logs"))
    get_settings.cache_clear()
    base = logging.getLogger("taxplan")
    before = list(base.handlers)

    with pytest.raises(RateTableError):
        with TestClient(api_app):
            pass

    assert base.handlers == before
    assert not hasattr(api_app.state, "rate_schedules")
