import argparse
from decimal import Decimal

import pytest

from taxplan.main import main, parse_amount


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("85k", Decimal("85000")),
        ("$12,345.67", Decimal("12345.67")),
        ("100_000", Decimal("100000")),
        (" 0 ", Decimal("0")),
    ],
)
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", ["-5", "abc", ""])
def test_parse_amount_rejects_bad_input(raw):
    with pytest.raises(argparse.ArgumentTypeError):
        parse_amount(raw)


def test_estimate_prints_totals(capsys):
    code = main(["--no-color", "estimate", "--income", "80k", "--expenses", "5000", "--year", "2024"])
    out = capsys.readouterr().out
    assert code == 0
    assert "Net income" in out
    assert "$75,000.00" in out
    assert "$21,808.63" in out


def test_optimize_reports_best_split(capsys):
    code = main(["--no-color", "optimize", "--corporate-income", "100000", "--step", "50", "--year", "2024"])
    out = capsys.readouterr().out
    assert code == 0
    assert "Best split: 50% salary, after-tax income $80,087.35" in out


def test_rates_lists_every_jurisdiction(capsys):
    assert main(["--no-color", "rates", "--year", "2025"]) == 0
    out = capsys.readouterr().out
    for code in ("CA", "AB", "ON", "QC", "YT"):
        assert code in out


def test_demo_runs(capsys):
    assert main(["--no-color", "demo"]) == 0
    assert "$85,470.00" in capsys.readouterr().out


def test_unknown_year_exits_with_2(capsys):
    assert main(["--no-color", "rates", "--year", "1999"]) == 2
    out = capsys.readouterr().out
    assert "2024" in out and "2025" in out


def test_negative_amount_is_a_usage_error(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["estimate", "--income", "-100"])
    assert excinfo.value.code == 2


def test_parse_amount_rejects_amounts_beyond_the_cap():
    with pytest.raises(argparse.ArgumentTypeError):
        parse_amount("2e12")


def test_optimize_with_zero_step_uses_every_percent(capsys):
    code = main(["--no-color", "optimize", "--corporate-income", "0", "--step", "0", "--year", "2024"])
    out = capsys.readouterr().out
    assert code == 0
    assert "Best split: 0% salary" in out
