from decimal import Decimal as D

from taxplan.core.corporate import corporate_tax

SBR = D("0.09")
LIMIT = D("500000")
GENERAL = D("0.15")


def test_zero_income():
    assert corporate_tax(D("0"), SBR, LIMIT, GENERAL) == D("0.00")


def test_below_limit_uses_small_business_rate():
    assert corporate_tax(D("100000"), SBR, LIMIT, GENERAL) == D("9000.00")


def test_at_limit_matches_small_business_rate():
    assert corporate_tax(LIMIT, SBR, LIMIT, GENERAL) == LIMIT * SBR


def test_continuous_just_above_limit():
    at = corporate_tax(LIMIT, SBR, LIMIT, GENERAL)
    above = corporate_tax(LIMIT + D("0.01"), SBR, LIMIT, GENERAL)
    assert D("0") <= above - at <= D("0.01")


def test_excess_taxed_at_general_rate():
    assert corporate_tax(D("600000"), SBR, LIMIT, GENERAL) == D("60000.00")
