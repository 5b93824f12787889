from __future__ import annotations

from decimal import Decimal

from taxplan.core.brackets import BracketTable, marginal_tax, quantize_cents

D = Decimal


def gross_up(net_dividend: D, gross_up_rate: D) -> D:
    return quantize_cents(max(D("0"), net_dividend) * gross_up_rate)


def dividend_tax(
    net_dividend: D,
    gross_up_rate: D,
    credit_rate: D,
    federal_table: BracketTable,
    provincial_table: BracketTable,
    federal_bpa: D,
    provincial_bpa: D,
) -> D:
    """Personal tax on a dividend after gross-up and the dividend tax credit.

    Both the bracket tax and the credit are computed on the grossed-up amount.
    """
    grossed_up = gross_up(net_dividend, gross_up_rate)
    tax_on_grossed_up = marginal_tax(grossed_up, federal_table, federal_bpa) + marginal_tax(
        grossed_up, provincial_table, provincial_bpa
    )
    credit = quantize_cents(grossed_up * credit_rate)
    return max(D("0"), tax_on_grossed_up - credit)


__all__ = ["dividend_tax", "gross_up"]
