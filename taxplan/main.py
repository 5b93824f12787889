import argparse
import os
import sys
from decimal import Decimal, InvalidOperation
from typing import Literal, Sequence

from rich.console import Console
from rich.table import Table

from taxplan.config import get_settings, salary_split_grid
from taxplan.core import engine
from taxplan.core.models import (
    MAX_AMOUNT,
    DividendSalaryScenario,
    ExpenseRecord,
    IncomeRecord,
    TaxCalculationResult,
)
from taxplan.core.rates import RateTableNotFoundError, get_rate_schedule, supported_tax_years
from taxplan.storage import DEMO_SUBJECT_ID, seeded_demo_store

ColorPreference = Literal["auto", "always", "never"]


def _resolve_color_preference(pref: ColorPreference) -> ColorPreference:
    if pref == "auto" and os.getenv("NO_COLOR"):
        return "never"
    return pref


def _get_console(pref: ColorPreference) -> Console:
    resolved = _resolve_color_preference(pref)
    if resolved == "never":
        return Console(no_color=True, highlight=False)
    return Console(force_terminal=resolved == "always" or None)


def _build_table(title: str, columns: list[str]) -> Table:
    table = Table(title=title, expand=False)
    for column in columns:
        table.add_column(column, justify="right" if column != "field" else "left")
    return table


def _money(value: Decimal) -> str:
    return f"${value:,.2f}"


def parse_amount(raw: str) -> Decimal:
    """Accept amounts like ``85k``, ``$12,345.67`` or ``12345``."""
    cleaned = raw.strip().lower().replace(",", "").replace("$", "").replace("_", "")
    multiplier = Decimal("1")
    if cleaned.endswith("k"):
        multiplier = Decimal("1000")
        cleaned = cleaned[:-1]
    try:
        value = Decimal(cleaned) * multiplier
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"not an amount: {raw!r}") from exc
    if value < 0:
        raise argparse.ArgumentTypeError("amounts must be zero or positive")
    if value > MAX_AMOUNT:
        raise argparse.ArgumentTypeError(f"amounts must not exceed {MAX_AMOUNT:,}")
    return value


def _print_tax_result(console: Console, result: TaxCalculationResult) -> None:
    table = _build_table(f"{result.tax_year} personal tax ({result.province})", ["field", "amount"])
    table.add_row("Gross income", _money(result.gross_income))
    table.add_row("Deductible expenses", _money(result.total_expenses))
    table.add_row("Net income", _money(result.net_income))
    table.add_row("Federal tax", _money(result.federal_tax))
    table.add_row("Provincial tax", _money(result.provincial_tax))
    table.add_row("CPP contribution", _money(result.contribution))
    table.add_row("Total owed", _money(result.total_owed))
    table.add_row("Effective rate", f"{result.effective_tax_rate}%")
    console.print(table)


def _print_scenarios(console: Console, title: str, scenarios: Sequence[DividendSalaryScenario]) -> None:
    table = _build_table(
        title,
        ["salary %", "salary", "dividend", "corporate tax", "personal tax", "CPP", "after tax"],
    )
    for s in scenarios:
        marker = " *" if s.is_optimal else ""
        table.add_row(
            f"{s.salary_percent}{marker}",
            _money(s.salary_amount),
            _money(s.dividend_amount),
            _money(s.corporate_tax),
            _money(s.personal_tax),
            _money(s.contribution),
            _money(s.after_tax_income),
        )
    console.print(table)


def _cmd_estimate(args: argparse.Namespace, console: Console) -> int:
    year = args.year
    income = [IncomeRecord(amount=args.income, date=f"{year}-12-31")]
    expenses = [ExpenseRecord(amount=args.expenses, date=f"{year}-12-31")] if args.expenses else []
    result = engine.compute_personal_tax(income, expenses, args.province, year)
    _print_tax_result(console, result)
    return 0


def _cmd_optimize(args: argparse.Namespace, console: Console) -> int:
    grid = salary_split_grid(args.step)
    result = engine.compute_optimization(args.corporate_income, args.year, args.province, grid)
    _print_scenarios(
        console,
        f"{result.tax_year} salary/dividend split on {_money(result.corporate_income)} ({result.province})",
        result.scenarios,
    )
    best = result.optimal
    console.print(
        f"Best split: {best.salary_percent}% salary, after-tax income {_money(best.after_tax_income)}"
    )
    return 0


def _cmd_rates(args: argparse.Namespace, console: Console) -> int:
    schedule = get_rate_schedule(args.year)
    table = _build_table(f"{schedule.tax_year} rate tables", ["field", "BPA", "brackets", "top rate"])
    rows = [schedule.federal, *(schedule.provinces[code] for code in schedule.province_codes())]
    for jurisdiction in rows:
        table.add_row(
            f"{jurisdiction.code} {jurisdiction.name}",
            _money(jurisdiction.basic_personal_amount),
            str(len(jurisdiction.brackets)),
            f"{jurisdiction.brackets.brackets[-1].rate:%}",
        )
    console.print(table)
    return 0


def _cmd_demo(args: argparse.Namespace, console: Console) -> int:
    summary = engine.compute_for_subject(seeded_demo_store(), DEMO_SUBJECT_ID, args.year)
    _print_tax_result(console, summary.tax)
    months = _build_table("Monthly totals", ["field", "income", "expenses"])
    for row in summary.monthly:
        months.add_row(row.month, _money(row.income), _money(row.expenses))
    console.print(months)
    return 0


def _cmd_serve(args: argparse.Namespace, console: Console) -> int:
    import uvicorn

    from taxplan.api.http import app

    console.print(f"Serving tax planner on http://{args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="taxplan",
        description="Planning-grade Canadian tax estimates and salary/dividend optimization.",
    )
    parser.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        default="auto",
        help="Color output preference (default: auto).",
    )
    parser.add_argument(
        "--no-color",
        dest="color",
        action="store_const",
        const="never",
        help="Alias for --color never.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    def _with_year(sub: argparse.ArgumentParser) -> argparse.ArgumentParser:
        sub.add_argument("--year", type=int, default=settings.default_tax_year, help="Tax year.")
        return sub

    estimate = _with_year(commands.add_parser("estimate", help="Personal tax on a single income figure."))
    estimate.add_argument("--income", type=parse_amount, required=True)
    estimate.add_argument("--expenses", type=parse_amount, default=Decimal("0"))
    estimate.add_argument("--province", default=settings.default_province)

    optimize = _with_year(commands.add_parser("optimize", help="Search salary/dividend splits."))
    optimize.add_argument("--corporate-income", type=parse_amount, default=settings.default_corporate_income)
    optimize.add_argument("--province", default=settings.default_province)
    optimize.add_argument("--step", type=int, default=settings.split_step, help="Grid step in percent.")

    _with_year(commands.add_parser("rates", help="Show the rate tables for a year."))
    _with_year(commands.add_parser("demo", help="Run the seeded demo subject."))
    serve = commands.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser.parse_args(argv)


_COMMANDS = {
    "estimate": _cmd_estimate,
    "optimize": _cmd_optimize,
    "rates": _cmd_rates,
    "demo": _cmd_demo,
    "serve": _cmd_serve,
}


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    console = _get_console(args.color)
    try:
        return _COMMANDS[args.command](args, console)
    except RateTableNotFoundError as exc:
        years = ", ".join(str(y) for y in supported_tax_years())
        console.print(f"{exc.args[0]} (available: {years})")
        return 2


if __name__ == "__main__":
    sys.exit(main())
