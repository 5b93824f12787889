from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

D = Decimal

_CENT = D("0.01")
_ZERO = D("0")
_ONE = D("1")


class RateTableError(ValueError):
    pass


@dataclass(frozen=True)
class TaxBracket:
    lower: D
    upper: D | None
    rate: D

    def __iter__(self):
        return iter((self.lower, self.upper, self.rate))


@dataclass(frozen=True)
class BracketSlice:
    lower: D
    upper: D | None
    rate: D
    taxable_amount: D
    tax: D


@dataclass(frozen=True)
class BracketTable:
    """Ordered marginal rate schedule for one jurisdiction.

    Brackets are contiguous from zero, only the last one is open-ended, and
    rates never decrease. Construction fails with ``RateTableError`` otherwise.
    """

    brackets: tuple[TaxBracket, ...]

    def __post_init__(self) -> None:
        _check_brackets(self.brackets)

    @classmethod
    def from_limits(cls, limits: Iterable[tuple[D | None, D]]) -> "BracketTable":
        """Build a table from ``(up_to, rate)`` pairs; ``None`` marks the open top bracket."""
        brackets: list[TaxBracket] = []
        lower = _ZERO
        for up_to, rate in limits:
            brackets.append(TaxBracket(lower=lower, upper=up_to, rate=rate))
            if up_to is None:
                break
            lower = up_to
        return cls(tuple(brackets))

    @property
    def lowest_rate(self) -> D:
        return self.brackets[0].rate

    def limits(self) -> list[D]:
        return [b.upper for b in self.brackets if b.upper is not None]

    def __iter__(self):
        return iter(self.brackets)

    def __len__(self) -> int:
        return len(self.brackets)


def _check_brackets(brackets: Sequence[TaxBracket]) -> None:
    if not brackets:
        raise RateTableError("Bracket table must contain at least one bracket")
    if brackets[0].lower != _ZERO:
        raise RateTableError(f"First bracket must start at 0, got {brackets[0].lower}")
    previous: TaxBracket | None = None
    for index, bracket in enumerate(brackets):
        if not _ZERO <= bracket.rate <= _ONE:
            raise RateTableError(f"Bracket {index} rate {bracket.rate} outside [0, 1]")
        if previous is not None:
            if previous.upper is None:
                raise RateTableError("Only the last bracket may be open-ended")
            if bracket.lower != previous.upper:
                raise RateTableError(
                    f"Bracket {index} starts at {bracket.lower}, expected {previous.upper}"
                )
            if bracket.rate < previous.rate:
                raise RateTableError(
                    f"Bracket {index} rate {bracket.rate} is lower than {previous.rate}"
                )
        if bracket.upper is not None and bracket.upper <= bracket.lower:
            raise RateTableError(f"Bracket {index} upper limit {bracket.upper} must exceed {bracket.lower}")
        previous = bracket
    if brackets[-1].upper is not None:
        raise RateTableError("Last bracket must be open-ended")


def quantize_cents(value: D) -> D:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def calculate_progressive_tax(
    brackets: Iterable[TaxBracket | tuple[D, D | None, D]],
    taxable_income: D,
) -> D:
    ti = max(_ZERO, taxable_income)
    tax = _ZERO
    for bracket in brackets:
        lower, upper, rate = bracket
        hi = upper if upper is not None else ti
        if ti > lower:
            span = min(ti, hi) - lower
            if span > 0:
                tax += span * rate
        if upper is not None and ti <= upper:
            break
    return quantize_cents(tax)


def basic_personal_credit(amount: D, rate: D) -> D:
    return quantize_cents(amount * rate)


def marginal_tax(income: D, table: BracketTable, basic_personal_amount: D) -> D:
    """Tax on ``income`` less the basic personal credit, never below zero.

    The credit is taken at the lowest bracket rate of ``table``.
    """
    gross = calculate_progressive_tax(table, income)
    credit = basic_personal_credit(basic_personal_amount, table.lowest_rate)
    return max(_ZERO, gross - credit)


def bracket_breakdown(income: D, table: BracketTable) -> list[BracketSlice]:
    ti = max(_ZERO, income)
    slices: list[BracketSlice] = []
    for bracket in table:
        if ti <= bracket.lower:
            break
        top = ti if bracket.upper is None else min(ti, bracket.upper)
        span = top - bracket.lower
        slices.append(
            BracketSlice(
                lower=bracket.lower,
                upper=bracket.upper,
                rate=bracket.rate,
                taxable_amount=quantize_cents(span),
                tax=span * bracket.rate,
            )
        )
    return slices


__all__ = [
    "BracketSlice",
    "BracketTable",
    "RateTableError",
    "TaxBracket",
    "basic_personal_credit",
    "bracket_breakdown",
    "calculate_progressive_tax",
    "marginal_tax",
    "quantize_cents",
]
