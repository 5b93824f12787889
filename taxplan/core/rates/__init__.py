"""Versioned rate tables.

Each tax year lives in ``data/<year>.toml``. Tables are validated when they are
loaded and cached per year; an unknown year is a configuration error and is
never silently replaced by another year's rates.
"""
from __future__ import annotations

import logging
import re
import tomllib
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from taxplan.config import get_settings
from taxplan.core.brackets import BracketTable, RateTableError

D = Decimal

logger = logging.getLogger("taxplan.rates")

_DATA_DIR = Path(__file__).resolve().parent / "data"
_YEAR_FILE = re.compile(r"^(\d{4})\.toml$")


class RateTableNotFoundError(KeyError):
    pass


@dataclass(frozen=True)
class JurisdictionRates:
    code: str
    name: str
    brackets: BracketTable
    basic_personal_amount: D


@dataclass(frozen=True)
class ContributionRates:
    floor: D
    ceiling: D
    rate: D


@dataclass(frozen=True)
class CorporateRates:
    small_business_rate: D
    small_business_limit: D
    general_rate: D


@dataclass(frozen=True)
class DividendRates:
    gross_up_rate: D
    credit_rate: D


@dataclass(frozen=True)
class RateSchedule:
    tax_year: int
    federal: JurisdictionRates
    provinces: Mapping[str, JurisdictionRates]
    default_province: str
    contribution: ContributionRates
    corporate: CorporateRates
    dividend: DividendRates

    def province(self, code: str | None) -> JurisdictionRates:
        """Rates for ``code``; unknown or missing codes resolve to the default province."""
        province_code = (code or "").strip().upper()
        try:
            return self.provinces[province_code]
        except KeyError:
            logger.warning(
                "Unknown province %r for %s; falling back to %s",
                code,
                self.tax_year,
                self.default_province,
            )
            return self.provinces[self.default_province]

    def province_codes(self) -> list[str]:
        return sorted(self.provinces)


def _decimal(raw: Any, where: str) -> D:
    try:
        value = D(str(raw))
    except (InvalidOperation, ValueError) as exc:
        raise RateTableError(f"{where}: {raw!r} is not a number") from exc
    if not value.is_finite() or value < 0:
        raise RateTableError(f"{where}: {raw!r} must be a non-negative number")
    return value


def _section(raw: Mapping[str, Any], key: str, where: str) -> Mapping[str, Any]:
    value = raw.get(key)
    if not isinstance(value, Mapping):
        raise RateTableError(f"{where}: missing [{key}] section")
    return value


def _parse_jurisdiction(code: str, raw: Mapping[str, Any], where: str) -> JurisdictionRates:
    entries = raw.get("brackets")
    if not isinstance(entries, list) or not entries:
        raise RateTableError(f"{where}: brackets must be a non-empty list")
    limits: list[tuple[D | None, D]] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, Mapping) or "rate" not in entry:
            raise RateTableError(f"{where}: bracket {index} needs a rate")
        up_to = entry.get("up_to")
        limits.append(
            (
                None if up_to is None else _decimal(up_to, f"{where} bracket {index}"),
                _decimal(entry["rate"], f"{where} bracket {index}"),
            )
        )
    if any(up_to is None for up_to, _ in limits[:-1]):
        raise RateTableError(f"{where}: only the last bracket may omit up_to")
    try:
        table = BracketTable.from_limits(limits)
    except RateTableError as exc:
        raise RateTableError(f"{where}: {exc}") from exc
    return JurisdictionRates(
        code=code,
        name=str(raw.get("name", code)),
        brackets=table,
        basic_personal_amount=_decimal(raw.get("basic_personal_amount", "0"), f"{where} bpa"),
    )


def parse_rate_schedule(raw: Mapping[str, Any], source: str = "<memory>") -> RateSchedule:
    try:
        tax_year = int(raw["tax_year"])
    except (KeyError, TypeError, ValueError) as exc:
        raise RateTableError(f"{source}: tax_year is required") from exc

    federal = _parse_jurisdiction("CA", _section(raw, "federal", source), f"{source} federal")
    provinces_raw = _section(raw, "provinces", source)
    provinces = {
        code.upper(): _parse_jurisdiction(code.upper(), section, f"{source} {code}")
        for code, section in provinces_raw.items()
    }
    default_province = str(raw.get("default_province", "ON")).upper()
    if default_province not in provinces:
        raise RateTableError(f"{source}: default province {default_province} has no table")

    contribution = _section(raw, "contribution", source)
    corporate = _section(raw, "corporate", source)
    dividend = _section(raw, "dividend", source)
    schedule = RateSchedule(
        tax_year=tax_year,
        federal=federal,
        provinces=MappingProxyType(provinces),
        default_province=default_province,
        contribution=ContributionRates(
            floor=_decimal(contribution.get("floor"), f"{source} contribution floor"),
            ceiling=_decimal(contribution.get("ceiling"), f"{source} contribution ceiling"),
            rate=_decimal(contribution.get("rate"), f"{source} contribution rate"),
        ),
        corporate=CorporateRates(
            small_business_rate=_decimal(corporate.get("small_business_rate"), f"{source} corporate"),
            small_business_limit=_decimal(corporate.get("small_business_limit"), f"{source} corporate"),
            general_rate=_decimal(corporate.get("general_rate"), f"{source} corporate"),
        ),
        dividend=DividendRates(
            gross_up_rate=_decimal(dividend.get("gross_up_rate"), f"{source} dividend"),
            credit_rate=_decimal(dividend.get("credit_rate"), f"{source} dividend"),
        ),
    )
    if schedule.contribution.ceiling < schedule.contribution.floor:
        raise RateTableError(f"{source}: contribution ceiling below floor")
    if schedule.dividend.gross_up_rate < 1:
        raise RateTableError(f"{source}: dividend gross-up rate must be at least 1")
    return schedule


def _search_dirs() -> list[Path]:
    dirs = []
    extra = get_settings().rates_dir
    if extra:
        dirs.append(Path(extra))
    dirs.append(_DATA_DIR)
    return dirs


def _rate_files() -> dict[int, Path]:
    files: dict[int, Path] = {}
    # Earlier directories win so an override directory can replace a bundled year.
    for directory in reversed(_search_dirs()):
        if not directory.is_dir():
            logger.debug("Rate directory %s not found; skipping", directory)
            continue
        for path in directory.glob("*.toml"):
            match = _YEAR_FILE.match(path.name)
            if match:
                files[int(match.group(1))] = path
    return files


def supported_tax_years() -> tuple[int, ...]:
    return tuple(sorted(_rate_files()))


@lru_cache(maxsize=None)
def get_rate_schedule(tax_year: int) -> RateSchedule:
    path = _rate_files().get(int(tax_year))
    if path is None:
        raise RateTableNotFoundError(f"No rate table available for tax year {tax_year}")
    with path.open("rb") as handle:
        try:
            raw = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise RateTableError(f"{path.name}: {exc}") from exc
    schedule = parse_rate_schedule(raw, source=path.name)
    if schedule.tax_year != int(tax_year):
        raise RateTableError(f"{path.name} declares tax_year {schedule.tax_year}")
    logger.info(
        "Loaded %s rate table: %s provinces from %s",
        tax_year,
        len(schedule.provinces),
        path,
    )
    return schedule


def clear_rate_cache() -> None:
    get_rate_schedule.cache_clear()


__all__ = [
    "ContributionRates",
    "CorporateRates",
    "DividendRates",
    "JurisdictionRates",
    "RateSchedule",
    "RateTableError",
    "RateTableNotFoundError",
    "clear_rate_cache",
    "get_rate_schedule",
    "parse_rate_schedule",
    "supported_tax_years",
]
