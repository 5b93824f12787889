import logging
from dataclasses import asdict
from decimal import Decimal

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from taxplan.config import get_settings
from taxplan.lifespan import build_application_lifespan
from ..core import engine
from ..core.brackets import BracketSlice, bracket_breakdown, quantize_cents
from ..core.models import MAX_AMOUNT, ExpenseRecord, IncomeRecord
from ..core.rates import RateSchedule, RateTableNotFoundError, get_rate_schedule, supported_tax_years
from ..core.validate import has_errors, validate_records
from ..storage import DEMO_SUBJECT_ID, seeded_demo_store

logger = logging.getLogger("taxplan")


async def _announce_defaults(_: FastAPI) -> None:
    settings = get_settings()
    logger.info(
        "Tax planner ready; default_tax_year=%s default_province=%s split_step=%s",
        settings.default_tax_year,
        settings.default_province,
        settings.split_step,
    )


app = FastAPI(
    title="Tax Planner",
    description="Planning-grade personal tax, salary/dividend optimization and GST/HST summaries.",
    lifespan=build_application_lifespan("planner", startup_hook=_announce_defaults),
)

_demo_store = seeded_demo_store()


class RecordsRequest(BaseModel):
    income: list[IncomeRecord] = Field(default_factory=list)
    expenses: list[ExpenseRecord] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class ComputeRequest(RecordsRequest):
    province: str | None = None


def _schedule_for(tax_year: int) -> RateSchedule:
    try:
        return get_rate_schedule(tax_year)
    except RateTableNotFoundError as exc:
        raise HTTPException(status_code=400, detail=exc.args[0]) from exc


def _known_provinces(tax_year: int) -> list[str]:
    try:
        return get_rate_schedule(tax_year).province_codes()
    except RateTableNotFoundError:
        return []


def _slices(slices: list[BracketSlice]) -> list[dict]:
    return [
        {
            "lower": s.lower,
            "upper": s.upper,
            "rate": s.rate,
            "taxable_amount": s.taxable_amount,
            "tax": quantize_cents(s.tax),
        }
        for s in slices
    ]


@app.get("/health")
def health():
    settings = getattr(app.state, "settings", get_settings())
    return {
        "status": "ok",
        "default_tax_year": settings.default_tax_year,
        "supported_tax_years": list(supported_tax_years()),
        "build": {
            "version": settings.build_version,
            "sha": settings.build_sha,
        },
    }


@app.get("/rates/{tax_year}")
def rates(tax_year: int):
    schedule = _schedule_for(tax_year)
    return {
        "tax_year": schedule.tax_year,
        "default_province": schedule.default_province,
        "federal": {
            "basic_personal_amount": schedule.federal.basic_personal_amount,
            "limits": schedule.federal.brackets.limits(),
            "rates": [b.rate for b in schedule.federal.brackets],
        },
        "provinces": {
            code: {
                "name": province.name,
                "basic_personal_amount": province.basic_personal_amount,
                "limits": province.brackets.limits(),
                "rates": [b.rate for b in province.brackets],
            }
            for code, province in sorted(schedule.provinces.items())
        },
        "contribution": asdict(schedule.contribution),
        "corporate": asdict(schedule.corporate),
        "dividend": asdict(schedule.dividend),
    }


@app.post("/tax/{tax_year}/compute")
def compute_tax(tax_year: int, req: ComputeRequest):
    settings = get_settings()
    province = req.province or settings.default_province
    issues = validate_records(
        req.income,
        req.expenses,
        tax_year,
        province,
        supported_tax_years(),
        _known_provinces(tax_year),
    )
    if has_errors(issues):
        return {"ok": False, "issues": [issue.to_dict() for issue in issues]}
    schedule = _schedule_for(tax_year)
    result = engine.compute_personal_tax(req.income, req.expenses, province, tax_year)
    provincial = schedule.province(result.province)
    return {
        "ok": True,
        "issues": [issue.to_dict() for issue in issues],
        "calculation": result.model_dump(),
        "breakdown": {
            "federal": _slices(bracket_breakdown(result.net_income, schedule.federal.brackets)),
            "provincial": _slices(bracket_breakdown(result.net_income, provincial.brackets)),
        },
    }


@app.get("/optimization")
def optimization(
    corporate_income: Decimal | None = Query(default=None, ge=0, le=MAX_AMOUNT),
    tax_year: int | None = None,
    province: str | None = None,
):
    settings = get_settings()
    year = settings.default_tax_year if tax_year is None else tax_year
    income = corporate_income if corporate_income is not None else settings.default_corporate_income
    _schedule_for(year)
    result = engine.compute_optimization(income, year, province)
    return result.model_dump()


@app.post("/gst-hst")
def gst_hst(req: RecordsRequest):
    return engine.compute_gst_hst_summary(req.income, req.expenses).model_dump()


@app.get("/demo/dashboard")
def demo_dashboard(tax_year: int | None = None):
    year = get_settings().default_tax_year if tax_year is None else tax_year
    _schedule_for(year)
    summary = engine.compute_for_subject(_demo_store, DEMO_SUBJECT_ID, year)
    return summary.model_dump()
