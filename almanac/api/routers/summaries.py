"""Calendar and dashboard summary routes."""

from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends
from typing_extensions import Annotated

from almanac.api.dependencies import CommonDependencies, get_common_deps
from almanac.api.errors import raise_for, require, unwrap
from almanac.errors import AlmanacError
from almanac.types import DateRange

router = APIRouter(prefix="/summaries", tags=["summaries"])


def _range(start: Optional[date], end: Optional[date]) -> DateRange:
    require(start, "start")
    require(end, "end")
    try:
        return DateRange(start, end)
    except AlmanacError as e:
        raise_for(e)


@router.get("/daily")
async def get_daily_summary(
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
    day: Optional[date] = None,
    unit_id: Optional[str] = None,
) -> dict[str, Any]:
    """Totals and counts for one calendar day."""
    require(day, "day")
    summary = unwrap(await deps.controller.get_daily_summary(day, unit_id=unit_id))
    return summary.to_dict()


@router.get("/monthly")
async def get_monthly_summary(
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
    year: Optional[int] = None,
    unit_id: Optional[str] = None,
) -> dict[str, Any]:
    """Twelve monthly buckets for a year."""
    require(year, "year")
    months = unwrap(await deps.controller.get_monthly_summary(year, unit_id=unit_id))
    return {"year": year, "months": [m.to_dict() for m in months]}


@router.get("/categories")
async def get_category_summary(
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
    start: Optional[date] = None,
    end: Optional[date] = None,
    unit_id: Optional[str] = None,
) -> dict[str, Any]:
    groups = unwrap(await deps.controller.get_category_summary(_range(start, end), unit_id=unit_id))
    return {"categories": [g.to_dict() for g in groups]}


@router.get("/overall")
async def get_overall_summary(
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
    start: Optional[date] = None,
    end: Optional[date] = None,
    unit_id: Optional[str] = None,
) -> dict[str, Any]:
    """Planned vs settled totals and balances for a range."""
    summary = unwrap(await deps.controller.get_overall_summary(_range(start, end), unit_id=unit_id))
    return summary.to_dict()
