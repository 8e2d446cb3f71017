"""Status reconciliation routes."""

from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends
from typing_extensions import Annotated

from almanac.api.dependencies import CommonDependencies, get_common_deps
from almanac.api.errors import raise_for, require
from almanac.errors import AlmanacError
from almanac.types import DateRange, EventFilters, RefType

router = APIRouter(prefix="/reconciliation", tags=["reconciliation"])


@router.post("/run")
async def run_reconciliation(
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
    unit_id: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> dict[str, Any]:
    """Correct receivable/payable statuses in a range. Failures are reported, not raised."""
    require(start, "start")
    require(end, "end")
    try:
        filters = EventFilters.build(types=[RefType.RECEIVABLE, RefType.PAYABLE])
        events = await deps.store.query(unit_id, DateRange(start, end), filters)
    except AlmanacError as e:
        raise_for(e)
    report = await deps.controller.reconcile_batch(events)
    return report.to_dict()
