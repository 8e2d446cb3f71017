"""Calendar event API routes."""

import logging
from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing_extensions import Annotated

from almanac.api.dependencies import CommonDependencies, get_common_deps
from almanac.api.errors import raise_for, require, split_list, unwrap
from almanac.errors import AlmanacError
from almanac.types import DateRange, EventFilters, RefType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


class SettleRequest(BaseModel):
    """Optional settlement date; defaults to today."""

    settled_date: Optional[date] = None


def build_filters(account_id: Optional[str], types: Optional[str], statuses: Optional[str]) -> EventFilters:
    return EventFilters.build(account_id=account_id, types=split_list(types), statuses=split_list(statuses))


@router.get("")
async def get_events(
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
    unit_id: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    account_id: Optional[str] = None,
    types: Optional[str] = None,
    statuses: Optional[str] = None,
) -> dict[str, Any]:
    """Events for a unit and inclusive date range (cached per viewer)."""
    require(start, "start")
    require(end, "end")
    try:
        filters = build_filters(account_id, types, statuses)
        view = await deps.controller.load(unit_id, DateRange(start, end), filters)
    except AlmanacError as e:
        raise_for(e)
    return view.to_dict()


@router.post("/refetch")
async def refetch_events(deps: Annotated[CommonDependencies, Depends(get_common_deps)]) -> dict[str, Any]:
    """Bypass the cache and reload the viewer's current range."""
    try:
        view = await deps.controller.refetch()
    except AlmanacError as e:
        raise_for(e)
    return view.to_dict()


@router.get("/{ref_type}/{event_id}")
async def get_event(
    ref_type: str,
    event_id: str,
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
) -> dict[str, Any]:
    try:
        event = await deps.store.get_event(event_id, RefType.parse(ref_type))
    except AlmanacError as e:
        raise_for(e)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return event.to_dict()


@router.post("/{ref_type}/{event_id}/settle")
async def settle_event(
    ref_type: str,
    event_id: str,
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
    request: Optional[SettleRequest] = None,
) -> dict[str, Any]:
    """Mark a receivable as received or a payable as paid."""
    settled_date = request.settled_date if request else None
    unwrap(await deps.controller.mark_settled(event_id, ref_type, settled_date=settled_date))
    return {"status": "ok", "view": deps.controller.snapshot().to_dict()}


@router.post("/{ref_type}/{event_id}/cancel")
async def cancel_event(
    ref_type: str,
    event_id: str,
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
) -> dict[str, Any]:
    unwrap(await deps.controller.cancel(event_id, ref_type))
    return {"status": "ok", "view": deps.controller.snapshot().to_dict()}


@router.post("/{ref_type}/{event_id}/reconcile")
async def reconcile_event(
    ref_type: str,
    event_id: str,
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
    request: Optional[SettleRequest] = None,
) -> dict[str, Any]:
    """Mark an event as matched against bank activity."""
    settled_date = request.settled_date if request else None
    unwrap(await deps.controller.reconcile(event_id, ref_type, settled_date=settled_date))
    return {"status": "ok", "view": deps.controller.snapshot().to_dict()}
