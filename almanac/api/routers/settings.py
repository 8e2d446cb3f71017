"""Settings API routes."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing_extensions import Annotated

from almanac.api.dependencies import CommonDependencies, get_common_deps
from almanac.settings import DEFAULTS

router = APIRouter(prefix="/settings", tags=["settings"])


class SettingValue(BaseModel):
    value: Any


@router.get("")
async def get_settings(deps: Annotated[CommonDependencies, Depends(get_common_deps)]) -> dict[str, Any]:
    return await deps.settings.all()


@router.put("/{key}")
async def set_setting(
    key: str,
    body: SettingValue,
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
) -> dict[str, str]:
    """Update one setting. New values apply to viewers created afterwards."""
    if key not in DEFAULTS:
        raise HTTPException(status_code=404, detail=f"Unknown setting: {key}")
    expected = type(DEFAULTS[key])
    if expected is bool and not isinstance(body.value, bool):
        raise HTTPException(status_code=400, detail=f"{key} must be a boolean")
    if expected is int and (isinstance(body.value, bool) or not isinstance(body.value, int | float)):
        raise HTTPException(status_code=400, detail=f"{key} must be a number")
    if expected is str and not isinstance(body.value, str):
        raise HTTPException(status_code=400, detail=f"{key} must be a string")
    await deps.settings.set(key, body.value)
    return {"status": "ok"}
