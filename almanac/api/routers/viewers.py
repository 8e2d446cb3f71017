"""Viewer session routes."""

import logging

from fastapi import APIRouter, HTTPException

from almanac.api.dependencies import viewers

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/viewers", tags=["viewers"])


@router.delete("/{viewer_id}")
async def dispose_viewer(viewer_id: str) -> dict[str, str]:
    """Drop a viewer's controller, cancelling its queries and clearing its cache."""
    if not await viewers.dispose(viewer_id):
        raise HTTPException(status_code=404, detail=f"Unknown viewer: {viewer_id}")
    logger.info(f"Viewer {viewer_id} disposed")
    return {"status": "ok"}
