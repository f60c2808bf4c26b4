"""
Basemap API Endpoints
=====================

Drive the basemap controller from the browser: panel commands, style
selection, view extent reports, readiness acknowledgments, and the SSE
stream of overlay commands.
"""
import asyncio
import logging
from typing import Any, AsyncGenerator, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
from pyproj.exceptions import CRSError

from pipelines.mapping.basemap.crs import ProjCRS
from services.basemap.session import BasemapSession, get_basemap_session

logger = logging.getLogger(__name__)
router = APIRouter()


class StyleSelectionRequest(BaseModel):
    """Select a style by name; null turns the basemap off"""
    name: Optional[str] = None


class ViewReportRequest(BaseModel):
    """Extent report sent by the browser after every render"""
    bbox: List[float] = Field(..., min_length=4, max_length=4)
    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)
    crs: Optional[str] = None
    layerCrs: Optional[str] = None


class AssetsLoadedRequest(BaseModel):
    error: Optional[str] = None


def _require_enabled(session: BasemapSession) -> None:
    if not session.enabled:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Basemap feature is not configured"
        )


def _parse_crs(value: Optional[str], field_name: str) -> Optional[ProjCRS]:
    if value is None:
        return None
    try:
        return ProjCRS.from_user_input(value)
    except CRSError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid {field_name}: {e}"
        )


@router.get("/config")
async def get_basemap_config(session: BasemapSession = Depends(get_basemap_session)) -> Dict[str, Any]:
    """Style list for the picker; `enabled: false` hides the basemap button"""
    config = session.config
    if not session.enabled:
        return {"enabled": False, "styles": []}
    return {
        "enabled": True,
        "accessToken": config.access_token,
        "js": config.js_url,
        "css": config.css_url,
        "styles": [
            {
                "name": style.name,
                "iconUrl": style.icon_url.replace("{token}", config.access_token),
                "dark": style.dark,
            }
            for style in config.styles
        ],
    }


@router.get("/state")
async def get_basemap_state(session: BasemapSession = Depends(get_basemap_session)) -> Dict[str, Any]:
    return session.controller.snapshot()


@router.post("/mode/enter")
async def enter_basemap_mode(session: BasemapSession = Depends(get_basemap_session)) -> Dict[str, Any]:
    _require_enabled(session)
    session.controller.enter_mode()
    return session.controller.snapshot()


@router.post("/mode/exit")
async def exit_basemap_mode(session: BasemapSession = Depends(get_basemap_session)) -> Dict[str, Any]:
    _require_enabled(session)
    session.controller.exit_mode()
    return session.controller.snapshot()


@router.post("/map-click")
async def basemap_map_click(session: BasemapSession = Depends(get_basemap_session)) -> Dict[str, Any]:
    session.host.report_map_click()
    return session.controller.snapshot()


@router.post("/style")
async def select_basemap_style(
    request: StyleSelectionRequest,
    session: BasemapSession = Depends(get_basemap_session),
) -> Dict[str, Any]:
    """
    Select or clear the active basemap style

    Args:
        request: {name: str | null}

    Returns:
        dict: controller snapshot after the selection
    """
    _require_enabled(session)
    style = None
    if request.name is not None:
        style = session.config.find_style(request.name)
        if style is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Unknown basemap style: {request.name}"
            )
    logger.info(f"🗺️ Style selection: {request.name}")
    session.controller.select_style(style)
    return session.controller.snapshot()


@router.post("/view")
async def report_basemap_view(
    request: ViewReportRequest,
    session: BasemapSession = Depends(get_basemap_session),
) -> Dict[str, Any]:
    """Store the browser's current extent and re-sync the overlay"""
    display_crs = _parse_crs(request.crs, "crs")
    layer_crs = _parse_crs(request.layerCrs, "layerCrs")
    session.host.report_view(
        request.bbox,
        request.width,
        request.height,
        display_crs=display_crs,
        layer_crs=layer_crs,
    )
    return session.controller.snapshot()


@router.post("/assets/loaded")
async def basemap_assets_loaded(
    request: AssetsLoadedRequest,
    session: BasemapSession = Depends(get_basemap_session),
) -> Dict[str, Any]:
    if request.error:
        logger.error(f"❌ Browser failed to load basemap assets: {request.error}")
    accepted = session.asset_loader.mark_loaded(request.error)
    return {"accepted": accepted}


@router.post("/overlay/loaded")
async def basemap_overlay_loaded(session: BasemapSession = Depends(get_basemap_session)) -> Dict[str, Any]:
    accepted = session.mark_overlay_loaded()
    if not accepted:
        logger.warning("⚠️ Overlay load reported with no pending overlay")
    return {"accepted": accepted, "state": session.controller.snapshot()}


async def _sse_stream(q: asyncio.Queue) -> AsyncGenerator[str, None]:
    try:
        while True:
            try:
                # Wait up to 10 seconds for an event; emit heartbeat if idle
                data = await asyncio.wait_for(q.get(), timeout=10.0)
                yield f"data: {data}\n\n"
            except asyncio.TimeoutError:
                yield "event: ping\ndata: {}\n\n"
    except asyncio.CancelledError:
        return


@router.get("/events", include_in_schema=False)
async def basemap_events(session: BasemapSession = Depends(get_basemap_session)):
    q = await session.bus.subscribe()
    logger.debug(f"SSE: basemap client subscribed, subscribers={session.bus.get_subscriber_count()}")

    async def gen():
        try:
            async for chunk in _sse_stream(q):
                yield chunk
        finally:
            await session.bus.unsubscribe(q)
            logger.debug(f"SSE: basemap client unsubscribed, subscribers={session.bus.get_subscriber_count()}")
    return StreamingResponse(gen(), media_type="text/event-stream")
