import io
import json
import logging
import zipfile
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Response, status

from services.logging_service import LOG_FILE, get_ring_handler


router = APIRouter(prefix="/logs", tags=["logs"])
logger = logging.getLogger(__name__)

BASEMAP_LOGGERS = "pipelines.mapping.basemap"


@router.get("/recent")
def get_recent_logs(
    limit: int = Query(500, ge=1, le=5000),
    level: str = Query("DEBUG"),
    name: Optional[str] = Query(None, description="Logger prefix, e.g. pipelines.mapping.basemap"),
):
    min_level = logging.getLevelName(level.upper())
    if not isinstance(min_level, int):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Unknown log level: {level}")
    return {"logs": get_ring_handler().get_recent(limit, min_level=min_level, name_prefix=name)}


@router.get("/basemap")
def get_basemap_logs(limit: int = Query(200, ge=1, le=5000)):
    """Recent controller, lifecycle and policy records only"""
    return {"logs": get_ring_handler().get_recent(limit, name_prefix=BASEMAP_LOGGERS)}


@router.get("/download")
def download_logs():
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        # basemap-sync.log plus its rotated siblings
        if LOG_FILE.parent.is_dir():
            for path in sorted(LOG_FILE.parent.glob(f"{LOG_FILE.name}*")):
                if path.is_file():
                    zf.write(path, arcname=path.name)
        else:
            logger.debug(f"Log directory not created yet: {LOG_FILE.parent}")

        ring_json = json.dumps({"logs": get_ring_handler().get_recent(2000)}, indent=2).encode("utf-8")
        zf.writestr("recent_ring_buffer.json", ring_json)

    headers = {"Content-Disposition": 'attachment; filename="basemap-sync-logs.zip"'}
    return Response(content=buf.getvalue(), media_type="application/zip", headers=headers)
