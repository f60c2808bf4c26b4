"""
Central API Router
Combines all API endpoints into a single router for main.py
"""
from fastapi import APIRouter
from api.endpoints import basemap
from api import logs

# Create the main API router
api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(basemap.router, prefix="/api/basemap", tags=["basemap"])
api_router.include_router(logs.router, prefix="/api", tags=["logs"])

# Add a root endpoint for API discovery
@api_router.get("/api")
async def api_root():
    """API root endpoint for discovery"""
    return {
        "message": "Basemap Sync API v1.0",
        "documentation": "/docs",
        "endpoints": {
            "config": "/api/basemap/config - Style list and whether the basemap is enabled",
            "state": "/api/basemap/state - Current panel and overlay state",
            "mode": "/api/basemap/mode/enter, /api/basemap/mode/exit - Open or close the basemap panel",
            "style": "/api/basemap/style - Select or clear the active style",
            "view": "/api/basemap/view - Report the map extent and re-sync the overlay",
            "assets": "/api/basemap/assets/loaded - Acknowledge that the map library finished loading",
            "overlay": "/api/basemap/overlay/loaded - Acknowledge the overlay ready event",
            "events": "/api/basemap/events - SSE stream of overlay commands",
            "logs": "/api/logs/recent, /api/logs/basemap - Recent log records"
        }
    }
