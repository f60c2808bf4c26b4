"""
Basemap Module
Synchronizes a background reference map with the primary map view
"""
from .controller import BasemapController
from .lifecycle import ResourceLifecycleManager
from .crs import ProjCRS, is_usable
from .bounds import to_geo_bounds
from .zoom_policy import check_bounds, scale_to_zoom

__all__ = [
    "BasemapController",
    "ResourceLifecycleManager",
    "ProjCRS",
    "is_usable",
    "to_geo_bounds",
    "check_bounds",
    "scale_to_zoom",
]
