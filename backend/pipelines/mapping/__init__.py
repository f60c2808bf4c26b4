"""
Mapping Pipeline Module
Geographic mapping functionality for keeping the basemap overlay aligned with the data view
"""
from .basemap import BasemapController, ResourceLifecycleManager

__all__ = ["BasemapController", "ResourceLifecycleManager"]
