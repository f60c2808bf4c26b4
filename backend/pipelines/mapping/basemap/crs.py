"""
CRS Compatibility
Decides whether a coordinate reference system can back the basemap overlay
"""
import logging
from typing import Any, Optional

from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError, ProjError

from .types import CRSDescriptor

logger = logging.getLogger(__name__)

WEB_MERCATOR_EPSG_CODES = {3857, 900913, 3785, 102100, 102113}
PSEUDO_MERCATOR_METHOD = "popular visualisation pseudo mercator"


class ProjCRS:
    """
    CRS descriptor backed by a pyproj CRS.

    Answers the two questions the basemap controller asks of a CRS: can it be
    inverted to geographic coordinates, and is it Web Mercator.
    """

    def __init__(self, crs: CRS):
        self.crs = crs
        self._invertible: Optional[bool] = None

    @classmethod
    def from_user_input(cls, value: Any) -> "ProjCRS":
        """
        Build a descriptor from anything pyproj understands (EPSG code,
        "EPSG:xxxx", proj string, WKT).

        Raises:
            CRSError: if pyproj cannot parse the input
        """
        if isinstance(value, ProjCRS):
            return value
        return cls(CRS.from_user_input(value))

    @classmethod
    def web_mercator(cls) -> "ProjCRS":
        return cls(CRS.from_epsg(3857))

    def is_invertible(self) -> bool:
        """Whether geographic <-> projected conversion is defined both ways"""
        if self._invertible is None:
            self._invertible = self._check_invertible()
        return self._invertible

    def _check_invertible(self) -> bool:
        if self.crs.is_geographic:
            return True
        try:
            geodetic = self.crs.geodetic_crs
            if geodetic is None:
                logger.debug(f"🧭 CRS has no geodetic base: {self.name}")
                return False
            transformer = Transformer.from_crs(geodetic, self.crs, always_xy=True)
            return bool(transformer.has_inverse)
        except (CRSError, ProjError) as e:
            logger.debug(f"🧭 CRS not invertible ({self.name}): {e}")
            return False

    def is_web_mercator(self) -> bool:
        epsg = self.crs.to_epsg()
        if epsg in WEB_MERCATOR_EPSG_CODES:
            return True
        operation = self.crs.coordinate_operation
        if operation is None:
            return False
        return operation.method_name.lower() == PSEUDO_MERCATOR_METHOD

    @property
    def name(self) -> str:
        return self.crs.name

    def to_string(self) -> str:
        return self.crs.to_string()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProjCRS):
            return NotImplemented
        return self.crs == other.crs

    def __hash__(self) -> int:
        # Equivalent CRSs must hash alike however they were written
        return hash((self.crs.is_geographic, self.crs.is_projected))

    def __repr__(self) -> str:
        return f"ProjCRS({self.to_string()!r})"


def is_usable(crs: Optional[CRSDescriptor]) -> bool:
    """
    Check whether a CRS can be used alongside the basemap

    Args:
        crs: CRS descriptor from the host projection system, or None

    Returns:
        bool: False when the CRS is missing or has no inverse, True otherwise
    """
    if crs is None:
        return False
    if not crs.is_invertible():
        return False
    return True
