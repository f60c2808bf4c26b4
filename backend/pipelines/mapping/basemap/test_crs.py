from __future__ import annotations

import pytest
from pyproj.exceptions import CRSError

from pipelines.mapping.basemap.crs import ProjCRS, is_usable


class FakeCRS:
    def __init__(self, invertible: bool = True, mercator: bool = False) -> None:
        self.invertible = invertible
        self.mercator = mercator

    def is_invertible(self) -> bool:
        return self.invertible

    def is_web_mercator(self) -> bool:
        return self.mercator


def test_missing_crs_is_not_usable() -> None:
    assert is_usable(None) is False


def test_non_invertible_crs_is_not_usable() -> None:
    assert is_usable(FakeCRS(invertible=False)) is False


def test_invertible_crs_is_usable() -> None:
    assert is_usable(FakeCRS(invertible=True)) is True


@pytest.mark.parametrize("code", ["EPSG:4326", "EPSG:3857", "EPSG:32613", "EPSG:26913"])
def test_common_crs_are_invertible(code: str) -> None:
    crs = ProjCRS.from_user_input(code)
    assert crs.is_invertible() is True
    assert is_usable(crs) is True


def test_web_mercator_detection() -> None:
    assert ProjCRS.web_mercator().is_web_mercator() is True
    assert ProjCRS.from_user_input("EPSG:4326").is_web_mercator() is False
    assert ProjCRS.from_user_input("EPSG:32613").is_web_mercator() is False


def test_from_user_input_passes_descriptors_through() -> None:
    crs = ProjCRS.web_mercator()
    assert ProjCRS.from_user_input(crs) is crs


def test_from_user_input_rejects_garbage() -> None:
    with pytest.raises(CRSError):
        ProjCRS.from_user_input("definitely not a crs")


def test_descriptors_compare_by_crs() -> None:
    assert ProjCRS.from_user_input("EPSG:3857") == ProjCRS.web_mercator()
    assert ProjCRS.from_user_input("EPSG:4326") != ProjCRS.web_mercator()


class SpelledCRS:
    """pyproj-like CRS that is equivalent to every other SpelledCRS"""

    is_geographic = False
    is_projected = True

    def __init__(self, wkt: str) -> None:
        self.wkt = wkt

    def to_wkt(self) -> str:
        return self.wkt

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SpelledCRS)


def test_equivalent_descriptors_hash_alike() -> None:
    by_code = ProjCRS(SpelledCRS('PROJCRS["WGS 84 / Pseudo-Mercator"]'))
    by_string = ProjCRS(SpelledCRS('PROJCRS["unnamed", METHOD["Popular Visualisation Pseudo Mercator"]]'))

    assert by_code == by_string
    assert hash(by_code) == hash(by_string)
    assert len({by_code, by_string}) == 1


def test_real_descriptors_dedupe_in_sets() -> None:
    crs_set = {ProjCRS.from_user_input("EPSG:4326"), ProjCRS.from_user_input(4326), ProjCRS.web_mercator()}
    assert len(crs_set) == 2
