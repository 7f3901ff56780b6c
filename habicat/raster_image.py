"""Turning a rasterized grid of layer values into an image and writing it to disk."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Protocol, Sequence

from PIL import Image, TiffImagePlugin, TiffTags

from habicat.statistics import turbo_color, value_for_area_fraction

FLT_EPSILON = 1.1920928955078125e-07

# Generic geotransform (origin 0, 0; pixel size 1, -1) and WGS 84 / UTM zone 18N.
_PIXEL_SCALE = (1.0, 1.0, 0.0)
_TIE_POINT = (0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
_EPSG_UTM_18N = 32618
_GEO_KEYS = (
    1, 1, 0, 3,
    1024, 0, 1, 1,  # GTModelTypeGeoKey: projected
    1025, 0, 1, 1,  # GTRasterTypeGeoKey: pixel is area
    3072, 0, 1, _EPSG_UTM_18N,  # ProjectedCSTypeGeoKey
)
_TAG_PIXEL_SCALE = 33550
_TAG_TIE_POINT = 33922
_TAG_GEO_KEYS = 34735
_TAG_NODATA = 42113


class RasterizationMode(IntEnum):
    """How the values of the triangles in a cell are combined."""

    MIN = 0
    MAX = 1
    MEAN = 2
    CUMULATIVE = 3


class SaveMode(IntEnum):
    """Image file format to write."""

    PNG = 0
    TIF = 1
    TIF_32BIT = 2


class RasterCell(Protocol):
    value: float
    triangles_in_cell: Sequence[int]
    triangles_in_cell_area: Sequence[float]


@dataclass
class RasterImage:
    """A square RGBA preview and the raw cell values behind it, row by row."""

    resolution: int
    rgba: bytes
    values: list[float]
    min_for_color_map: float
    max_for_color_map: float

    def save(self, path: str | Path, save_mode: SaveMode | int = SaveMode.PNG) -> Path:
        """Write the image; a path with no extension gets .png or .tif. Returns the path written."""
        try:
            mode = SaveMode(save_mode)
        except ValueError as error:
            raise ValueError(f"unknown save mode {save_mode!r}") from error
        if self.resolution <= 0:
            raise ValueError("image is empty")

        target = Path(path)
        if not target.suffix:
            extension = ".png" if mode is SaveMode.PNG else ".tif"
            target = target.with_name(target.name + extension)

        size = (self.resolution, self.resolution)
        if mode is SaveMode.TIF_32BIT:
            if len(self.values) != self.resolution * self.resolution:
                raise ValueError("raw values do not match the image resolution")
            image = Image.new("F", size)
            image.putdata(self.values)
            image.save(target, format="TIFF", tiffinfo=_geo_tags())
            return target

        if len(self.rgba) != self.resolution * self.resolution * 4:
            raise ValueError("colour data does not match the image resolution")
        image = Image.frombytes("RGBA", size, self.rgba)
        if mode is SaveMode.PNG:
            image.save(target, format="PNG")
        else:
            image.save(target, format="TIFF", tiffinfo=_geo_tags(with_nodata=False))
        return target


def _geo_tags(with_nodata: bool = True) -> TiffImagePlugin.ImageFileDirectory_v2:
    tags = TiffImagePlugin.ImageFileDirectory_v2()
    entries = [
        (_TAG_PIXEL_SCALE, TiffTags.DOUBLE, _PIXEL_SCALE),
        (_TAG_TIE_POINT, TiffTags.DOUBLE, _TIE_POINT),
        (_TAG_GEO_KEYS, TiffTags.SHORT, _GEO_KEYS),
    ]
    if with_nodata:
        entries.append((_TAG_NODATA, TiffTags.ASCII, "0"))
    for tag, tag_type, value in entries:
        tags.tagtype[tag] = tag_type
        tags[tag] = value
    return tags


def _output_order(size: int, projection: Sequence[float]) -> list[tuple[int, int]]:
    """Grid indices in the order the pixels are laid out for the given projection axis."""
    if projection[0] > 0.0:
        return [(size - 1 - i, size - 1 - j) for i in range(size) for j in range(size)]
    if projection[1] > 0.0:
        return [(c, r) for r in range(size) for c in range(size)]
    if projection[2] > 0.0:
        return [(c, size - 1 - k) for k in range(size) for c in range(size)]
    raise ValueError(f"projection axis {tuple(projection)} has no positive component")


def _normalize(value: float, low: float, high: float) -> float:
    span = high - low
    if span == 0.0:
        return 1.0 if value > low else 0.0
    normalized = (value - low) / span
    if math.isnan(normalized):
        return 0.0
    return min(1.0, max(0.0, normalized))


def build_image(
    cells: Sequence[Sequence[RasterCell]],
    mode: RasterizationMode | int,
    projection: Sequence[float],
    min_visible: float = 0.0,
    max_visible: float = 1.0,
    red_area_percent: float = 5.0,
    unit_area: float = 0.0,
) -> RasterImage:
    """Colour a square grid of cells with the Turbo map, oriented for the projection axis.

    Cells without triangles or with a zero value become transparent. In cumulative
    mode the colour range runs from the area of one cell up to the value above
    which `red_area_percent` of the covered area lies.
    """
    size = len(cells)
    if size == 0:
        raise ValueError("grid is empty")
    if any(len(row) != size for row in cells):
        raise ValueError("grid must be square")
    mode = RasterizationMode(mode)
    order = _output_order(size, projection)

    low, high = float(min_visible), float(max_visible)
    if mode is RasterizationMode.CUMULATIVE:
        low = float(unit_area)
        flat = [cell for row in cells for cell in row]
        values = [float(cell.value) for cell in flat]
        areas = [float(sum(cell.triangles_in_cell_area)) for cell in flat]
        high = value_for_area_fraction(values, areas, red_area_percent / 100.0)
        if high <= low:
            high = low + FLT_EPSILON * 4

    rgba = bytearray()
    raw: list[float] = []
    for first, second in order:
        cell = cells[first][second]
        value = float(cell.value)
        if not cell.triangles_in_cell or value == 0.0:
            rgba.extend((0, 0, 0, 0))
            raw.append(0.0)
            continue
        red, green, blue = turbo_color(_normalize(value, low, high))
        rgba.extend((int(red * 255.0), int(green * 255.0), int(blue * 255.0), 255))
        raw.append(value)

    return RasterImage(
        resolution=size,
        rgba=bytes(rgba),
        values=raw,
        min_for_color_map=low,
        max_for_color_map=high,
    )