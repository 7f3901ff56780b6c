"""Projecting a mesh layer onto a square 2D grid of cells along a principal axis."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Sequence

from habicat.geometry import (
    AABB,
    Layer,
    Mesh,
    Vec3,
    closest_axis,
    triangle_area_in_aabb,
    triangle_intersects_aabb,
)
from habicat.raster_image import RasterImage, RasterizationMode, build_image
from habicat.statistics import RasterStatistics, grid_statistics

FLT_EPSILON = 1.1920928955078125e-07
MIN_RESOLUTION = 16
MAX_RESOLUTION = 4096
DEFAULT_RED_AREA_PERCENT = 5.0
_ZERO: Vec3 = (0.0, 0.0, 0.0)


@dataclass
class GridCell:
    """One column of the raster grid and the triangles that fall into it."""

    aabb: AABB
    triangles_in_cell: list[int] = field(default_factory=list)
    triangles_in_cell_area: list[float] = field(default_factory=list)
    value: float = 0.0


def _is_zero(vector: Sequence[float]) -> bool:
    return all(abs(component) < FLT_EPSILON for component in vector)


def _plane_indices(axis: Sequence[float]) -> tuple[int, int, int]:
    """The projection axis index and the two axes of the plane across it."""
    if axis[0] > 0.0:
        return 0, 1, 2
    if axis[1] > 0.0:
        return 1, 0, 2
    if axis[2] > 0.0:
        return 2, 0, 1
    raise ValueError(f"projection axis {tuple(axis)} has no positive component")


def _span(tri_low: float, tri_high: float, grid_low: float, grid_high: float,
          cell: float, count: int) -> range:
    """Cells along one axis a triangle's bounds may reach, padded by one cell."""
    begin = max(0, int(abs(tri_low - grid_low) / cell) - 1)
    end = min(count, count - int(abs(tri_high - grid_high) / cell) + 1)
    return range(begin, end)


class LayerRasterizer:
    """Rasterizes the per-triangle values of a layer into a square image."""

    def __init__(self, mesh: Mesh | None = None) -> None:
        self.mesh = mesh
        self.resolution = 256
        self.resolution_in_meters = 1.0
        self.projection_vector: Vec3 = _ZERO
        self.progress = 0.0
        self.grid: list[list[GridCell]] = []
        self.layer: Layer | None = None
        self.image: RasterImage | None = None
        self.statistics: RasterStatistics | None = None
        self.total_area_used = 0.0
        self._mode = RasterizationMode.MAX
        self._red_area_percent = DEFAULT_RED_AREA_PERCENT
        self._start_callbacks: list[Callable[[], object]] = []
        self._end_callbacks: list[Callable[[], object]] = []

    @property
    def mode(self) -> RasterizationMode:
        return self._mode

    @mode.setter
    def mode(self, value: RasterizationMode | int) -> None:
        self._mode = RasterizationMode(value)

    @property
    def red_area_percent(self) -> float:
        """Percent of the covered area shown as the top colour in cumulative mode."""
        return self._red_area_percent

    @red_area_percent.setter
    def red_area_percent(self, value: float) -> None:
        if not 0.0 <= value <= 99.99:
            raise ValueError(f"percent of area {value} is outside [0, 99.99]")
        self._red_area_percent = float(value)

    def _require_mesh(self) -> Mesh:
        if self.mesh is None:
            raise ValueError("no mesh loaded")
        return self.mesh

    def _update_projection_vector(self) -> None:
        if self.mesh is not None:
            self.projection_vector = closest_axis(self.mesh.average_normal())

    def _ensure_projection(self) -> Vec3:
        if _is_zero(self.projection_vector):
            self._update_projection_vector()
        return self.projection_vector

    def _usable_size(self, axis: Sequence[float]) -> float:
        _, u, v = _plane_indices(axis)
        size = self._require_mesh().aabb().size()
        return max(size[u], size[v])

    def _pixels(self, axis: Sequence[float], meters: float) -> int:
        if meters <= 0.0 or _is_zero(axis) or sum(axis) != 1.0 or self.mesh is None:
            return 0
        return int(self._usable_size(axis) / meters) + 1

    def min_max_resolution_in_meters(
        self, projection_vector: Sequence[float] | None = None
    ) -> tuple[float, float]:
        """Largest and smallest allowed cell size for the projection, or (0, 0) without a mesh."""
        if self.mesh is None:
            return (0.0, 0.0)
        axis: Sequence[float] = self.projection_vector
        if projection_vector is not None and not _is_zero(projection_vector):
            axis = tuple(float(c) for c in projection_vector)
        if _is_zero(axis):
            self._update_projection_vector()
            axis = self.projection_vector
        if _is_zero(axis):
            return (0.0, 0.0)
        usable = self._usable_size(axis)
        return (usable / (MIN_RESOLUTION + 1), usable / (MAX_RESOLUTION + 1))

    def resolution_in_meters_for_pixels(self, pixels: int) -> float:
        """Cell size that spreads the mesh over the given number of pixels."""
        if pixels <= 0:
            raise ValueError(f"pixel count must be positive, got {pixels}")
        self._require_mesh()
        return self._usable_size(self._ensure_projection()) / pixels

    def resolution_in_pixels_for_meters(self, meters: float) -> int:
        """Number of cells needed to cover the mesh with cells of the given size."""
        if meters <= 0.0:
            raise ValueError(f"resolution in meters must be positive, got {meters}")
        self._require_mesh()
        return int(self._usable_size(self._ensure_projection()) / meters) + 1

    def set_resolution_in_meters(self, value: float) -> None:
        """Set the cell size, clamped to the allowed range, and update the pixel resolution."""
        self._require_mesh()
        largest, smallest = self.min_max_resolution_in_meters()
        if value > largest:
            value = largest
        if value < smallest:
            value = smallest
        self.resolution_in_meters = value
        self.resolution = self._pixels(self._ensure_projection(), value)

    def generate_grid(self, axis: Sequence[float]) -> list[list[GridCell]]:
        """Square grid of cells across the axis, each as deep as the mesh along it."""
        if self.mesh is None:
            return []
        axis = tuple(float(c) for c in axis)
        if sum(axis) != 1.0:
            return []
        largest, smallest = self.min_max_resolution_in_meters(axis)
        if self.resolution_in_meters > largest:
            self.resolution_in_meters = largest
        if self.resolution_in_meters < smallest:
            self.resolution_in_meters = smallest

        cell_size = self.resolution_in_meters
        if cell_size <= 0.0:
            return []

        box = self.mesh.aabb()
        depth_axis, u, v = _plane_indices(axis)
        dimensions = [cell_size, cell_size, cell_size]
        dimensions[depth_axis] = box.size()[depth_axis]
        self.resolution = self._pixels(axis, cell_size)

        def cell(i: int, j: int) -> GridCell:
            low = list(box.minimum)
            low[u] += dimensions[u] * i
            low[v] += dimensions[v] * j
            high = [low[a] + dimensions[a] for a in range(3)]
            return GridCell(AABB((low[0], low[1], low[2]), (high[0], high[1], high[2])))

        return [[cell(i, j) for j in range(self.resolution)] for i in range(self.resolution)]

    def _collect(self, mesh: Mesh, axis: Sequence[float]) -> None:
        grid = self.grid
        count = len(grid)
        first = grid[0][0].aabb
        grid_min, grid_max = first.minimum, grid[-1][-1].aabb.maximum
        cell_size = first.size()
        _, u, v = _plane_indices(axis)
        areas = mesh.triangle_areas()
        weighted = self._mode in (RasterizationMode.MEAN, RasterizationMode.CUMULATIVE)
        total = len(mesh.triangles)

        for index, triangle in enumerate(mesh.triangles):
            tri_box = AABB.from_points(triangle)
            rows = _span(tri_box.minimum[u], tri_box.maximum[u], grid_min[u], grid_max[u], cell_size[u], count)
            columns = _span(tri_box.minimum[v], tri_box.maximum[v], grid_min[v], grid_max[v], cell_size[v], count)
            for i in rows:
                for j in columns:
                    cell = grid[i][j]
                    if not triangle_intersects_aabb(cell.aabb, triangle):
                        continue
                    if weighted:
                        area = triangle_area_in_aabb(triangle, cell.aabb) if areas[index] != 0.0 else 0.0
                        if area > 0.0:
                            cell.triangles_in_cell.append(index)
                            cell.triangles_in_cell_area.append(area)
                    else:
                        cell.triangles_in_cell.append(index)
                        cell.triangles_in_cell_area.append(-1.0)
            self.progress = (index + 1) / total

    def _cell_value(self, cell: GridCell, values: Sequence[float]) -> float:
        pairs = list(zip(cell.triangles_in_cell, cell.triangles_in_cell_area))
        if self._mode is RasterizationMode.MIN:
            return min(values[index] for index, _ in pairs)
        if self._mode is RasterizationMode.MAX:
            return max(values[index] for index, _ in pairs)
        if self._mode is RasterizationMode.MEAN:
            used = [values[index] for index, area in pairs if area != 0.0 and not math.isnan(area)]
            return sum(used) / len(used) if used else 0.0
        result = 0.0
        for index, area in pairs:
            area = max(0.0, area)
            if area != 0.0 and not math.isnan(area):
                self.total_area_used += area
                result += values[index] * area
        return result

    def rasterize(self, layer: Layer, force_projection_vector: Sequence[float] | None = None) -> RasterImage:
        """Rasterize a layer of the mesh and build its image."""
        mesh = self._require_mesh()
        if len(layer.values) != len(mesh.triangles):
            raise ValueError(
                f"layer has {len(layer.values)} values but mesh has {len(mesh.triangles)} triangles"
            )
        self.layer = layer
        self.progress = 0.0
        for callback in self._start_callbacks:
            callback()

        if force_projection_vector is not None and not _is_zero(force_projection_vector):
            self.projection_vector = tuple(float(c) for c in force_projection_vector)  # type: ignore[assignment]
        elif _is_zero(self.projection_vector):
            self._update_projection_vector()

        self.grid = self.generate_grid(self.projection_vector)
        if not self.grid:
            raise ValueError("cannot build a raster grid for this mesh and projection")

        self.total_area_used = 0.0
        self._collect(mesh, self.projection_vector)
        for row in self.grid:
            for cell in row:
                if cell.triangles_in_cell:
                    value = self._cell_value(cell, layer.values)
                    cell.value = 0.0 if math.isnan(value) else value

        self.statistics = grid_statistics(cell.value for row in self.grid for cell in row)

        _, u, v = _plane_indices(self.projection_vector)
        first_size = self.grid[0][0].aabb.size()
        self.image = build_image(
            self.grid,
            self._mode,
            self.projection_vector,
            layer.min_visible,
            layer.max_visible,
            self._red_area_percent,
            first_size[u] * first_size[v],
        )

        self.progress = 1.0
        for callback in self._end_callbacks:
            callback()
        return self.image

    def add_start_callback(self, func: Callable[[], object]) -> None:
        self._start_callbacks.append(func)

    def add_end_callback(self, func: Callable[[], object]) -> None:
        self._end_callbacks.append(func)

    def activate_automatic_outliers_suppression(self) -> None:
        self.red_area_percent = DEFAULT_RED_AREA_PERCENT

    def clear(self) -> None:
        """Forget the last result and the chosen projection."""
        self.image = None
        self.statistics = None
        self.grid = []
        self.layer = None
        self.projection_vector = _ZERO