"""Regular cubic grid over a mesh, recording which triangles touch each cell."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterator, Sequence

from habicat.geometry import AABB, Mesh, Vec3, triangle_intersects_aabb

MAX_DIMENSIONS = 4096


@dataclass
class GridNode:
    """One cubic cell of a measurement grid."""

    aabb: AABB
    triangles_in_cell: list[int] = field(default_factory=list)
    average_cell_normal: Vec3 = (0.0, 0.0, 0.0)
    cell_triangles_centroid: Vec3 = (0.0, 0.0, 0.0)
    user_data: float = 0.0


def _index_range(tri_min: float, tri_max: float, grid_min: float, grid_max: float,
                 cell_size: float, count: int) -> range:
    """Cells along one axis that a triangle's bounds may reach, padded by one cell."""
    begin = max(0, int(abs(tri_min - grid_min) / cell_size) - 1)
    end = min(count, count - int(abs(tri_max - grid_max) / cell_size) + 1)
    return range(begin, end)


class MeasurementGrid:
    """A cube of cells of equal size centred on a bounding box.

    With a positive resolution the cells have that edge length and the grid has
    two more cells per axis than fit in the longest side of the box; otherwise
    a single cell covers the box.
    """

    def __init__(self, aabb: AABB, resolution_in_m: float = 0.0) -> None:
        center = aabb.center()
        longest = aabb.longest_axis_length()

        if resolution_in_m > 0.0:
            dimensions = int(longest / resolution_in_m) + 2
            if dimensions < 1 or dimensions > MAX_DIMENSIONS:
                raise ValueError(
                    f"resolution {resolution_in_m} gives {dimensions} cells per axis; "
                    f"allowed are 1 to {MAX_DIMENSIONS}"
                )
            half = resolution_in_m * dimensions / 2.0
            cell_size = resolution_in_m
        else:
            dimensions = 1
            half = longest / 2.0
            cell_size = longest

        grid_min = (center[0] - half, center[1] - half, center[2] - half)
        self.bounds = AABB(grid_min, (center[0] + half, center[1] + half, center[2] + half))
        self.cell_size = cell_size
        self.dimensions = dimensions
        self.triangles_user_data: list[float] = []
        self.total_triangles_in_cells = 0

        def node(i: int, j: int, k: int) -> GridNode:
            low = (grid_min[0] + cell_size * i, grid_min[1] + cell_size * j, grid_min[2] + cell_size * k)
            high = (low[0] + cell_size, low[1] + cell_size, low[2] + cell_size)
            return GridNode(AABB(low, high))

        self.data: list[list[list[GridNode]]] = [
            [[node(i, j, k) for k in range(dimensions)] for j in range(dimensions)]
            for i in range(dimensions)
        ]

    def nodes(self) -> Iterator[GridNode]:
        """Every cell, in x, then y, then z order."""
        for plane in self.data:
            for row in plane:
                yield from row

    def run_on_all_nodes(self, func: Callable[[GridNode], object] | None) -> None:
        if func is None:
            return
        for node in self.nodes():
            func(node)

    def fill_cells(self, mesh: Mesh) -> None:
        """Record in each cell the indices of the mesh triangles that touch it."""
        first = self.data[0][0][0].aabb
        last = self.data[-1][-1][-1].aabb
        cell_size = first.longest_axis_length()
        grid_min, grid_max = first.minimum, last.maximum
        count = self.dimensions

        for index, triangle in enumerate(mesh.triangles):
            triangle_box = AABB.from_points(triangle)
            ranges = [
                _index_range(triangle_box.minimum[a], triangle_box.maximum[a],
                             grid_min[a], grid_max[a], cell_size, count)
                for a in range(3)
            ]
            for i in ranges[0]:
                for j in ranges[1]:
                    for k in ranges[2]:
                        node = self.data[i][j][k]
                        if node.aabb.intersects(triangle_box) and triangle_intersects_aabb(node.aabb, triangle):
                            node.triangles_in_cell.append(index)
                            self.total_triangles_in_cells += 1

    def fill_mesh_with_user_data(self, triangle_count: int) -> list[float]:
        """Average, for each triangle, the user data of the cells it lies in.

        Triangles in no cell, or whose cells sum to zero, keep the value 0.
        """
        sums = [0.0] * triangle_count
        counts = [0] * triangle_count
        for node in self.nodes():
            for index in node.triangles_in_cell:
                counts[index] += 1
                sums[index] += float(node.user_data)
        self.triangles_user_data = [
            total / hits if total != 0 and hits != 0 else total
            for total, hits in zip(sums, counts)
        ]
        return self.triangles_user_data

    def cell_of(self, indices: Sequence[int]) -> GridNode:
        i, j, k = indices
        return self.data[i][j][k]