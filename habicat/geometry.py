"""Mesh geometry: bounding boxes, layers, triangle clipping and polygon areas."""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass, field
from itertools import combinations
from pathlib import Path
from typing import Iterable, Sequence

Vec3 = tuple[float, float, float]
Vec2 = tuple[float, float]
Triangle = tuple[Vec3, Vec3, Vec3]


def _sub(a: Sequence[float], b: Sequence[float]) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _add(a: Sequence[float], b: Sequence[float]) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def _scale(a: Sequence[float], factor: float) -> Vec3:
    return (a[0] * factor, a[1] * factor, a[2] * factor)


def _dot(a: Sequence[float], b: Sequence[float]) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def _cross(a: Sequence[float], b: Sequence[float]) -> Vec3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def _length(a: Sequence[float]) -> float:
    return math.sqrt(_dot(a, a))


def _triangle_cross(triangle: Sequence[Sequence[float]]) -> Vec3:
    a, b, c = triangle
    return _cross(_sub(b, a), _sub(c, a))


@dataclass(frozen=True)
class AABB:
    """Axis-aligned bounding box given by its minimum and maximum corners."""

    minimum: Vec3
    maximum: Vec3

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float]]) -> "AABB":
        pts = list(points)
        if not pts:
            raise ValueError("cannot build a bounding box from no points")
        xs, ys, zs = zip(*((p[0], p[1], p[2]) for p in pts))
        return cls((min(xs), min(ys), min(zs)), (max(xs), max(ys), max(zs)))

    def size(self) -> Vec3:
        return _sub(self.maximum, self.minimum)

    def center(self) -> Vec3:
        return _scale(_add(self.minimum, self.maximum), 0.5)

    def longest_axis_length(self) -> float:
        return max(self.size())

    def contains_point(self, point: Sequence[float]) -> bool:
        return all(lo <= p <= hi for lo, p, hi in zip(self.minimum, point, self.maximum))

    def intersects(self, other: "AABB") -> bool:
        return all(
            a_lo <= b_hi and b_lo <= a_hi
            for a_lo, a_hi, b_lo, b_hi in zip(self.minimum, self.maximum, other.minimum, other.maximum)
        )


@dataclass
class Layer:
    """Per-triangle values computed over a mesh."""

    values: list[float]
    name: str = ""
    min_visible: float | None = None
    max_visible: float | None = None

    def __post_init__(self) -> None:
        self.values = [float(v) for v in self.values]
        if self.min_visible is None:
            self.min_visible = min(self.values, default=0.0)
        if self.max_visible is None:
            self.max_visible = max(self.values, default=0.0)

    def _require_values(self) -> list[float]:
        if not self.values:
            raise ValueError("layer has no values")
        return self.values

    def mean(self) -> float:
        return statistics.fmean(self._require_values())

    def median(self) -> float:
        return float(statistics.median(self._require_values()))

    def max(self) -> float:
        return max(self._require_values())

    def min(self) -> float:
        return min(self._require_values())


@dataclass
class Mesh:
    """A triangle soup with the layers calculated on it."""

    triangles: list[Triangle]
    layers: list[Layer] = field(default_factory=list)

    def aabb(self) -> AABB:
        return AABB.from_points(point for triangle in self.triangles for point in triangle)

    def triangle_areas(self) -> list[float]:
        return [0.5 * _length(_triangle_cross(t)) for t in self.triangles]

    def average_normal(self) -> Vec3:
        """Area-weighted average of the triangle normals, normalised."""
        total: Vec3 = (0.0, 0.0, 0.0)
        for triangle in self.triangles:
            total = _add(total, _triangle_cross(triangle))
        length = _length(total)
        if length == 0.0:
            return (0.0, 0.0, 0.0)
        return _scale(total, 1.0 / length)

    def add_layer(self, layer: Layer) -> None:
        if len(layer.values) != len(self.triangles):
            raise ValueError(
                f"layer has {len(layer.values)} values but mesh has {len(self.triangles)} triangles"
            )
        self.layers.append(layer)


def _resolve_index(token: str, count: int, line_number: int) -> int:
    try:
        raw = int(token.split("/")[0])
    except ValueError as error:
        raise ValueError(f"line {line_number}: bad face index {token!r}") from error
    index = raw - 1 if raw > 0 else count + raw
    if raw == 0 or not 0 <= index < count:
        raise ValueError(f"line {line_number}: face index {raw} out of range")
    return index


def load_obj(path: str | Path) -> Mesh:
    """Read the vertices and faces of a Wavefront OBJ file; polygons become fans."""
    vertices: list[Vec3] = []
    triangles: list[Triangle] = []
    with open(path, encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, 1):
            parts = line.split()
            if not parts:
                continue
            if parts[0] == "v":
                if len(parts) < 4:
                    raise ValueError(f"line {line_number}: vertex needs three coordinates")
                x, y, z = (float(c) for c in parts[1:4])
                vertices.append((x, y, z))
            elif parts[0] == "f":
                indices = [_resolve_index(p, len(vertices), line_number) for p in parts[1:]]
                if len(indices) < 3:
                    raise ValueError(f"line {line_number}: face needs at least three vertices")
                first = vertices[indices[0]]
                for b, c in zip(indices[1:-1], indices[2:]):
                    triangles.append((first, vertices[b], vertices[c]))
    if not triangles:
        raise ValueError(f"{path}: no faces found")
    return Mesh(triangles)


def triangle_intersects_aabb(box: AABB, triangle: Sequence[Sequence[float]]) -> bool:
    """Separating-axis test between a box and a triangle; touching counts."""
    center = box.center()
    half = _scale(box.size(), 0.5)
    verts = [_sub(p, center) for p in triangle]
    edges = [_sub(verts[1], verts[0]), _sub(verts[2], verts[1]), _sub(verts[0], verts[2])]
    unit_axes = [(1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)]
    axes = unit_axes + [_cross(edges[0], edges[1])]
    axes += [_cross(unit, edge) for unit in unit_axes for edge in edges]
    for axis in axes:
        if axis == (0.0, 0.0, 0.0):
            continue
        projections = [_dot(v, axis) for v in verts]
        radius = sum(h * abs(a) for h, a in zip(half, axis))
        if min(projections) > radius or max(projections) < -radius:
            return False
    return True


def closest_axis(vector: Sequence[float]) -> Vec3:
    """Unit axis nearest to the vector; ties go to Z."""
    ax, ay, az = (abs(c) for c in vector[:3])
    if ax > ay and ax > az:
        return (1.0, 0.0, 0.0)
    if ay > ax and ay > az:
        return (0.0, 1.0, 0.0)
    return (0.0, 0.0, 1.0)


def centroid(points: Iterable[Sequence[float]]) -> Vec3:
    pts = list(points)
    if not pts:
        raise ValueError("centroid of no points")
    total: Vec3 = (0.0, 0.0, 0.0)
    for point in pts:
        total = _add(total, point)
    return _scale(total, 1.0 / len(pts))


def _plane_axes(axis: Sequence[float]) -> tuple[int, int]:
    if axis[0] > 0.0:
        return 1, 2
    if axis[1] > 0.0:
        return 0, 2
    if axis[2] > 0.0:
        return 0, 1
    raise ValueError(f"projection axis {tuple(axis)} has no positive component")


def sort_points_by_angle(points: Iterable[Sequence[float]], axis: Sequence[float]) -> list[Vec3]:
    """Order points by angle around their centroid in the plane across the axis."""
    pts = [(float(p[0]), float(p[1]), float(p[2])) for p in points]
    center = centroid(pts)
    u, v = _plane_axes(axis)
    return sorted(pts, key=lambda p: math.atan2(p[v] - center[v], p[u] - center[u]))


def _orientation(a: Vec2, b: Vec2, c: Vec2) -> float:
    return (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])


def _on_segment(a: Vec2, b: Vec2, p: Vec2) -> bool:
    return min(a[0], b[0]) <= p[0] <= max(a[0], b[0]) and min(a[1], b[1]) <= p[1] <= max(a[1], b[1])


def _segments_intersect(p1: Vec2, p2: Vec2, p3: Vec2, p4: Vec2) -> bool:
    d1 = _orientation(p3, p4, p1)
    d2 = _orientation(p3, p4, p2)
    d3 = _orientation(p1, p2, p3)
    d4 = _orientation(p1, p2, p4)
    if ((d1 > 0 > d2) or (d1 < 0 < d2)) and ((d3 > 0 > d4) or (d3 < 0 < d4)):
        return True
    return (
        (d1 == 0 and _on_segment(p3, p4, p1))
        or (d2 == 0 and _on_segment(p3, p4, p2))
        or (d3 == 0 and _on_segment(p1, p2, p3))
        or (d4 == 0 and _on_segment(p1, p2, p4))
    )


def _is_simple(points: list[Vec2]) -> bool:
    count = len(points)
    edges = list(zip(points, points[1:] + points[:1]))
    for (i, first), (j, second) in combinations(enumerate(edges), 2):
        if j == i + 1 or (i == 0 and j == count - 1):
            continue
        if _segments_intersect(first[0], first[1], second[0], second[1]):
            return False
    return True


def polygon_area(points: Iterable[Sequence[float]]) -> float:
    """Signed area of a 2D polygon (positive when counter-clockwise); 0 if it self-intersects."""
    pts = [(float(p[0]), float(p[1])) for p in points]
    if len(pts) < 3 or not _is_simple(pts):
        return 0.0
    doubled = sum(a[0] * b[1] - b[0] * a[1] for a, b in zip(pts, pts[1:] + pts[:1]))
    return doubled / 2.0


def _clip_polygon(polygon: list[Vec3], axis: int, bound: float, keep_above: bool) -> list[Vec3]:
    def inside(point: Vec3) -> bool:
        return point[axis] >= bound if keep_above else point[axis] <= bound

    result: list[Vec3] = []
    for current, following in zip(polygon, polygon[1:] + polygon[:1]):
        current_inside, following_inside = inside(current), inside(following)
        if current_inside:
            result.append(current)
        if current_inside != following_inside:
            t = (bound - current[axis]) / (following[axis] - current[axis])
            crossing = list(_add(current, _scale(_sub(following, current), t)))
            crossing[axis] = bound
            result.append((crossing[0], crossing[1], crossing[2]))
    return result


def clip_triangle_to_aabb(triangle: Sequence[Sequence[float]], box: AABB) -> list[Vec3]:
    """Part of a triangle inside a box, as an ordered convex polygon (possibly empty)."""
    polygon: list[Vec3] = [(float(p[0]), float(p[1]), float(p[2])) for p in triangle]
    for axis in range(3):
        for bound, keep_above in ((box.minimum[axis], True), (box.maximum[axis], False)):
            polygon = _clip_polygon(polygon, axis, bound, keep_above)
            if not polygon:
                return []
    deduplicated: list[Vec3] = []
    for point in polygon:
        if not deduplicated or deduplicated[-1] != point:
            deduplicated.append(point)
    if len(deduplicated) > 1 and deduplicated[0] == deduplicated[-1]:
        deduplicated.pop()
    return deduplicated


def triangle_area_in_aabb(triangle: Sequence[Sequence[float]], box: AABB) -> float:
    """Area of the part of a triangle that lies inside a box, measured in the triangle's plane."""
    normal = _triangle_cross(triangle)
    length = _length(normal)
    if length == 0.0 or math.isnan(length):
        return 0.0
    unit_normal = _scale(normal, 1.0 / length)
    polygon = clip_triangle_to_aabb(triangle, box)
    if len(polygon) < 3:
        return 0.0
    origin = polygon[0]
    total: Vec3 = (0.0, 0.0, 0.0)
    for a, b in zip(polygon[1:-1], polygon[2:]):
        total = _add(total, _cross(_sub(a, origin), _sub(b, origin)))
    return abs(0.5 * _dot(total, unit_normal))