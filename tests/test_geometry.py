import math

import pytest

from habicat.geometry import (
    AABB,
    Layer,
    Mesh,
    centroid,
    clip_triangle_to_aabb,
    closest_axis,
    load_obj,
    polygon_area,
    sort_points_by_angle,
    triangle_area_in_aabb,
    triangle_intersects_aabb,
)

TRIANGLE = ((0.0, 0.0, 0.0), (2.0, 0.0, 0.0), (0.0, 2.0, 0.0))


def test_aabb_from_points_bounds():
    box = AABB.from_points([(1, 5, -2), (-3, 2, 4), (0, 0, 0)])
    assert box.minimum == (-3, 0, -2)
    assert box.maximum == (1, 5, 4)
    assert box.size() == (4, 5, 6)
    assert box.longest_axis_length() == 6


def test_aabb_from_no_points_raises():
    with pytest.raises(ValueError):
        AABB.from_points([])


def test_aabb_center_is_contained():
    box = AABB((0.0, 0.0, 0.0), (2.0, 4.0, 6.0))
    assert box.contains_point(box.center())
    assert not box.contains_point((3.0, 1.0, 1.0))


def test_aabb_intersects_touching_and_apart():
    a = AABB((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
    assert a.intersects(AABB((1.0, 0.0, 0.0), (2.0, 1.0, 1.0)))
    assert not a.intersects(AABB((1.5, 0.0, 0.0), (2.0, 1.0, 1.0)))


def test_layer_statistics():
    layer = Layer([3.0, 1.0, 2.0, 10.0])
    assert layer.min() == 1.0
    assert layer.max() == 10.0
    assert layer.median() == 2.5
    assert layer.mean() == 4.0
    assert layer.min_visible == 1.0 and layer.max_visible == 10.0


def test_empty_layer_raises():
    with pytest.raises(ValueError):
        Layer([]).mean()


def test_mesh_add_layer_checks_length():
    mesh = Mesh([TRIANGLE])
    with pytest.raises(ValueError):
        mesh.add_layer(Layer([1.0, 2.0]))
    mesh.add_layer(Layer([1.0]))
    assert len(mesh.layers) == 1


def test_mesh_average_normal_and_closest_axis():
    mesh = Mesh([TRIANGLE])
    assert mesh.average_normal() == (0.0, 0.0, 1.0)
    assert closest_axis(mesh.average_normal()) == (0.0, 0.0, 1.0)


def test_closest_axis_choices():
    assert closest_axis((-5.0, 1.0, 2.0)) == (1.0, 0.0, 0.0)
    assert closest_axis((0.1, -3.0, 2.0)) == (0.0, 1.0, 0.0)
    assert closest_axis((1.0, 1.0, 0.0)) == (0.0, 0.0, 1.0)


def test_load_obj_triangulates_quads(tmp_path):
    path = tmp_path / "quad.obj"
    path.write_text("v 0 0 0\nv 1 0 0\nv 1 1 0\nv 0 1 0\nf 1/1 2/2 3/3 4/4\n", encoding="utf-8")
    mesh = load_obj(path)
    assert len(mesh.triangles) == 2
    assert math.isclose(sum(mesh.triangle_areas()), 1.0)
    assert mesh.aabb() == AABB((0.0, 0.0, 0.0), (1.0, 1.0, 0.0))


def test_load_obj_negative_indices_and_bad_index(tmp_path):
    good = tmp_path / "tri.obj"
    good.write_text("v 0 0 0\nv 1 0 0\nv 0 1 0\nf -3 -2 -1\n", encoding="utf-8")
    assert load_obj(good).triangles[0][1] == (1.0, 0.0, 0.0)
    bad = tmp_path / "bad.obj"
    bad.write_text("v 0 0 0\nf 1 2 3\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_obj(bad)


def test_triangle_intersects_aabb():
    box = AABB((0.5, 0.5, -0.5), (1.0, 1.0, 0.5))
    assert triangle_intersects_aabb(box, TRIANGLE)
    far = AABB((1.5, 1.5, -0.5), (2.0, 2.0, 0.5))
    assert not triangle_intersects_aabb(far, TRIANGLE)
    above = AABB((0.0, 0.0, 0.1), (1.0, 1.0, 1.0))
    assert not triangle_intersects_aabb(above, TRIANGLE)


def test_centroid_and_empty():
    assert centroid([(0, 0, 0), (2, 4, 6)]) == (1.0, 2.0, 3.0)
    with pytest.raises(ValueError):
        centroid([])


def test_sort_points_by_angle_is_increasing():
    points = [(0.0, 1.0, 0.0), (0.0, -1.0, 0.0), (1.0, 0.0, 0.0), (-1.0, 0.0, 0.0)]
    ordered = sort_points_by_angle(points, (0.0, 0.0, 1.0))
    angles = [math.atan2(p[1], p[0]) for p in ordered]
    assert angles == sorted(angles)
    assert sorted(ordered) == sorted(points)


def test_polygon_area_square_and_bowtie():
    square = [(0, 0), (1, 0), (1, 1), (0, 1)]
    assert polygon_area(square) == 1.0
    assert polygon_area(list(reversed(square))) == -1.0
    assert polygon_area([(0, 0), (1, 1), (1, 0), (0, 1)]) == 0.0


def test_clip_fully_inside_keeps_triangle():
    box = AABB((-1.0, -1.0, -1.0), (3.0, 3.0, 1.0))
    assert clip_triangle_to_aabb(TRIANGLE, box) == list(TRIANGLE)
    assert math.isclose(triangle_area_in_aabb(TRIANGLE, box), Mesh([TRIANGLE]).triangle_areas()[0])


def test_clip_outside_is_empty():
    box = AABB((5.0, 5.0, -1.0), (6.0, 6.0, 1.0))
    assert clip_triangle_to_aabb(TRIANGLE, box) == []
    assert triangle_area_in_aabb(TRIANGLE, box) == 0.0


def test_partition_areas_sum_to_triangle_area():
    left = AABB((0.0, 0.0, -1.0), (1.0, 2.0, 1.0))
    right = AABB((1.0, 0.0, -1.0), (2.0, 2.0, 1.0))
    total = triangle_area_in_aabb(TRIANGLE, left) + triangle_area_in_aabb(TRIANGLE, right)
    assert math.isclose(total, Mesh([TRIANGLE]).triangle_areas()[0])


def test_degenerate_triangle_has_no_area():
    flat = ((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (2.0, 0.0, 0.0))
    box = AABB((-1.0, -1.0, -1.0), (3.0, 1.0, 1.0))
    assert triangle_area_in_aabb(flat, box) == 0.0