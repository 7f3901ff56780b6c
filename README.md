# habicat

A library for working with per-triangle layers of 3D meshes. It loads OBJ
meshes, builds cubic measurement grids over them, and rasterizes a layer into
a square 2D image along the principal axis the mesh faces, written as PNG or
TIFF.

## Installation

```
pip install .
```

## Modules

- `habicat.geometry` — `AABB` bounding boxes, `Mesh` (triangles plus layers),
  `Layer` (one value per triangle, with `mean`, `median`, `min`, `max`),
  `load_obj` (vertices and faces of an OBJ file; polygons become triangle
  fans), and geometric helpers: `triangle_intersects_aabb`, `closest_axis`,
  `centroid`, `sort_points_by_angle`, `polygon_area`,
  `clip_triangle_to_aabb` and `triangle_area_in_aabb`.
- `habicat.measurement_grid` — `MeasurementGrid(aabb, resolution_in_m)`
  builds a cube of equal cells centred on a box; `fill_cells(mesh)` records
  which triangles touch each `GridNode`; `fill_mesh_with_user_data(count)`
  averages each cell's `user_data` back onto the triangles. A resolution that
  would need more than 4096 cells per axis raises `ValueError`.
- `habicat.statistics` — `grid_statistics` (min, max, mean, standard
  deviation, skewness, kurtosis as a `RasterStatistics`), `turbo_color` (Turbo
  colour map) and `value_for_area_fraction` (the value above which a given
  share of the area lies).
- `habicat.raster_image` — `build_image` colours a square grid of cells and
  orients it for the projection axis; `RasterImage.save(path, save_mode)`
  writes it. `SaveMode.PNG` writes RGBA PNG, `SaveMode.TIF` an RGBA TIFF and
  `SaveMode.TIF_32BIT` a 32-bit float TIFF of the raw values; the TIFFs carry
  GeoTIFF tags for a generic transform in WGS 84 / UTM zone 18N. A path with
  no extension gets `.png` or `.tif`.
- `habicat.rasterization` — `LayerRasterizer` projects a layer onto a grid.
  Its `mode` is a `RasterizationMode` (`MIN`, `MAX`, `MEAN`, `CUMULATIVE`);
  `MEAN` and `CUMULATIVE` weigh triangles by the area they cover in each cell.
  The cell size is set with `set_resolution_in_meters` and is clamped so the
  grid has between 16 and 4096 cells across.

## Example

```python
from habicat.geometry import Layer, load_obj
from habicat.raster_image import RasterizationMode, SaveMode
from habicat.rasterization import LayerRasterizer

mesh = load_obj("mesh.obj")
layer = Layer([1.0] * len(mesh.triangles), name="constant")
mesh.add_layer(layer)

rasterizer = LayerRasterizer(mesh)
rasterizer.mode = RasterizationMode.MAX
rasterizer.set_resolution_in_meters(0.5)
image = rasterizer.rasterize(layer)  # axis chosen from the mesh's average normal
image.save("out.png", SaveMode.PNG)
print(rasterizer.statistics)
```

Pass a unit axis such as `(0.0, 0.0, 1.0)` as the second argument of
`rasterize` to force the projection direction.

## What it does not do

- It has no command-line program or interactive console; everything is done
  by calling the library from Python.
- It does not compute complexity layers (height, rugosity, fractal dimension
  and the like) itself: a `Layer` holds values supplied by the caller.
- It does not save or load project files; meshes are read from OBJ only.
- There is no viewer or other graphical display of grids or images.