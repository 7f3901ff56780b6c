"""Per-triangle mesh layers: geometry, measurement grids, statistics and rasterization to images."""

__version__ = "0.1.0"