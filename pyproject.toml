[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "habicat"
version = "0.1.0"
description = "Measurement grids over 3D meshes and rasterization of per-triangle layers into PNG and TIFF images"
requires-python = ">=3.10"
keywords = ["mesh", "complexity", "rasterization", "tiff", "habitat", "obj"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Information Analysis",
]
dependencies = [
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["habicat"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
