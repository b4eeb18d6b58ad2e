[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "trackgraph"
version = "0.1.0"
description = "Railway track graph model: vertices, edges, switches, track locations and shortest-path routing for train simulation"
requires-python = ">=3.10"
dependencies = []
keywords = ["railway", "track", "train", "simulation", "graph", "switches"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Simulation",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["trackgraph"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
