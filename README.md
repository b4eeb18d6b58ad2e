# trackgraph

A model of railway track as a graph, for use in train simulation.

Track is made of vertices (end points and switch points) joined by edges
(straight sections or spline curves). A `Location` is a movable point on the
track. Trains use it to move along the track, and it can throw switches and
keep occupancy counts on the way.

The package is pure Python and has no dependencies.

## Modules

- `trackgraph.graph` holds the core types: `Track`, `Vertex`, `SwVertex`,
  `Edge`, `SplineEdge`, `SSEdge`, `Location` and `WLocation`, plus the
  `EdgeType` and `VertexType` enums.
  - Build track with `Track.add_vertex` and `Track.add_edge`.
  - Find the nearest point on the track with `Track.find_location`, which
    returns `(squared distance, Location)`, or with
    `Track.find_location_2d`.
  - Find, throw or lock switches with `Track.find_switch`,
    `Track.throw_switch` and `Track.lock_switch`.
  - Move a location with `Location.move`, which returns `True` when the end of
    the track stopped it. Measure along the track with `Location.distance`,
    `Location.directed_distance`, `Location.max_distance` and
    `Location.vertex_distance`.
- `trackgraph.paths` covers routing and paths:
  - shortest-path trees over the track, with `find_spt` and
    `find_spt_penalized`;
  - siding search, with `find_siding`, `find_siding_near`,
    `find_siding_parent` and `find_common_parent`;
  - train paths, with `Path`, `PathNode`, `NodeType` and `orient`;
  - switch-to-switch edges and blocks, with `make_ss_edges`;
  - switch alignment, with `align_path_switches` and `align_switches`.
- `trackgraph.shaping` refines track geometry:
  - `add_curve` and `make_switch_curves` add curves at joints and switches;
  - `calc_grades`, `average_elevation` and `calc_smooth_grades` work out and
    smooth vertex grades;
  - `expand` returns a copy of the track with curved spline edges split into
    straight edges.
- `trackgraph.network` handles named locations and several tracks:
  - named locations on a track, with `save_location`, `find_named_location`,
    `find_named_midpoint` and `align_named`;
  - `TrackNetwork`, which searches several named tracks together;
  - `TrackConnection`, which joins the loose ends of two tracks with short
    edges, for example a float bridge to land, and can `disconnect` them
    again.
- `trackgraph.profile` describes track cross-sections for track models, with
  `TrackProfile`, `Offset`, `Surface` and `EndVert`. Its `vertex_normals`
  function gives a horizontal normal for each vertex.

## Errors

- `find_named_location` raises `KeyError` for an unknown name or index.
- `orient` raises `ValueError` when the path cannot be followed from its
  first node.
- `average_elevation` raises `ValueError` for a distance that is not
  positive.

## Example

```python
from trackgraph.graph import Track, VertexType, EdgeType

track = Track()
a = track.add_vertex(VertexType.SIMPLE, 0.0, 0.0, 0.0)
b = track.add_vertex(VertexType.SIMPLE, 100.0, 0.0, 0.0)
track.add_edge(EdgeType.STRAIGHT, a, 0, b, 0)

dist_sq, loc = track.find_location(40.0, 3.0, 0.0)
loc.move(10.0, False, 0)
print(loc.offset)  # 50.0
```

## What it does not do

This package is only the track model. It does not:

- read route, track database or path files;
- render track or build 3D geometry, although `TrackProfile` and
  `vertex_normals` supply the data that such a model needs;
- simulate trains, brakes or signals;
- provide a viewer or a command-line program.

## Tests

```
pip install -e .[test]
pytest
```