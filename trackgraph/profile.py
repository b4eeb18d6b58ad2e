"""Track cross-section profiles and per-vertex normals for track models."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Optional

from .graph import Track

_NO_MATCH = 1e10


@dataclass
class Offset:
    """A point of the track cross-section.

    ``x`` is the distance from the centre line and ``y`` the distance below
    the rail head. ``other`` is the index of the mirror-image offset.
    """

    x: float
    y: float
    other: int = 0


@dataclass
class Surface:
    """A strip of the track model between two cross-section offsets."""

    vo1: int
    vo2: int
    u1: float
    u2: float
    meters: float
    n_ties: int
    flags: int = 0


@dataclass
class EndVert:
    """A cross-section point used to close the end of a track model."""

    offset: int
    u: float
    v: float


@dataclass
class TrackProfile:
    """Cross-section description used to build a 3D track model."""

    offsets: list = field(default_factory=list)
    surfaces: list = field(default_factory=list)
    end_verts: list = field(default_factory=list)
    image: Optional[Any] = None
    color: tuple = (1.0, 1.0, 1.0, 1.0)

    def match_offsets(self) -> None:
        """Pair each offset with the one nearest its mirror image."""
        for oi in self.offsets:
            best_d = _NO_MATCH
            best_j = self.offsets.index(oi)
            for j, oj in enumerate(self.offsets):
                dx = oi.x + oj.x
                dy = oi.y - oj.y
                d = dx * dx + dy * dy
                if best_d > d:
                    best_d = d
                    best_j = j
            oi.other = best_j


def same_direction(x1: float, y1: float, x2: float, y2: float) -> bool:
    """True if the two 2D vectors point more alike than opposite."""
    sx = x1 + x2
    sy = y1 + y2
    dx = x1 - x2
    dy = y1 - y2
    return sx * sx + sy * sy > dx * dx + dy * dy


def _add_normal(normal: list, n_edges: int, dx: float, dy: float) -> None:
    if n_edges == 0 or same_direction(normal[1], normal[0], dx, -dy):
        normal[0] -= dy
        normal[1] += dx
    else:
        normal[0] += dy
        normal[1] -= dx


def vertex_normals(track: Track) -> dict:
    """Map each vertex to (unit sideways normal, number of edges).

    The normal lies in the horizontal plane, perpendicular to the track;
    a vertex without edges gets a zero normal.
    """
    info = {v: ([0.0, 0.0, 0.0], 0) for v in track.vertices}
    for e in track.edges:
        c1 = e.v1.location.coord
        c2 = e.v2.location.coord
        dx = (c1[0] - c2[0]) / e.length
        dy = (c1[1] - c2[1]) / e.length
        for v in (e.v1, e.v2):
            normal, n = info[v]
            _add_normal(normal, n, dx, dy)
            info[v] = (normal, n + 1)
    result = {}
    for v, (normal, n) in info.items():
        length = math.sqrt(sum(c * c for c in normal))
        if length > 0:
            normal = [c / length for c in normal]
        result[v] = (normal, n)
    return result