"""Track graph: vertices, edges, switches and movable track locations."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional

FAR = 1e30
CURVATURE_FACTOR = 1746.4
MIN_EDGE_LENGTH = 0.001


class EdgeType(IntEnum):
    STRAIGHT = 0
    SPLINE = 1


class VertexType(IntEnum):
    SIMPLE = 0
    SWITCH = 1


@dataclass
class WLocation:
    """A world position together with an up vector."""

    coord: list = field(default_factory=lambda: [0.0, 0.0, 0.0])
    up: list = field(default_factory=lambda: [0.0, 0.0, 1.0])


@dataclass(eq=False, repr=False)
class Edge:
    """Straight section of track between two vertices."""

    type: EdgeType = EdgeType.STRAIGHT
    v1: Optional["Vertex"] = None
    v2: Optional["Vertex"] = None
    track: Optional["Track"] = None
    length: float = 0.0
    occupied: int = 0
    ss_offset: float = 0.0
    ss_edge: Optional["SSEdge"] = None
    curvature: float = 0.0
    signals: list = field(default_factory=list)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} length={self.length:.3f}>"

    def other_vertex(self, vertex):
        return self.v2 if vertex is self.v1 else self.v1

    def grade(self, vertex=None) -> float:
        """Grade from v1 to v2, or away from ``vertex`` when given."""
        g = 0.0 if self.length <= 0 else (
            self.v2.elevation - self.v1.elevation) / self.length
        if vertex is None or vertex is self.v1:
            return g
        return -g


@dataclass(eq=False, repr=False)
class SplineEdge(Edge):
    """Curved track section described by spline offsets."""

    dd1: list = field(default_factory=lambda: [0.0, 0.0, 0.0])
    dd2: list = field(default_factory=lambda: [0.0, 0.0, 0.0])
    spline_mult: float = 0.0
    angle: float = 0.0

    def set_circle(self, radius: float, angle: float) -> None:
        """Set the spline offsets to approximate a circular arc."""
        self.angle = angle
        x = -4 * radius * (1 - math.cos(0.5 * angle)) / 3
        if angle < 0:
            x = -x
        dx = self.v1.location.coord[0] - self.v2.location.coord[0]
        dy = self.v1.location.coord[1] - self.v2.location.coord[1]
        r = math.hypot(dx, dy)
        self.spline_mult = 1.0
        self.dd1[0] = self.dd2[0] = x * dy / r
        self.dd1[1] = self.dd2[1] = -x * dx / r
        self.dd1[2] = self.dd2[2] = 0.0
        if radius > 0:
            self.curvature = CURVATURE_FACTOR / radius


@dataclass(eq=False, repr=False)
class SSEdge(Edge):
    """Direct switch-to-switch edge."""

    block: int = 0


@dataclass(eq=False, repr=False)
class Vertex:
    """End point of a track section."""

    type: VertexType = VertexType.SIMPLE
    location: WLocation = field(default_factory=WLocation)
    occupied: int = 0
    edge1: Optional[Edge] = None
    edge2: Optional[Edge] = None
    in_edge: Optional[Edge] = None
    dist: float = 0.0
    grade: float = 0.0
    elevation: float = 0.0

    def __repr__(self) -> str:
        c = self.location.coord
        return f"<{type(self).__name__} ({c[0]:.2f}, {c[1]:.2f}, {c[2]:.2f})>"

    def next_edge(self, edge):
        if edge is self.edge1:
            return self.edge2
        if edge is self.edge2:
            return self.edge1
        return None

    def save_edge(self, n: int, edge: Edge) -> None:
        if n == 0:
            self.edge1 = edge
        elif n == 1:
            self.edge2 = edge


@dataclass(eq=False, repr=False)
class SwVertex(Vertex):
    """Switch point with a main and a diverging route."""

    sw_edges: list = field(default_factory=lambda: [None, None])
    ss_edges: list = field(default_factory=lambda: [None, None, None])
    out_edge: int = 0
    main_edge: int = 0
    has_interlocking: int = 0
    locked: bool = False
    id: int = -1

    def save_edge(self, n: int, edge: Edge) -> None:
        if n == 0:
            self.edge1 = edge
        elif n in (1, 2):
            self.sw_edges[n - 1] = edge
            if self.main_edge == n - 1:
                self.edge2 = edge

    def throw_switch(self, edge, force: bool = False) -> None:
        """Throw the switch unless occupied, already aligned for ``edge``
        or interlocked (unless forced)."""
        if self.occupied > 0 or edge is self.edge1 or edge is self.edge2:
            return
        if self.has_interlocking and not force:
            return
        if self.edge2 is self.sw_edges[0]:
            self.edge2 = self.sw_edges[1]
        else:
            self.edge2 = self.sw_edges[0]

    def find_ss_edge(self, sw):
        for sse in self.ss_edges:
            if sse is not None and (sse.v1 is sw or sse.v2 is sw):
                return sse
        return None


def _spline_offset(edge: Edge, a: float, axis: int) -> float:
    b = 1 - a
    a3 = a * a * a - a
    b3 = b * b * b - b
    return (b3 * edge.dd1[axis] + a3 * edge.dd2[axis]) * edge.spline_mult


@dataclass
class Location:
    """A movable position on the track: an edge and an offset from v1."""

    edge: Optional[Edge] = None
    offset: float = 0.0
    rev: bool = False

    @classmethod
    def from_vertex(cls, vertex: Vertex) -> "Location":
        edge = vertex.edge1
        return cls(edge, 0.0 if vertex is edge.v1 else edge.length, False)

    def copy(self) -> "Location":
        return Location(self.edge, self.offset, self.rev)

    def move(self, distance: float, throw_switches: bool = False,
             d_occupied: int = 0) -> bool:
        """Move along the track; return True if the end of track stopped it."""
        reverse = distance < 0
        if reverse:
            distance = -distance
            d_occupied = -d_occupied
        while True:
            edge = self.edge
            forward = reverse == bool(self.rev)
            limit = edge.length - self.offset if forward else self.offset
            if distance <= limit:
                self.offset += distance if forward else -distance
                return False
            distance -= limit
            v = edge.v2 if forward else edge.v1
            if d_occupied < 0:
                v.occupied -= 1
                edge.occupied -= 1
            if edge is not v.edge1:
                if v.type == VertexType.SWITCH and throw_switches:
                    v.throw_switch(edge, False)
                edge = v.edge1
            elif v.edge2 is None:
                self.offset = 0.0 if v is edge.v1 else edge.length
                return True
            else:
                edge = v.edge2
            self.edge = edge
            if d_occupied > 0:
                v.occupied += 1
                edge.occupied += 1
            if v is edge.v1:
                self.offset = 0.0
                self.rev = reverse
            else:
                self.offset = edge.length
                self.rev = not reverse

    def world_location(self, use_elevation: bool = False) -> WLocation:
        edge = self.edge
        a = self.offset / edge.length
        b = 1 - a
        l1 = edge.v1.location
        l2 = edge.v2.location
        coord = [b * c1 + a * c2 for c1, c2 in zip(l1.coord, l2.coord)]
        up = [b * u1 + a * u2 for u1, u2 in zip(l1.up, l2.up)]
        if use_elevation:
            coord[2] = b * edge.v1.elevation + a * edge.v2.elevation
        if edge.type == EdgeType.SPLINE:
            coord = [c + _spline_offset(edge, a, i)
                     for i, c in enumerate(coord)]
        return WLocation(coord, up)

    def grade(self) -> float:
        edge = self.edge
        g = (edge.v1.elevation - edge.v2.elevation) / edge.length
        return -g if self.rev else g

    def curvature(self) -> float:
        return self.edge.curvature

    def distance(self, other: "Location") -> float:
        """Distance to a location on the same edge, else a huge value."""
        if self.edge is not other.edge:
            return FAR
        return abs(self.offset - other.offset)

    def _search(self, other, start_vertex, d):
        v = start_vertex
        e = self.edge
        while True:
            e = v.edge2 if v.edge1 is e else v.edge1
            if e is None:
                return None
            if e is other.edge:
                return d + (other.offset if v is e.v1
                            else e.length - other.offset)
            d += e.length
            v = e.v2 if v is e.v1 else e.v1

    def directed_distance(self, other: "Location") -> float:
        """Signed distance to ``other`` along the track, positive ahead."""
        if self.edge is other.edge:
            return (self.offset - other.offset if self.rev
                    else other.offset - self.offset)
        d = self._search(other, self.edge.v1, self.offset)
        if d is not None:
            return d if self.rev else -d
        d = self._search(other, self.edge.v2, self.edge.length - self.offset)
        if d is not None:
            return -d if self.rev else d
        return FAR

    def max_distance(self, behind: bool, align_tol: float = -1) -> float:
        """Distance to the end of the track ahead (or behind)."""
        if self.rev:
            behind = not behind
        d = self.offset if behind else self.edge.length - self.offset
        v = self.edge.v1 if behind else self.edge.v2
        e = self.edge
        while True:
            pe = e
            e = v.edge2 if v.edge1 is e else v.edge1
            if e is None:
                break
            if (align_tol >= 0 and v.type == VertexType.SWITCH
                    and e is v.edge1 and pe is not v.edge2):
                if d > align_tol:
                    return d - align_tol / 2
                v.throw_switch(pe, False)
            d += e.length
            v = e.v2 if v is e.v1 else e.v1
        return d

    def vertex_distance(self, target: Vertex, behind: bool):
        """Return (distance, facing) to ``target``, or None if unreachable."""
        if self.rev:
            behind = not behind
        d = self.offset if behind else self.edge.length - self.offset
        v = self.edge.v1 if behind else self.edge.v2
        e = self.edge
        while True:
            if v is target:
                return d, e is v.edge1
            e = v.edge2 if v.edge1 is e else v.edge1
            if e is None:
                return None
            d += e.length
            v = e.v2 if v is e.v1 else e.v1

    def spt_distance(self) -> float:
        """Distance from the last shortest-path-tree search start."""
        edge = self.edge
        d1 = edge.v1.dist
        d2 = edge.v2.dist
        d = d2 - d1
        far = d1 > edge.length or d2 > edge.length
        if d > 0 and far:
            return d1 + self.offset
        if d < 0 and far:
            return d1 - self.offset
        if d1 > self.offset:
            return d1 - self.offset
        return self.offset - d1

    def set_from_ss_edge(self, ss_edge: SSEdge, ss_offset: float,
                         rev: bool) -> None:
        """Place this location ``ss_offset`` along a switch-to-switch edge.
        Leaves ``edge`` as None when the edge cannot be found."""
        v = ss_edge.v1
        edge = None
        if v.edge1 is not None and v.edge1.ss_edge is ss_edge:
            edge = v.edge1
        if v.edge2 is not None and v.edge2.ss_edge is ss_edge:
            edge = v.edge2
        self.edge = edge
        if edge is None:
            return
        self.offset = ss_offset
        self.rev = bool(rev)
        while self.edge is not None and self.offset > self.edge.length:
            self.offset -= self.edge.length
            v = self.edge.v2 if v is self.edge.v1 else self.edge.v1
            self.edge = v.edge2 if self.edge is v.edge1 else v.edge1

    def next_switch(self):
        """The next switch ahead that is facing or set against this route."""
        v = self.edge.v1 if self.rev else self.edge.v2
        e = self.edge
        while v is not None and e is not None:
            if v.type == VertexType.SWITCH and (
                    v.edge1 is e or v.edge2 is not e):
                return v
            e = v.next_edge(e)
            if e is None:
                break
            v = e.other_vertex(v)
        return None


class Track:
    """A connected set of track vertices and edges."""

    def __init__(self) -> None:
        self.vertices: list = []
        self.edges: list = []
        self.locations: dict = {}
        self.switch_map: dict = {}
        self.ss_edge_map: dict = {}
        self.shape = None
        self.update_signals = False
        self.min_x = self.min_y = self.min_z = 1e20
        self.max_x = self.max_y = self.max_z = -1e20

    def add_vertex(self, vtype, x: float, y: float, z: float) -> Vertex:
        vtype = VertexType(vtype)
        cls = SwVertex if vtype == VertexType.SWITCH else Vertex
        v = cls(type=vtype, location=WLocation([x, y, z], [0.0, 0.0, 1.0]),
                elevation=z)
        self.vertices.append(v)
        return v

    def add_edge(self, etype, v1: Vertex, n1: int, v2: Vertex,
                 n2: int) -> Edge:
        etype = EdgeType(etype)
        cls = SplineEdge if etype == EdgeType.SPLINE else Edge
        e = cls(type=etype, v1=v1, v2=v2, track=self)
        v1.save_edge(n1, e)
        v2.save_edge(n2, e)
        self.edges.append(e)
        e.length = max(math.dist(v1.location.coord, v2.location.coord),
                       MIN_EDGE_LENGTH)
        return e

    def calc_min_max(self) -> None:
        self.min_x = self.min_y = self.min_z = 1e20
        self.max_x = self.max_y = self.max_z = -1e20
        for v in self.vertices:
            x, y, z = v.location.coord
            self.min_x = min(self.min_x, x)
            self.max_x = max(self.max_x, x)
            self.min_y = min(self.min_y, y)
            self.max_y = max(self.max_y, y)
            self.min_z = min(self.min_z, z)
            self.max_z = max(self.max_z, z)

    def _nearest(self, point):
        dims = len(point)
        best_d = FAR
        best = None
        for e in self.edges:
            p1 = e.v1.location.coord[:dims]
            p2 = e.v2.location.coord[:dims]
            delta = [b - a for a, b in zip(p1, p2)]
            d = sum(c * c for c in delta)
            n = sum(c * (p - a) for c, p, a in zip(delta, point, p1))
            if d == 0 or n <= 0:
                diff = [a - p for a, p in zip(p1, point)]
                off = 0.0
            elif n >= d:
                diff = [b - p for b, p in zip(p2, point)]
                off = e.length
            else:
                t = n / d
                diff = [a + c * t - p for a, c, p in zip(p1, delta, point)]
                if e.type == EdgeType.SPLINE:
                    diff = [c + _spline_offset(e, t, i)
                            for i, c in enumerate(diff)]
                off = e.length * t
            dsq = sum(c * c for c in diff)
            if best_d > dsq:
                best_d = dsq
                best = Location(e, off, False)
        return best_d, best

    def find_location(self, x: float, y: float, z: float):
        """Return (squared distance, Location) of the nearest track point."""
        return self._nearest((x, y, z))

    def find_location_2d(self, x: float, y: float):
        """Like find_location, ignoring height."""
        return self._nearest((x, y))

    def find_switch(self, x: float, y: float, z: float, tol: float = 1000):
        best_d = tol
        best = None
        for v in self.vertices:
            if v.type != VertexType.SWITCH:
                continue
            coord = v.location.coord
            e0, e1 = v.sw_edges
            if (e0 is not None and e1 is not None
                    and e0.type == EdgeType.STRAIGHT
                    and e1.type == EdgeType.STRAIGHT):
                e = e0 if e0.length < e1.length else e1
                coord = e.other_vertex(v).location.coord
            d = math.dist(coord, (x, y, z)) ** 2
            if best_d > d:
                best_d = d
                best = v
        return best

    def throw_switch(self, x: float, y: float, z: float) -> bool:
        sw = self.find_switch(x, y, z)
        if sw is None:
            return False
        sw.throw_switch(None, False)
        return True

    def lock_switch(self, x: float, y: float, z: float) -> bool:
        sw = self.find_switch(x, y, z)
        if sw is None:
            return False
        sw.locked = True
        return True

    def translate(self, dx: float, dy: float, dz: float) -> None:
        for v in self.vertices:
            c = v.location.coord
            c[0] += dx
            c[1] += dy
            c[2] += dz

    def rotate(self, angle: float) -> None:
        """Rotate about the z axis by ``angle`` degrees."""
        cs = math.cos(math.radians(angle))
        sn = math.sin(math.radians(angle))
        for v in self.vertices:
            c = v.location.coord
            c[0], c[1] = cs * c[0] - sn * c[1], sn * c[0] + cs * c[1]
        for e in self.edges:
            if e.curvature > 0 and e.type == EdgeType.SPLINE:
                e.set_circle(CURVATURE_FACTOR / e.curvature, e.angle)