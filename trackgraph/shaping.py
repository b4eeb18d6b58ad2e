"""Track geometry refinement: curves at joints and switches, grades and
expansion of spline edges into straight segments."""

from __future__ import annotations

import math

from .graph import EdgeType, Location, Track, VertexType

# Maximum change of grade per 100 ft section, per metre of track.
MAX_CREST = 0.5 * 0.2 / 100 / (0.3048 * 100)
MAX_SAG = 0.5 * 0.1 / 100 / (0.3048 * 100)

_PI = 3.14159
_WRAP_LIMIT = 3.14156
SWITCH_CURVE_OFFSET = 4 / 3.281


def _normalize(vec):
    n = math.sqrt(sum(c * c for c in vec))
    if n == 0:
        raise ValueError("cannot normalize a zero-length vector")
    return [c / n for c in vec]


def _wrap(dh: float) -> float:
    if dh < -_WRAP_LIMIT:
        dh += 2 * _PI
    if dh > _WRAP_LIMIT:
        dh -= 2 * _PI
    return dh


def _arc_points(start, heading: float, turn: float, x: float, d1, d2):
    """Yield (point, segment length) pairs of a polygon approximating the
    arc that turns ``turn`` radians, starting at ``start``."""
    r = x / math.tan(abs(turn / 2))
    m = math.ceil(2 * abs(turn) * 180 / _PI)
    step = turn / m
    t = abs(r * math.tan(step / 2))
    dz = x / m * (d1[2] + d2[2])
    seg = abs(r * step)
    p = list(start)
    h = heading
    cs, sn = math.cos(h), math.sin(h)
    for _ in range(m):
        p = [p[0] + t * cs, p[1] + t * sn, p[2] + dz]
        h += step
        cs, sn = math.cos(h), math.sin(h)
        p = [p[0] + t * cs, p[1] + t * sn, p[2]]
        yield list(p), seg


def add_curve(track: Track, v1, n1: int, v2, n2: int):
    """Join ``v1`` to ``v2`` with a curve tangent to the track at ``v1``.

    Falls back to a single straight edge when ``v1`` has no usable
    neighbouring edge. Returns the final edge, which ends at ``v2``.
    """
    e0 = v1.edge2 if n1 == 0 else v1.edge1
    if e0 is None or e0.length < 1:
        return track.add_edge(EdgeType.STRAIGHT, v1, n1, v2, n2)
    v0 = e0.other_vertex(v1)
    c1 = v1.location.coord
    d1 = _normalize([a - b for a, b in zip(c1, v0.location.coord)])
    d2 = [b - a for a, b in zip(c1, v2.location.coord)]
    x = math.sqrt(sum(c * c for c in d2))
    d2 = _normalize(d2)
    if x > e0.length:
        x = e0.length
    x -= 0.1
    h = math.atan2(d1[1], d1[0])
    dh = _wrap(math.atan2(d2[1], d2[0]) - h)
    e0.length -= x
    for i in range(3):
        c1[i] -= d1[i] * x
    if dh != 0:
        for p, seg in _arc_points(c1, h, dh, x, d1, d2):
            v = track.add_vertex(VertexType.SIMPLE, p[0], p[1], p[2])
            e = track.add_edge(EdgeType.STRAIGHT, v1, n1, v, 0)
            e.length = seg
            v1 = v
            n1 = 1
    return track.add_edge(EdgeType.STRAIGHT, v1, n1, v2, n2)


def make_switch_curves(track: Track) -> None:
    """Replace the sharp angle of each switch's diverging route with a curve."""
    switches = [v for v in track.vertices if v.type == VertexType.SWITCH]
    for sw in switches:
        v = sw.edge1.other_vertex(sw)
        c = sw.location.coord
        d1 = _normalize([a - b for a, b in zip(c, v.location.coord)])
        e3 = sw.sw_edges[1 - sw.main_edge]
        v = e3.other_vertex(sw)
        d2 = _normalize([b - a for a, b in zip(c, v.location.coord)])
        h = math.atan2(d1[1], d1[0])
        dh = _wrap(math.atan2(d2[1], d2[0]) - h)
        s = math.sin(dh)
        if s == 0:
            continue
        y = -SWITCH_CURVE_OFFSET if dh < 0 else SWITCH_CURVE_OFFSET
        x = y / s
        if x > sw.edge1.length or x > e3.length:
            continue
        sw.edge1.length -= x
        e3.length -= x
        sw.sw_edges[sw.main_edge].length += x
        for i in range(3):
            c[i] -= d1[i] * x
        v = sw
        for j, (p, seg) in enumerate(_arc_points(c, h, dh, x, d1, d2)):
            v1 = track.add_vertex(VertexType.SIMPLE, p[0], p[1], p[2])
            n = 2 - sw.main_edge if j == 0 else 1
            e = track.add_edge(EdgeType.STRAIGHT, v, n, v1, 0)
            e.length = seg
            v = v1
        v.edge2 = e3
        if e3.v1 is sw:
            e3.v1 = v
        else:
            e3.v2 = v


def calc_grades(track: Track):
    """Set each vertex's grade from its edges.

    Returns the number of (crest, sag) points whose change of grade is
    steeper than allowed.
    """
    n_crest = 0
    n_sag = 0
    for v in track.vertices:
        v.grade = 0.0
        if v.type != VertexType.SWITCH:
            if v.edge1 is not None:
                v.grade = -v.edge1.grade(v)
            if v.edge2 is not None:
                v.grade = 0.5 * v.grade + 0.5 * v.edge2.grade(v)
            if v.edge1 is not None and v.edge2 is not None:
                g1 = v.edge1.grade()
                g2 = v.edge2.grade()
                if v is v.edge1.v1:
                    g1 = -g1
                if v is v.edge2.v2:
                    g2 = -g2
                dg = (g2 - g1) / (v.edge2.length + v.edge1.length)
                if dg < -MAX_CREST:
                    n_crest += 1
                if dg > MAX_SAG:
                    n_sag += 1
        else:
            if v.edge1 is not None:
                v.grade = -v.edge1.grade(v) / 3
            for e in v.sw_edges:
                if e is not None:
                    v.grade += e.grade(v) / 3
    return n_crest, n_sag


def average_elevation(edge, vertex, dist: float) -> float:
    """Mean elevation over about ``dist`` of track leaving ``vertex``
    along ``edge``."""
    if dist <= 0:
        raise ValueError("distance must be positive")
    v = edge.other_vertex(vertex)
    total = 0.0
    area = 0.0
    while total < dist:
        area += 0.5 * (edge.v1.elevation + edge.v2.elevation) * edge.length
        total += edge.length
        e = v.next_edge(edge)
        if e is None:
            break
        v = e.other_vertex(v)
        edge = e
    return area / total


def calc_smooth_grades(track: Track, n_iterations: int,
                       distance: float) -> int:
    """Smooth vertex elevations so grade changes stay within limits.

    Returns the number of iterations performed.
    """
    calc_grades(track)
    for v in track.vertices:
        v.in_edge = None
    done = 0
    for _ in range(n_iterations):
        done += 1
        for v in track.vertices:
            v.dist = v.elevation
        changed = 0
        for v in track.vertices:
            if v.in_edge is not None:
                continue
            edge1 = v.edge1
            edge2 = v.edge2
            if edge1 is not None and edge2 is None:
                v.dist = edge1.other_vertex(v).dist
            if edge1 is None or edge2 is None:
                continue
            e1 = average_elevation(edge1, v, distance)
            e2 = average_elevation(edge2, v, distance)
            g1 = (v.elevation - e1) / (0.5 * distance)
            g2 = (e2 - v.elevation) / (0.5 * distance)
            dg = (g2 - g1) / distance
            if -MAX_CREST <= dg <= MAX_SAG:
                continue
            v.dist = 0.5 * (e1 + e2)
            if dg < -MAX_CREST:
                v.dist += 0.5 * MAX_CREST * distance
            if MAX_SAG < dg:
                v.dist -= 0.5 * MAX_SAG * distance
            changed += 1
        for v in track.vertices:
            v.elevation = v.dist
        if changed == 0:
            break
    calc_grades(track)
    return done


def _slot(edge, vertex) -> int:
    n = 0 if edge is vertex.edge1 else 1
    if (n == 1 and vertex.type == VertexType.SWITCH
            and edge is vertex.sw_edges[1]):
        n = 2
    return n


def expand(track: Track) -> Track:
    """Return a copy with curved spline edges split into straight edges."""
    copy = Track()
    vmap = {}
    for v in track.vertices:
        x, y, z = v.location.coord
        vmap[v] = copy.add_vertex(v.type, x, y, z)
    for e in track.edges:
        v1 = vmap[e.v1]
        v2 = vmap[e.v2]
        n1 = _slot(e, e.v1)
        n2 = _slot(e, e.v2)
        if e.length > 1 and e.curvature > 0 and e.type == EdgeType.SPLINE:
            loc = Location(e, 0.0, False)
            n = math.ceil(180 * abs(e.angle) / math.pi) + 1
            for j in range(1, n):
                loc.offset = j * e.length / n
                x, y, z = loc.world_location(True).coord
                v = copy.add_vertex(VertexType.SIMPLE, x, y, z)
                copy.add_edge(EdgeType.STRAIGHT, v1, n1, v, 0)
                v1 = v
                n1 = 1
        copy.add_edge(EdgeType.STRAIGHT, v1, n1, v2, n2)
    return copy