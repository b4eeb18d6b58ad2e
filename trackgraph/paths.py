"""Shortest-path searches, sidings, switch-to-switch edges and train paths."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator, Optional

from .graph import FAR, Location, SSEdge, Track, VertexType

OCCUPIED_SWITCH_PENALTY = 1000
INTERLOCK_FREE_DISTANCE = 1e3


class NodeType(IntEnum):
    OTHER = 0
    STOP = 1
    SIDINGSTART = 2
    SIDINGEND = 3
    COUPLE = 4
    UNCOUPLE = 5
    REVERSE = 6
    MEET = 7


@dataclass(eq=False)
class PathNode:
    """One point of a train path, optionally at a switch."""

    type: NodeType = NodeType.OTHER
    value: int = 0
    loc: Location = field(default_factory=Location)
    sw: Optional[object] = None
    next: Optional["PathNode"] = None
    next_siding: Optional["PathNode"] = None
    next_ss_edge: Optional[SSEdge] = None
    next_siding_ss_edge: Optional[SSEdge] = None


@dataclass(eq=False)
class Path:
    """A train path: a main chain of nodes with optional siding chains."""

    first_node: Optional[PathNode] = None

    def nodes(self) -> Iterator[PathNode]:
        """Yield the nodes of the main chain in order."""
        node = self.first_node
        while node is not None:
            yield node
            node = node.next

    def _all_switches(self):
        for node in self.nodes():
            if node.sw is not None:
                yield node.sw
            siding = node.next_siding
            while siding is not None:
                if siding.sw is not None:
                    yield siding.sw
                siding = siding.next_siding


def _pop_nearest(queue: list):
    best = 0
    for i in range(1, len(queue)):
        if queue[best].dist > queue[i].dist:
            best = i
    v = queue[best]
    last = queue.pop()
    if best < len(queue):
        queue[best] = last
    return v


def _reset(track: Track) -> None:
    for v in track.vertices:
        v.dist = FAR
        v.in_edge = None


def find_spt(track: Track, start: Location, both_directions: bool = True,
             path: Optional[Path] = None) -> None:
    """Shortest-path tree from ``start`` without changing direction.

    Results are left in each vertex's ``dist`` and ``in_edge``. When
    ``path`` is given, only switches on the path pass reachability on.
    """
    _reset(track)
    if path is not None:
        for v in track.vertices:
            if v.type == VertexType.SWITCH:
                v.dist = -1
        for sw in path._all_switches():
            sw.dist = FAR
    e = start.edge
    e.v1.dist = start.offset
    e.v1.in_edge = e
    e.v2.dist = e.length - start.offset
    e.v2.in_edge = e
    queue = []
    if both_directions or start.rev:
        queue.append(e.v1)
    if both_directions or not start.rev:
        queue.append(e.v2)
    while queue:
        v = _pop_nearest(queue)
        is_switch = v.type == VertexType.SWITCH
        for i in range(2):
            if (is_switch and v.in_edge is v.edge1
                    and (v.dist > INTERLOCK_FREE_DISTANCE
                         or v.has_interlocking == 0)):
                e = v.sw_edges[i]
            elif i > 0:
                break
            elif is_switch and v.in_edge is not v.edge1:
                e = v.edge1
            else:
                e = v.next_edge(v.in_edge)
            if e is None:
                break
            v2 = e.v2 if v is e.v1 else e.v1
            d = v.dist + e.length
            if v2.dist > d:
                v2.dist = d
                if v2.in_edge is None:
                    queue.append(v2)
                v2.in_edge = e
    if path is not None:
        for v in track.vertices:
            if v.dist < 0:
                v.dist = FAR


def find_spt_penalized(track: Track, start: Location,
                       change_penalty: float, occupied_penalty: float,
                       avoid=None) -> None:
    """Shortest-path tree allowing reversals at switches.

    ``change_penalty`` is added for each change of direction and
    occupied edges count ``occupied_penalty`` times their length.
    """
    _reset(track)
    e = start.edge
    e.v1.dist = start.offset
    e.v1.in_edge = e
    e.v2.dist = e.length - start.offset
    e.v2.in_edge = e
    queue = [v for v in (e.v1, e.v2) if v is not avoid]
    while queue:
        v = _pop_nearest(queue)
        for i in range(2):
            e = None
            d = v.dist
            if v.type == VertexType.SWITCH:
                if v.in_edge is v.edge1:
                    e = v.sw_edges[i]
                elif i == 0:
                    e = v.edge1
                else:
                    d += change_penalty
                    e = (v.sw_edges[1] if v.in_edge is v.sw_edges[0]
                         else v.sw_edges[0])
                if v.locked and e is not v.edge1 and e is not v.edge2:
                    continue
            elif i == 0:
                e = v.next_edge(v.in_edge)
            if e is None:
                break
            v2 = e.v2 if v is e.v1 else e.v1
            d += e.length * occupied_penalty if e.occupied else e.length
            if v2.dist > d:
                if (v2.type == VertexType.SWITCH and e is not v2.edge1
                        and e is not v2.edge2):
                    if v2.locked:
                        continue
                    if v2.occupied:
                        d += OCCUPIED_SWITCH_PENALTY
                v2.dist = d
                if v2.in_edge is None and v2 is not avoid:
                    queue.append(v2)
                v2.in_edge = e


def check_occupied(track: Track, far_vertex) -> float:
    """Distance from the search start to the nearest occupied edge on the
    way to ``far_vertex``, or 0 if the way is clear."""
    v = far_vertex
    pe = None
    o_dist = 0.0
    while True:
        e = v.in_edge
        if e is None or e is pe:
            break
        if pe is not None and pe.occupied and v.dist > 0:
            o_dist = v.dist
        v = e.v2 if e.v1 is v else e.v1
        pe = e
    return o_dist


def _other_switch_vertex(v):
    e = v.sw_edges[1] if v.sw_edges[0] is v.in_edge else v.sw_edges[0]
    return e.v2 if e.v1 is v else e.v1


def find_siding(track: Track, distance: float, tol: float):
    """Switch closing a siding about ``distance`` from the search start."""
    best_v = None
    best_d = tol
    for v in track.vertices:
        if v.type != VertexType.SWITCH:
            continue
        if v.in_edge is None or v.in_edge is v.edge1:
            continue
        if _other_switch_vertex(v).dist < FAR:
            d = abs(v.dist - distance)
            if d < best_d:
                best_v = v
                best_d = d
    return best_v


def find_siding_near(track: Track, coord, length: float):
    """Switch closing a siding of at least ``length`` nearest ``coord``."""
    best_v = None
    best_d = 9 * length * length
    for v in track.vertices:
        if v.type != VertexType.SWITCH:
            continue
        if v.in_edge is None or v.in_edge is v.edge1:
            continue
        p = find_siding_parent(track, v)
        if p is None or v.dist - p.dist < length:
            continue
        d = sum((a - b) ** 2 for a, b in zip(v.location.coord, coord))
        if d < best_d:
            best_v = v
            best_d = d
    return best_v


def find_siding_parent(track: Track, vertex):
    """The vertex where the siding closed by ``vertex`` begins."""
    e = vertex.in_edge
    if e is None or vertex.edge1 is e or vertex.type != VertexType.SWITCH:
        return None
    return find_common_parent(track, vertex, _other_switch_vertex(vertex))


def find_common_parent(track: Track, v1, v2):
    """Nearest common ancestor of two vertices in the shortest-path tree."""
    if v1.in_edge is None or v2.in_edge is None:
        return None
    while v1 is not v2:
        if v1.dist > v2.dist:
            e = v1.in_edge
            v1 = e.v2 if e.v1 is v1 else e.v1
        else:
            e = v2.in_edge
            v2 = e.v2 if e.v1 is v2 else e.v1
    return v1


def _orient_node(node: PathNode) -> None:
    if node.sw is not None:
        node.loc.edge = node.sw.edge1
    e = node.loc.edge
    node.loc.rev = e.v1.dist < e.v2.dist
    if node.sw is not None:
        node.loc.offset = 0.0 if e.v1 is node.sw else e.length


def _link_ss_edge(node: PathNode, other: PathNode):
    if node.sw is None:
        return node.loc.edge.ss_edge
    if other.sw is None:
        return other.loc.edge.ss_edge
    return node.sw.find_ss_edge(other.sw)


def orient(track: Track, path: Path) -> None:
    """Set directions, switch-to-switch edges and siding types on a path."""
    first = path.first_node
    find_spt(track, first.loc, True, None)
    for p in path.nodes():
        if p is first:
            continue
        _orient_node(p)
        p1 = p.next_siding
        while p1 is not None and p1.next_siding is not None:
            _orient_node(p1)
            p1 = p1.next_siding
    e = first.next.loc.edge
    if e is first.loc.edge:
        second = first.next
        first.loc.rev = first.loc.offset > second.loc.offset
        second.loc.rev = first.loc.rev
    else:
        v = e.v1 if e.v1.dist > e.v2.dist else e.v2
        if v.in_edge is None:
            raise ValueError("bad path")
        while v.in_edge is not first.loc.edge:
            e = v.in_edge
            v = e.v2 if e.v1 is v else e.v1
        first.loc.rev = v.in_edge.v1 is v
    for p in path.nodes():
        if p.next is not None:
            p.next_ss_edge = _link_ss_edge(p, p.next)
        if p.next_siding is not None:
            p.next_siding_ss_edge = _link_ss_edge(p, p.next_siding)
        p1 = p.next_siding
        while p1 is not None and p1.next_siding is not None:
            p1.next_siding_ss_edge = _link_ss_edge(p1, p1.next_siding)
            p1 = p1.next_siding
        if p1 is not None:
            p1.type = NodeType.SIDINGEND
        if p.next is not None and p.next_siding is not None:
            p.type = NodeType.SIDINGSTART


def make_ss_edges(track: Track) -> None:
    """Number switches and build the switch-to-switch edges and blocks."""
    switches = [v for v in track.vertices if v.type == VertexType.SWITCH]
    max_id = max((sw.id for sw in switches), default=-1)
    for sw in switches:
        if sw.id < 0:
            max_id += 1
            sw.id = max_id
        track.switch_map[sw.id] = sw
        for j in range(3):
            if sw.ss_edges[j] is not None:
                continue
            sse = SSEdge(v1=sw, v2=None, track=track, length=0.0,
                         block=len(track.ss_edge_map) + 1)
            track.ss_edge_map[sse.block] = sse
            sw.ss_edges[j] = sse
            e = sw.edge1 if j == 0 else sw.sw_edges[j - 1]
            v = sw
            while e is not None:
                e.ss_edge = sse
                e.ss_offset = sse.length
                sse.length += e.length
                v = e.v2 if e.v1 is v else e.v1
                if v.type == VertexType.SWITCH:
                    break
                e = v.edge2 if v.edge1 is e else v.edge1
            sse.v2 = v
            if v.type != VertexType.SWITCH or v is sw:
                continue
            if e is v.edge1:
                v.ss_edges[0] = sse
            elif e is v.sw_edges[0]:
                v.ss_edges[1] = sse
            else:
                v.ss_edges[2] = sse


def align_path_switches(track: Track, start: PathNode, end: PathNode,
                        take_siding: bool) -> None:
    """Throw the switches between two path nodes to follow the path."""
    prev_sw = None
    sse1 = start.loc.edge.ss_edge
    node = start
    while node is not end:
        if node is None:
            raise ValueError("end node is not reachable along the path")
        if node.next is None or (take_siding and node.next_siding is not None):
            nxt = node.next_siding
            sse2 = node.next_siding_ss_edge
        else:
            nxt = node.next
            sse2 = node.next_ss_edge
        if sse1 is not sse2 and node.sw is not None:
            sw = node.sw
            if sw is not prev_sw:
                if sw.ss_edges[1] is sse1 or sw.ss_edges[1] is sse2:
                    sw.throw_switch(sw.sw_edges[0], False)
                else:
                    sw.throw_switch(sw.sw_edges[1], False)
            prev_sw = sw
        node = nxt
        sse1 = sse2


def align_switches(track: Track, start: Location, end: Location) -> None:
    """Throw switches so the track leads from ``start`` to ``end``."""
    find_spt(track, start, True)
    e1 = end.edge
    v = e1.v1 if e1.v1.dist > e1.v2.dist else e1.v2
    pe = None
    while True:
        if v.type == VertexType.SWITCH and pe is not None:
            v.throw_switch(pe, False)
        e = v.in_edge
        if e is None or e is pe:
            break
        if v.type == VertexType.SWITCH:
            v.throw_switch(e, False)
        v = e.v2 if e.v1 is v else e.v1
        pe = e