from types import SimpleNamespace

import pytest

from trackgraph.graph import FAR, EdgeType, Location, Track, VertexType
from trackgraph.paths import (
    NodeType,
    Path,
    PathNode,
    align_path_switches,
    align_switches,
    check_occupied,
    find_common_parent,
    find_siding,
    find_siding_near,
    find_siding_parent,
    find_spt,
    find_spt_penalized,
    make_ss_edges,
    orient,
)

S = EdgeType.STRAIGHT


@pytest.fixture
def layout():
    """A main line A-S1-B-S2-C with a passing siding S1-D-S2."""
    t = Track()
    a = t.add_vertex(VertexType.SIMPLE, 0, 0, 0)
    s1 = t.add_vertex(VertexType.SWITCH, 100, 0, 0)
    b = t.add_vertex(VertexType.SIMPLE, 200, 0, 0)
    d = t.add_vertex(VertexType.SIMPLE, 200, 20, 0)
    s2 = t.add_vertex(VertexType.SWITCH, 300, 0, 0)
    c = t.add_vertex(VertexType.SIMPLE, 400, 0, 0)
    e_a = t.add_edge(S, a, 0, s1, 0)
    e_s1b = t.add_edge(S, s1, 1, b, 0)
    e_bs2 = t.add_edge(S, b, 1, s2, 1)
    e_s1d = t.add_edge(S, s1, 2, d, 0)
    e_ds2 = t.add_edge(S, d, 1, s2, 2)
    e_s2c = t.add_edge(S, s2, 0, c, 0)
    return SimpleNamespace(t=t, a=a, s1=s1, b=b, d=d, s2=s2, c=c, e_a=e_a,
                           e_s1b=e_s1b, e_bs2=e_bs2, e_s1d=e_s1d,
                           e_ds2=e_ds2, e_s2c=e_s2c)


def test_find_spt_both_directions(layout):
    L = layout
    find_spt(L.t, Location(L.e_a, 50, False))
    assert L.a.dist == pytest.approx(50)
    assert L.s2.in_edge is L.e_bs2
    assert L.d.in_edge is L.e_s1d
    assert L.c.dist == pytest.approx(
        L.e_a.length - 50 + L.e_s1b.length + L.e_bs2.length
        + L.e_s2c.length)


def test_find_spt_one_direction(layout):
    L = layout
    find_spt(L.t, Location(L.e_bs2, 50, True), both_directions=False)
    assert L.a.dist == pytest.approx(50 + L.e_s1b.length + L.e_a.length)
    assert L.c.dist == FAR
    assert L.d.dist == FAR


def test_find_spt_restricted_to_path(layout):
    L = layout
    start = Location(L.e_s2c, 50, True)
    path = Path(PathNode(loc=start))
    find_spt(L.t, start, True, path)
    assert L.b.dist == pytest.approx(50 + L.e_bs2.length)
    assert L.s1.dist == FAR
    assert L.a.dist == FAR
    path.first_node.next = PathNode(sw=L.s1)
    find_spt(L.t, start, True, path)
    assert L.a.dist < FAR


def test_penalized_locked_switch_forces_reversal(layout):
    L = layout
    L.s1.locked = True
    find_spt_penalized(L.t, Location(L.e_a, 50, False), 5, 1)
    assert L.d.in_edge is L.e_ds2
    assert L.d.dist == pytest.approx(L.s2.dist + 5 + L.e_ds2.length)


def test_penalized_avoid_vertex(layout):
    L = layout
    find_spt_penalized(L.t, Location(L.e_a, 50, False), 0, 1, L.s1)
    assert L.b.dist == FAR
    assert L.c.dist == FAR


def test_check_occupied(layout):
    L = layout
    find_spt(L.t, Location(L.e_a, 50, False))
    assert check_occupied(L.t, L.c) == 0
    L.e_bs2.occupied = 1
    assert check_occupied(L.t, L.c) == pytest.approx(L.b.dist)


def test_siding_searches(layout):
    L = layout
    find_spt(L.t, Location(L.e_a, 50, False))
    assert find_siding(L.t, 250, 10) is L.s2
    assert find_siding(L.t, 1000, 10) is None
    assert find_siding_parent(L.t, L.s2) is L.s1
    assert find_siding_parent(L.t, L.s1) is None
    assert find_common_parent(L.t, L.b, L.d) is L.s1
    assert find_siding_near(L.t, (300, 0, 0), 100) is L.s2
    assert find_siding_near(L.t, (300, 0, 0), 300) is None


def test_make_ss_edges(layout):
    L = layout
    make_ss_edges(L.t)
    assert sorted(L.t.switch_map) == [0, 1]
    assert len(L.t.ss_edge_map) == 4
    main = L.s1.ss_edges[1]
    assert L.s2.ss_edges[1] is main
    assert L.s2.ss_edges[2] is L.s1.ss_edges[2]
    assert L.s1.find_ss_edge(L.s2) is main
    assert main.length == pytest.approx(L.e_s1b.length + L.e_bs2.length)
    assert L.e_bs2.ss_offset == pytest.approx(L.e_s1b.length)
    assert L.e_a.ss_edge.v2 is L.a


def test_align_switches_to_siding(layout):
    L = layout
    align_switches(L.t, Location(L.e_a, 50, False), Location(L.e_s1d, 10))
    assert L.s1.edge2 is L.e_s1d
    assert L.s2.edge2 is L.e_bs2


def _path(L):
    n1 = PathNode(loc=Location(L.e_a, 10, False))
    n2 = PathNode(sw=L.s1)
    n3 = PathNode(sw=L.s2)
    n4 = PathNode(loc=Location(L.e_s2c, 50, False))
    n5 = PathNode(loc=Location(L.e_s1d, 50, False))
    n6 = PathNode(sw=L.s2)
    n1.next, n2.next, n3.next = n2, n3, n4
    n2.next_siding = n5
    n5.next_siding = n6
    return Path(n1), (n1, n2, n3, n4, n5, n6)


def test_path_nodes(layout):
    path, (n1, n2, n3, n4, _, _) = _path(layout)
    assert list(path.nodes()) == [n1, n2, n3, n4]


def test_orient(layout):
    L = layout
    make_ss_edges(L.t)
    path, (n1, n2, n3, n4, n5, n6) = _path(L)
    orient(L.t, path)
    assert n2.loc.edge is L.e_a
    assert n2.loc.offset == pytest.approx(L.e_a.length)
    assert n3.loc.edge is L.e_s2c
    assert n1.loc.rev == n2.loc.rev
    assert n2.type == NodeType.SIDINGSTART
    assert n6.type == NodeType.SIDINGEND
    assert n2.next_ss_edge is L.s1.ss_edges[1]
    assert n2.next_siding_ss_edge is L.s1.ss_edges[2]


def test_orient_bad_path(layout):
    L = layout
    x = L.t.add_vertex(VertexType.SIMPLE, 0, 500, 0)
    y = L.t.add_vertex(VertexType.SIMPLE, 50, 500, 0)
    lone = L.t.add_edge(S, x, 0, y, 0)
    make_ss_edges(L.t)
    n1 = PathNode(loc=Location(L.e_a, 10, False))
    n1.next = PathNode(loc=Location(lone, 5, False))
    with pytest.raises(ValueError):
        orient(L.t, Path(n1))


def test_align_path_switches(layout):
    L = layout
    make_ss_edges(L.t)
    path, (n1, n2, n3, n4, n5, n6) = _path(L)
    orient(L.t, path)
    align_path_switches(L.t, n1, n6, True)
    assert L.s1.edge2 is L.e_s1d
    align_path_switches(L.t, n1, n4, False)
    assert L.s1.edge2 is L.e_s1b
    with pytest.raises(ValueError):
        align_path_switches(L.t, n1, n4, True)