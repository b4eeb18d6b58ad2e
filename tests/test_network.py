import pytest

from trackgraph.graph import EdgeType, Track, VertexType
from trackgraph.network import (
    TrackConnection,
    TrackNetwork,
    align_named,
    find_named_location,
    find_named_midpoint,
    save_location,
)
from trackgraph.paths import make_ss_edges


def _line(points):
    track = Track()
    verts = [track.add_vertex(VertexType.SIMPLE, *p) for p in points]
    edges = []
    for a, b in zip(verts, verts[1:]):
        edges.append(track.add_edge(EdgeType.STRAIGHT, a, 1, b, 0))
    return track, verts, edges


def _y_track():
    track = Track()
    v0 = track.add_vertex(VertexType.SIMPLE, -10, 0, 0)
    sw = track.add_vertex(VertexType.SWITCH, 0, 0, 0)
    v1 = track.add_vertex(VertexType.SIMPLE, 10, 0, 0)
    v2 = track.add_vertex(VertexType.SIMPLE, 10, 5, 0)
    e0 = track.add_edge(EdgeType.STRAIGHT, v0, 1, sw, 0)
    e1 = track.add_edge(EdgeType.STRAIGHT, sw, 1, v1, 0)
    e2 = track.add_edge(EdgeType.STRAIGHT, sw, 2, v2, 0)
    return track, sw, (e0, e1, e2)


def test_save_and_find_location():
    track, _, edges = _line([(0, 0, 0), (10, 0, 0), (20, 0, 0)])
    save_location(track, 5, 1, 0, "A", True)
    loc = find_named_location(track, "A")
    assert loc.edge is edges[0]
    assert loc.offset == pytest.approx(5)
    assert loc.rev is True


def test_find_location_returns_copy():
    track, _, _ = _line([(0, 0, 0), (10, 0, 0)])
    save_location(track, 5, 0, 0, "A")
    loc = find_named_location(track, "A")
    loc.offset = 1
    assert find_named_location(track, "A").offset == pytest.approx(5)


def test_missing_location_raises():
    track, _, _ = _line([(0, 0, 0), (10, 0, 0)])
    save_location(track, 5, 0, 0, "A")
    with pytest.raises(KeyError):
        find_named_location(track, "B")
    with pytest.raises(KeyError):
        find_named_location(track, "A", 1)
    with pytest.raises(KeyError):
        find_named_midpoint(track, "B")


def test_save_on_empty_track_raises():
    with pytest.raises(ValueError):
        save_location(Track(), 0, 0, 0, "A")


def test_midpoint_single_location():
    track, _, edges = _line([(0, 0, 0), (10, 0, 0)])
    save_location(track, 3, 0, 0, "A")
    loc = find_named_midpoint(track, "A")
    assert loc.edge is edges[0]
    assert loc.offset == pytest.approx(3)


def test_midpoint_same_edge():
    track, _, edges = _line([(0, 0, 0), (10, 0, 0)])
    save_location(track, 2, 0, 0, "A")
    save_location(track, 6, 0, 0, "A")
    loc = find_named_midpoint(track, "A")
    assert loc.edge is edges[0]
    assert loc.offset == pytest.approx(4)


@pytest.mark.parametrize("x1,x2", [(2, 18), (8, 19), (18, 2), (5, 15)])
def test_midpoint_across_edges(x1, x2):
    track, _, _ = _line([(0, 0, 0), (10, 0, 0), (20, 0, 0)])
    save_location(track, x1, 0, 0, "A")
    save_location(track, x2, 0, 0, "A")
    loc = find_named_midpoint(track, "A")
    coord = loc.world_location().coord
    assert coord[0] == pytest.approx((x1 + x2) / 2)
    assert coord[1] == pytest.approx(0)


def test_align_named_throws_switch():
    track, sw, (e0, e1, e2) = _y_track()
    assert sw.edge2 is e1
    save_location(track, -5, 0, 0, "from")
    save_location(track, 8, 4, 0, "to")
    align_named(track, "from", "to")
    assert sw.edge2 is e2
    align_named(track, "to", "from")
    assert sw.edge2 is e2


def test_align_named_missing_name():
    track, _, _ = _y_track()
    save_location(track, -5, 0, 0, "from")
    with pytest.raises(KeyError):
        align_named(track, "from", "nowhere")


def test_network_find_location_picks_nearest_track():
    net = TrackNetwork()
    t1, _, edges1 = _line([(0, 0, 0), (10, 0, 0)])
    t2, _, edges2 = _line([(0, 100, 0), (10, 100, 0)])
    net.add("one", t1)
    net.add("two", t2)
    assert net.find_location(4, 98, 0).edge is edges2[0]
    assert net.find_location(4, 2, 0).edge is edges1[0]
    assert TrackNetwork().find_location(0, 0, 0) is None


def test_network_switch_and_ss_edge_lookup():
    net = TrackNetwork()
    track, sw, _ = _y_track()
    make_ss_edges(track)
    net.add("y", track)
    assert net.find_switch_by_id(sw.id) is sw
    assert net.find_switch_by_id(sw.id + 1) is None
    sse = net.find_ss_edge(1)
    assert sse.block == 1
    assert net.find_ss_edge(99) is None
    assert net.find_switch_near((10, 0, 0), 1) is sw
    assert net.find_switch_near((500, 500, 0), 1) is None


def _two_lines():
    t1 = Track()
    a = t1.add_vertex(VertexType.SIMPLE, 0, 0, 0)
    b = t1.add_vertex(VertexType.SIMPLE, 10, 0, 0)
    e1 = t1.add_edge(EdgeType.STRAIGHT, a, 1, b, 0)
    t2 = Track()
    c = t2.add_vertex(VertexType.SIMPLE, 10.5, 0, 0)
    d = t2.add_vertex(VertexType.SIMPLE, 20, 0, 0)
    e2 = t2.add_edge(EdgeType.STRAIGHT, c, 1, d, 0)
    return t1, t2, (a, b, c, d), (e1, e2)


def test_connection_links_nearby_ends():
    t1, t2, (a, b, c, d), (e1, e2) = _two_lines()
    conn = TrackConnection(t1, t2)
    assert conn.track1 is t1 and conn.track2 is t2
    assert len(conn.track.edges) == 1
    link = conn.track.edges[0]
    assert {link.v1, link.v2} == {b, c}
    assert b.edge2 is link
    assert c.edge1 is link


def test_connection_allows_moving_across_and_disconnect():
    t1, t2, (a, b, c, d), (e1, e2) = _two_lines()
    conn = TrackConnection(t1, t2)
    loc = e1 and find_loc(e1)
    stopped = loc.move(15)
    assert stopped is False
    assert loc.edge is e2
    assert loc.offset == pytest.approx(5, abs=1e-3)
    conn.disconnect()
    assert b.edge2 is None
    assert c.edge1 is None
    loc2 = find_loc(e1)
    assert loc2.move(15) is True
    assert loc2.edge is e1


def find_loc(edge):
    from trackgraph.graph import Location
    return Location(edge, 0.0, False)


def test_connection_occupied():
    t1, t2, _, _ = _two_lines()
    conn = TrackConnection(t1, t2)
    assert conn.occupied() is False
    conn.track.edges[0].occupied = 1
    assert conn.occupied() is True


def test_connection_ignores_far_ends():
    t1, _, _, _ = _two_lines()
    t3, _, _ = _line([(50, 50, 0), (60, 50, 0)])
    conn = TrackConnection(t1, t3)
    assert conn.track.edges == []
    assert conn.occupied() is False