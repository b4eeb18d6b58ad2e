"""Named track locations, collections of tracks and links between tracks."""

from __future__ import annotations

from typing import Optional

from .graph import FAR, Edge, Location, Track
from .paths import align_switches, find_spt

CONNECTION_EDGE_LENGTH = 0.00001
CONNECTION_MAX_DIST_SQ = 1.0


def save_location(track: Track, x: float, y: float, z: float, name: str,
                  rev: bool = False) -> Location:
    """Store the track point nearest (x, y, z) under ``name``.

    Several locations may share a name; they are kept in the order saved.
    """
    _, loc = track.find_location(x, y, z)
    if loc is None:
        raise ValueError("track has no edges to place a location on")
    loc.rev = bool(rev)
    track.locations.setdefault(name, []).append(loc)
    return loc.copy()


def find_named_location(track: Track, name: str, index: int = 0) -> Location:
    """Return a copy of the ``index``-th location saved under ``name``."""
    saved = track.locations.get(name, [])
    if index < 0 or index >= len(saved):
        raise KeyError(f"cannot find track location {name!r} #{index}")
    return saved[index].copy()


def find_named_midpoint(track: Track, name: str) -> Location:
    """Point half way between the first two locations saved under ``name``.

    With only one location saved, that location is returned.
    """
    loc1 = find_named_location(track, name, 0)
    saved = track.locations[name]
    if len(saved) < 2:
        return loc1
    loc2 = saved[1].copy()
    if loc1.edge is loc2.edge:
        loc1.offset = (loc1.offset + loc2.offset) / 2
        return loc1
    find_spt(track, loc1, True)
    edge2 = loc2.edge
    v = edge2.v1
    d = (v.dist + loc2.offset) / 2
    if v.dist > edge2.v2.dist:
        v = edge2.v2
        d = (v.dist + edge2.length - loc2.offset) / 2
    if v.in_edge is None:
        return loc2
    if v.dist < d:
        if v is edge2.v1:
            offset = d - v.dist
        else:
            offset = edge2.length - (d - v.dist)
        return Location(edge2, offset, False)
    e = edge2
    while v.dist > d and e is not v.in_edge:
        e = v.in_edge
        v = e.v2 if v is e.v1 else e.v1
    if e is v.in_edge and v is e.v1:
        offset = v.dist + d
    elif e is v.in_edge:
        offset = e.length - (d + v.dist)
    elif v is e.v1:
        offset = d - v.dist
    else:
        offset = e.length - (d - v.dist)
    return Location(e, offset, False)


def align_named(track: Track, start_name: str, end_name: str) -> None:
    """Throw switches so the track leads between two named locations."""
    start = find_named_midpoint(track, start_name)
    end = find_named_midpoint(track, end_name)
    align_switches(track, start, end)


class TrackNetwork:
    """A set of named tracks searched together."""

    def __init__(self) -> None:
        self.tracks: dict = {}

    def add(self, name: str, track: Track) -> Track:
        self.tracks[name] = track
        return track

    def find_location(self, x: float, y: float, z: float) -> Optional[Location]:
        """Nearest track location over all tracks, or None without edges."""
        best_d = FAR
        best = None
        for track in self.tracks.values():
            d, loc = track.find_location(x, y, z)
            if loc is not None and best_d > d:
                best_d = d
                best = loc
        return best

    def find_switch_by_id(self, switch_id: int):
        for track in self.tracks.values():
            sw = track.switch_map.get(switch_id)
            if sw is not None:
                return sw
        return None

    def find_switch_near(self, coord, tol: float = 1000):
        x, y, z = coord
        for track in self.tracks.values():
            sw = track.find_switch(x, y, z, tol)
            if sw is not None:
                return sw
        return None

    def find_ss_edge(self, block: int):
        for track in self.tracks.values():
            sse = track.ss_edge_map.get(block)
            if sse is not None:
                return sse
        return None


def _is_dangling(vertex) -> bool:
    return vertex.edge1 is None or vertex.edge2 is None


class TrackConnection:
    """Short edges joining the loose ends of two separate tracks."""

    def __init__(self, track1: Track, track2: Track) -> None:
        self.track = Track()
        self.track1 = track1
        self.track2 = track2
        small, large = track1, track2
        if len(small.vertices) > len(large.vertices):
            small, large = large, small
        for v1 in small.vertices:
            if not _is_dangling(v1):
                continue
            best_v2 = None
            best_d = CONNECTION_MAX_DIST_SQ
            for v2 in large.vertices:
                if not _is_dangling(v2):
                    continue
                d = sum((a - b) ** 2 for a, b in
                        zip(v1.location.coord, v2.location.coord))
                if best_d > d:
                    best_d = d
                    best_v2 = v2
            if best_v2 is None:
                continue
            e = Edge(v1=v1, v2=best_v2, track=self.track,
                     length=CONNECTION_EDGE_LENGTH)
            if v1.edge1 is None:
                v1.edge1 = e
            else:
                v1.edge2 = e
            if best_v2.edge1 is None:
                best_v2.edge1 = e
            else:
                best_v2.edge2 = e
            self.track.edges.append(e)

    def occupied(self) -> bool:
        return any(e.occupied for e in self.track.edges)

    def disconnect(self) -> None:
        """Detach the connecting edges from both tracks."""
        for e in self.track.edges:
            for v in (e.v1, e.v2):
                if v.edge1 is e:
                    v.edge1 = None
                elif v.edge2 is e:
                    v.edge2 = None