"""Railway track graph model: track, switches, locations, routing, shaping,
named locations and track profiles."""

__version__ = "0.1.0"