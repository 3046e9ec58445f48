"""Colosseum: turn-based multi-agent combat matches inside timed arenas."""

__version__ = "0.1.0"
