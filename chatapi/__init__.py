"""Chat API: sessions, rooms and messages over HTTP."""

__version__ = "0.1.0"
