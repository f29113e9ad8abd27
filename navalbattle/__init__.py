"""Two-player naval battle game over TCP: server, client and game rules."""

__version__ = "0.1.0"