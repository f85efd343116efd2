"""The Polymarket Times backend."""

__version__ = "0.1.0"
