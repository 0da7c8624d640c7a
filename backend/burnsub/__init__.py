"""Burn time-coded subtitles into videos through an asynchronous export queue."""

__version__ = "0.1.0"
