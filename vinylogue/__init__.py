"""Vinylogue: revisit your Last.fm weekly album charts from years past."""

__version__ = "0.1.0"
