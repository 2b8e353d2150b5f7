"""External service connectors."""

from .lastfm import LastFMConnector

__all__ = ["LastFMConnector"]
