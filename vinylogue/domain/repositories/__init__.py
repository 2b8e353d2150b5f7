"""Domain repository interfaces."""

from .interfaces import ChartGatewayProtocol, PersistenceProtocol

__all__ = ["ChartGatewayProtocol", "PersistenceProtocol"]
