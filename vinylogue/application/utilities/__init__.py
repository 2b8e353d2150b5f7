"""Application utilities for concurrency and cancellation."""

from .cancellation import CancellationToken, OperationCancelled
from .fanout import BoundedFanOut

__all__ = ["BoundedFanOut", "CancellationToken", "OperationCancelled"]
