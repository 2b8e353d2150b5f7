"""Local persistence implementations."""

from .json_store import JsonFileStore

__all__ = ["JsonFileStore"]
