"""Application layer: use cases and stateful services."""
