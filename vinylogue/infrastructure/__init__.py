"""Infrastructure layer: Last.fm connector, storage and CLI."""
