"""Command-line interface for Vinylogue."""
