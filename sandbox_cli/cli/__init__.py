"""Command-line interface for sandbox-cli."""
