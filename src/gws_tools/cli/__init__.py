"""Command-line interface for gws-tools."""
