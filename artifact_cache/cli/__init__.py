"""Command-line interface for the artifact cache."""
