"""Command line interface for oversight."""
