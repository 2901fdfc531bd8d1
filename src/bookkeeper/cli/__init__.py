"""CLI layer for bookkeeper application."""
