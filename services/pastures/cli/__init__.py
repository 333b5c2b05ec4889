"""Command-line interface for pastures."""
