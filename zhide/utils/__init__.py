"""Document helpers."""
