"""Chat session services."""
