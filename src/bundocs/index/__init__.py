"""Navigation index, resolution and search."""
