"""Lane-level last-mile delivery analytics."""

__version__ = "1.0.0"
