"""Per-cycle generational heap accounting from JFR garbage-collection events."""

__version__ = "0.1.0"
