"""Interactive request and visualization core for crypto analysis tools."""

__version__ = "0.1.0"
