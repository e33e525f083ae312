"""Backend for the salon scheduling survey and its admin dashboard."""

__version__ = "0.1.0"
