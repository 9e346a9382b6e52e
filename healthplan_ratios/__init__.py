"""Health-plan regulatory ratios service."""

__version__ = "1.0.0"
