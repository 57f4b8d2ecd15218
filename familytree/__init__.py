"""Family Tree Engine - family graph construction and relationship consistency."""

__version__ = "0.1.0"
