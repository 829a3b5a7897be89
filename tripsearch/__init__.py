"""Progressive-fallback resolver for free-text trip and client lookups."""

__version__ = "0.1.0"
