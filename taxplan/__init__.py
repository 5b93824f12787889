"""Planning-grade Canadian personal and corporate tax engine."""

__version__ = "0.1.0"
