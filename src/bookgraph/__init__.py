"""Book recommendation graphs built from Open Library subjects."""

__version__ = "0.1.0"
