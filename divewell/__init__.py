"""Content generation and integrity pipeline for dive training lessons."""

__version__ = "0.1.0"
