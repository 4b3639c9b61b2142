"""Game diary curation backend."""

__version__ = "0.1.0"
