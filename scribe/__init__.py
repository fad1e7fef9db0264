"""scribe: activity summaries and documentation pre-chunking."""

__version__ = "0.1.0"
