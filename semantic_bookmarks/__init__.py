"""Semantic Bookmarks: Q&A-based semantic search over saved content."""

__version__ = "0.1.0"
