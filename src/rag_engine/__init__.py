"""Retrieval-augmented generation ingestion and retrieval engine."""

__version__ = "0.1.0"
