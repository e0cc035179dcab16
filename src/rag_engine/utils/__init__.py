"""Utility modules for the RAG engine."""
