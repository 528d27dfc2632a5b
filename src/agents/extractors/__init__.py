"""Extractor agents."""
