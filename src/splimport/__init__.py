"""
SPL Import - Structured Product Labeling XML import pipeline.

This package parses FDA SPL drug-label documents into a normalized
relational record set: documents, authors, nested sections with their
narrative content, products and ingredients, indexing and tolerance data.
"""

__version__ = "0.1.0"
