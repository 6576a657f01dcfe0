"""Docweave - Keep documentation and runnable samples in sync.

This package provides tools for:
- Scanning documents for marker-delimited regions
- Weaving source ranges and runnable samples into documents
- Generating tables of contents
- Resolving cross-module API links
- Checking documents for staleness or rewriting them in place

Usage:
    python -m docweave check    # Report outdated documents and samples
    python -m docweave apply    # Rewrite outdated documents and samples
"""

__version__ = "1.0.0"
