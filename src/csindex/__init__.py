"""
csindex - incremental, crash-safe builder for an on-disk code search index.
"""

__version__ = "0.1.0"
