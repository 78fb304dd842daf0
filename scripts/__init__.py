"""Utility scripts for operating the discovery service.

Scripts include:
- ``reindex_all.py``: recompute embeddings for every content record.
"""
