"""Tests for the discovery service.

Unit tests run against the in-memory content store and fake embedding
providers; no database or network access is required.
"""
