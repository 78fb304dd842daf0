"""HTTP surface: search and reindex endpoints plus health and metrics."""
