"""Root exception for the discovery service."""


class DiscoveryError(Exception):
    """Base exception for all discovery errors."""
    pass
