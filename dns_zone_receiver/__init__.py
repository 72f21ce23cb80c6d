"""Receiving endpoint for DNS zone-file uploads."""

__version__ = "0.1.0"
