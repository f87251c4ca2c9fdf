"""Resolve short URLs to the destination their redirect chain ends at."""

__version__ = '1.0.0'
