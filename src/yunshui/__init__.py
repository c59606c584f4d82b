"""Yunshui materials ordering and fulfillment tracking service."""

__version__ = "1.0.0"
