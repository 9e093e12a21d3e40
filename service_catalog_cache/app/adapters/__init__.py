"""Adapters for external resources used by the cache layer."""

from .image_loader import HttpImageLoader

__all__ = ["HttpImageLoader"]
