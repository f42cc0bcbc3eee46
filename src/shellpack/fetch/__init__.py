"""Helper binary retrieval."""

from .http import HelperBinary, fetch, fetch_helper

__all__ = ["HelperBinary", "fetch", "fetch_helper"]
