"""Cache adapters."""

from ldpm.adapters.cache.file_cache import FileCache
from ldpm.adapters.cache.null_cache import NullCache


__all__ = ["FileCache", "NullCache"]
