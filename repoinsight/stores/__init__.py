"""Storage backends for analysis results."""

from .result_cache import ResultCache, cache_key

__all__ = ["ResultCache", "cache_key"]
