"""Generation endpoint client and retry helpers."""

from .client import GenerationClient, GenerationRequest
from .retry import backoff_delay, with_retry

__all__ = ["GenerationClient", "GenerationRequest", "backoff_delay", "with_retry"]
