"""Error taxonomy for the analysis pipeline."""

from __future__ import annotations

from typing import Optional


class AnalysisError(RuntimeError):
    """Base class for failures raised by the analysis pipeline."""

    error_type = "system_error"


class InvalidInput(AnalysisError):
    """Raised when file content cannot be chunked or processed."""

    error_type = "invalid_input"


class GenerationError(AnalysisError):
    """Base class for failures of a single generation call."""

    error_type = "generation_error"


class GenerationTimeout(GenerationError):
    """Raised when a generation call exceeds its client-side deadline."""

    error_type = "timeout"

    def __init__(self, message: str, *, timeout: float | None = None) -> None:
        super().__init__(message)
        self.timeout = timeout


class TransportError(GenerationError):
    """Raised on connection failures, non-2xx responses, or malformed bodies."""

    error_type = "transport_error"

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SourceError(AnalysisError):
    """Raised when the content source cannot list or fetch repository files."""

    error_type = "system_error"

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NoSupportedFiles(AnalysisError):
    """Raised when a run has no analyzable files left."""

    error_type = "no_supported_files"


class OrchestrationError(AnalysisError):
    """Raised for uncaught failures while orchestrating or summarizing a run."""

    error_type = "system_error"


class RunCancelled(AnalysisError):
    """Raised at a suspension point once the progress consumer has gone away."""

    error_type = "cancelled"


__all__ = [
    "AnalysisError",
    "GenerationError",
    "GenerationTimeout",
    "InvalidInput",
    "NoSupportedFiles",
    "OrchestrationError",
    "RunCancelled",
    "SourceError",
    "TransportError",
]
