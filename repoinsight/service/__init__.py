"""HTTP service mode for repoinsight."""

from .app import ServiceComponents, create_app, run_service

__all__ = ["ServiceComponents", "create_app", "run_service"]
