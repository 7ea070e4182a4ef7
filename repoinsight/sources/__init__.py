"""Repository content sources."""

from .github import ContentSource, GitHubContentSource

__all__ = ["ContentSource", "GitHubContentSource"]
