"""Knowledge-transfer bucketing and documentation scaffolding."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

from .models import FileAnalysisResult

CATEGORY_KEYWORDS: Mapping[str, tuple[str, ...]] = {
    "setup": ("configuration", "environment", "dependency"),
    "workflow": ("process", "flow", "pipeline"),
    "business": ("rule", "validation", "calculation"),
    "integration": ("api", "service", "connection"),
}


def categorize(
    results: Sequence[FileAnalysisResult],
    keywords: Mapping[str, Sequence[str]] = CATEGORY_KEYWORDS,
) -> Dict[str, List[FileAnalysisResult]]:
    """Bucket results by case-insensitive keyword hits in their analysis text.

    Every category is present in the output. A result can land in several
    buckets, or in none. Bucket order follows ``results``.
    """
    buckets: Dict[str, List[FileAnalysisResult]] = {category: [] for category in keywords}
    for result in results:
        text = result.analysis.lower()
        for category, words in keywords.items():
            if any(word in text for word in words):
                buckets[category].append(result)
    return buckets


def documentation_template() -> Dict[str, Any]:
    return {
        "setup": {"environment": [], "dependencies": [], "configurations": []},
        "workflows": {"development": [], "testing": [], "deployment": []},
        "architecture": {"components": [], "integrations": [], "dataFlow": []},
        "businessLogic": {"processes": [], "rules": [], "validations": []},
    }


def build_documentation(generated: str) -> Dict[str, Any]:
    """Attach generated onboarding text to the documentation skeleton."""
    documentation = documentation_template()
    documentation["generatedDocs"] = generated
    return documentation


__all__ = [
    "CATEGORY_KEYWORDS",
    "build_documentation",
    "categorize",
    "documentation_template",
]
