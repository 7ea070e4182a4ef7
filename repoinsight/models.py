"""Core data models shared across repoinsight components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class FileType(str, Enum):
    """Source file families understood by the analysis prompts."""

    APEX = "apex"
    VISUALFORCE = "visualforce"
    JAVASCRIPT = "javascript"
    LWC = "lwc"
    AURA = "aura"
    UNKNOWN = "unknown"


class AnalysisMode(str, Enum):
    """Review flavour: defect review or knowledge transfer."""

    STANDARD = "standard"
    KT = "kt"


class FileStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"


@dataclass(frozen=True)
class FileEntry:
    """Entry returned by a repository file listing."""

    name: str
    path: str
    type: str = "file"
    download_url: Optional[str] = None


@dataclass(frozen=True)
class SourceFile:
    """A fetched repository file. Identity is its path within the repository."""

    name: str
    path: str
    content: str
    file_type: FileType = FileType.UNKNOWN


@dataclass(frozen=True)
class Chunk:
    """Line-bounded slice of a file's content."""

    sequence_index: int
    text: str


@dataclass
class ChunkResult:
    """Generated analysis for one chunk, or the failure that replaced it."""

    sequence_index: int
    text: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.text is not None


@dataclass(frozen=True)
class FileAnalysisResult:
    """Merged analysis for a single file."""

    file_name: str
    file_type: FileType
    analysis: str
    status: FileStatus
    mode: AnalysisMode

    def to_payload(self) -> Dict[str, Any]:
        return {
            "fileName": self.file_name,
            "fileType": self.file_type.value,
            "analysis": self.analysis,
            "status": self.status.value,
            "mode": self.mode.value,
        }


@dataclass(frozen=True)
class AnalysisReport:
    """Final result of a standard-mode run; the unit stored in the cache."""

    repository: str
    overview: str
    analyses: List[FileAnalysisResult]
    timestamp: str

    def to_payload(self) -> Dict[str, Any]:
        return {
            "repository": self.repository,
            "overview": self.overview,
            "analyses": [result.to_payload() for result in self.analyses],
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class KTReport:
    """Final result of a knowledge-transfer run."""

    repository: str
    categorized_results: Mapping[str, List[FileAnalysisResult]]
    documentation: Mapping[str, Any]
    timestamp: str
    analyses: List[FileAnalysisResult] = field(default_factory=list)

    def quick_start(self) -> Dict[str, Any]:
        workflows = self.documentation.get("workflows") or {}
        development = list(workflows.get("development") or [])
        return {
            "setup": self.documentation.get("setup"),
            "firstSteps": development[:3],
        }

    def to_payload(self) -> Dict[str, Any]:
        return {
            "repository": self.repository,
            "ktAnalysis": {
                category: [result.to_payload() for result in results]
                for category, results in self.categorized_results.items()
            },
            "documentation": dict(self.documentation),
            "quickStart": self.quick_start(),
            "timestamp": self.timestamp,
        }


__all__ = [
    "AnalysisMode",
    "AnalysisReport",
    "Chunk",
    "ChunkResult",
    "FileAnalysisResult",
    "FileEntry",
    "FileStatus",
    "FileType",
    "KTReport",
    "SourceFile",
]
