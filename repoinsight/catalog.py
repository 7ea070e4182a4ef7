"""Supported-file filtering and file type detection."""

from __future__ import annotations

from typing import Iterable, List

from .models import FileEntry, FileType

FILE_TYPES: dict[str, FileType] = {
    ".cls": FileType.APEX,
    ".trigger": FileType.APEX,
    ".page": FileType.VISUALFORCE,
    ".component": FileType.VISUALFORCE,
    ".js": FileType.JAVASCRIPT,
    ".html": FileType.LWC,
    ".cmp": FileType.AURA,
}

SUPPORTED_EXTENSIONS: tuple[str, ...] = tuple(FILE_TYPES)

METADATA_SUFFIX = "-meta.xml"


def file_type_for(file_name: str) -> FileType:
    """Map a file name to its source family; unknown extensions map to UNKNOWN."""
    lowered = file_name.lower()
    if "." not in lowered:
        return FileType.UNKNOWN
    extension = lowered[lowered.rindex(".") :]
    return FILE_TYPES.get(extension, FileType.UNKNOWN)


def is_supported(file_name: str) -> bool:
    lowered = file_name.lower()
    if lowered.endswith(METADATA_SUFFIX):
        return False
    return lowered.endswith(SUPPORTED_EXTENSIONS)


def filter_supported(entries: Iterable[FileEntry]) -> List[FileEntry]:
    """Keep supported source files, preserving listing order."""
    return [
        entry
        for entry in entries
        if entry.type != "dir" and is_supported(entry.name)
    ]


__all__ = [
    "FILE_TYPES",
    "METADATA_SUFFIX",
    "SUPPORTED_EXTENSIONS",
    "file_type_for",
    "filter_supported",
    "is_supported",
]
