"""Builds generation prompts for each pipeline stage."""

from __future__ import annotations

import json
from typing import Mapping, Sequence

from ..models import AnalysisMode, FileAnalysisResult, FileType
from .constants import (
    CUSTOM_TEMPLATE,
    DOCUMENTATION_TEMPLATE,
    KT_CHUNK_TEMPLATE,
    OVERVIEW_FILE_TEMPLATE,
    OVERVIEW_TEMPLATE,
    STANDARD_CHUNK_TEMPLATE,
)


class PromptBuilder:
    """Assembles mode-aware prompts from the templates in ``constants``."""

    def __init__(
        self,
        *,
        standard_template: str = STANDARD_CHUNK_TEMPLATE,
        kt_template: str = KT_CHUNK_TEMPLATE,
    ) -> None:
        self._chunk_templates = {
            AnalysisMode.STANDARD: standard_template,
            AnalysisMode.KT: kt_template,
        }

    def chunk_prompt(
        self,
        chunk: str,
        *,
        file_name: str,
        file_type: FileType,
        mode: AnalysisMode,
    ) -> str:
        template = self._chunk_templates[mode]
        return template.format(chunk=chunk, file_name=file_name, file_type=file_type.value)

    def overview_prompt(self, results: Sequence[FileAnalysisResult]) -> str:
        files = "\n".join(
            OVERVIEW_FILE_TEMPLATE.format(
                file_name=result.file_name,
                file_type=result.file_type.value,
                analysis=result.analysis,
            )
            for result in results
        )
        return OVERVIEW_TEMPLATE.format(files=files)

    def documentation_prompt(
        self, categorized: Mapping[str, Sequence[FileAnalysisResult]]
    ) -> str:
        serialisable = {
            category: [result.to_payload() for result in results]
            for category, results in categorized.items()
        }
        return DOCUMENTATION_TEMPLATE.format(
            categories=json.dumps(serialisable, indent=2, sort_keys=True)
        )

    @staticmethod
    def custom_prompt(file_name: str, content: str, prompt: str) -> str:
        return CUSTOM_TEMPLATE.format(file_name=file_name, content=content, prompt=prompt)


__all__ = ["PromptBuilder"]
