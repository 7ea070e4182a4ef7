"""Prompt templates and builders for the analysis pipeline."""

from .builder import PromptBuilder

__all__ = ["PromptBuilder"]
