"""Configuration loading for repoinsight (.repoinsight.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .models import AnalysisMode

CONFIG_FILENAME = ".repoinsight.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LLMConfig:
    """Generation endpoint settings."""

    endpoint: Optional[str] = None
    model: Optional[str] = None


@dataclass
class ModeSettings:
    """Budgets and timeouts that differ between standard and KT runs."""

    chunk_tokens: int
    max_output_tokens: int
    chunk_timeout: float
    summary_timeout: float
    cache_ttl: float


@dataclass
class RetryConfig:
    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 5.0


@dataclass
class ProcessingConfig:
    # Conservative: real tokenizers average closer to 4 characters per token.
    chars_per_token: float = 2.0
    chunk_concurrency: int = 1


@dataclass
class ProgressConfig:
    heartbeat_interval: float = 30.0


@dataclass
class SourceConfig:
    """GitHub content source settings."""

    api_url: str = "https://api.github.com"
    fetch_timeout: float = 30.0
    recursive: bool = False


@dataclass
class ServiceConfig:
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:5173"])


def _default_modes() -> Dict[AnalysisMode, ModeSettings]:
    return {
        AnalysisMode.STANDARD: ModeSettings(
            chunk_tokens=500,
            max_output_tokens=2000,
            chunk_timeout=60.0,
            summary_timeout=120.0,
            cache_ttl=3600.0,
        ),
        AnalysisMode.KT: ModeSettings(
            chunk_tokens=1000,
            max_output_tokens=4000,
            chunk_timeout=120.0,
            summary_timeout=240.0,
            cache_ttl=7200.0,
        ),
    }


@dataclass
class RepoInsightConfig:
    """Represents the settings defined in .repoinsight.yml."""

    root: Path
    llm: LLMConfig = field(default_factory=LLMConfig)
    modes: Dict[AnalysisMode, ModeSettings] = field(default_factory=_default_modes)
    retries: RetryConfig = field(default_factory=RetryConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    progress: ProgressConfig = field(default_factory=ProgressConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)

    def mode(self, mode: AnalysisMode) -> ModeSettings:
        return self.modes[mode]


def load_config(config_path: Path) -> RepoInsightConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return RepoInsightConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = RepoInsightConfig(root=root)

    llm_data = _as_dict(data.get("llm"))
    config.llm = LLMConfig(
        endpoint=_as_str(llm_data.get("endpoint")),
        model=_as_str(llm_data.get("model")),
    )

    modes_data = _as_dict(data.get("modes"))
    for mode, defaults in config.modes.items():
        overrides = _as_dict(modes_data.get(mode.value))
        if overrides:
            config.modes[mode] = _merge_mode(defaults, overrides)

    retry_data = _as_dict(data.get("retries"))
    if retry_data:
        config.retries = RetryConfig(
            max_attempts=_positive_int(retry_data.get("max_attempts"), "retries.max_attempts")
            or config.retries.max_attempts,
            initial_delay=_or_default(_as_float(retry_data.get("initial_delay")), config.retries.initial_delay),
            max_delay=_or_default(_as_float(retry_data.get("max_delay")), config.retries.max_delay),
        )

    processing_data = _as_dict(data.get("processing"))
    if processing_data:
        config.processing = ProcessingConfig(
            chars_per_token=_or_default(
                _as_float(processing_data.get("chars_per_token")),
                config.processing.chars_per_token,
            ),
            chunk_concurrency=_positive_int(
                processing_data.get("chunk_concurrency"), "processing.chunk_concurrency"
            )
            or config.processing.chunk_concurrency,
        )

    progress_data = _as_dict(data.get("progress"))
    if progress_data:
        config.progress = ProgressConfig(
            heartbeat_interval=_or_default(
                _as_float(progress_data.get("heartbeat_interval")),
                config.progress.heartbeat_interval,
            )
        )

    source_data = _as_dict(data.get("source"))
    if source_data:
        config.source = SourceConfig(
            api_url=_as_str(source_data.get("api_url")) or config.source.api_url,
            fetch_timeout=_or_default(
                _as_float(source_data.get("fetch_timeout")), config.source.fetch_timeout
            ),
            recursive=_or_default(_as_bool(source_data.get("recursive")), config.source.recursive),
        )

    service_data = _as_dict(data.get("service"))
    if service_data and "cors_origins" in service_data:
        config.service = ServiceConfig(cors_origins=_as_str_list(service_data.get("cors_origins")))

    return config


def _merge_mode(defaults: ModeSettings, overrides: Dict[str, Any]) -> ModeSettings:
    return ModeSettings(
        chunk_tokens=_positive_int(overrides.get("chunk_tokens"), "chunk_tokens") or defaults.chunk_tokens,
        max_output_tokens=_positive_int(overrides.get("max_output_tokens"), "max_output_tokens")
        or defaults.max_output_tokens,
        chunk_timeout=_or_default(_as_float(overrides.get("chunk_timeout")), defaults.chunk_timeout),
        summary_timeout=_or_default(_as_float(overrides.get("summary_timeout")), defaults.summary_timeout),
        cache_ttl=_or_default(_as_float(overrides.get("cache_ttl")), defaults.cache_ttl),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _or_default(value: Any, default: Any) -> Any:
    return default if value is None else value


def _positive_int(value: Any, name: str) -> Optional[int]:
    number = _as_int(value)
    if number is None:
        return None
    if number < 1:
        raise ConfigError(f"{name} must be a positive integer")
    return number


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "LLMConfig",
    "ModeSettings",
    "ProcessingConfig",
    "ProgressConfig",
    "RepoInsightConfig",
    "RetryConfig",
    "ServiceConfig",
    "SourceConfig",
    "load_config",
]
