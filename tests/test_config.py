"""Tests for repoinsight.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from repoinsight.config import ConfigError, RepoInsightConfig, load_config
from repoinsight.models import AnalysisMode


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, RepoInsightConfig)
    assert config.root == tmp_path.resolve()
    assert config.llm.endpoint is None
    assert config.llm.model is None
    standard = config.mode(AnalysisMode.STANDARD)
    kt = config.mode(AnalysisMode.KT)
    assert (standard.chunk_tokens, standard.max_output_tokens) == (500, 2000)
    assert (standard.chunk_timeout, standard.summary_timeout, standard.cache_ttl) == (60.0, 120.0, 3600.0)
    assert (kt.chunk_tokens, kt.max_output_tokens) == (1000, 4000)
    assert (kt.chunk_timeout, kt.summary_timeout, kt.cache_ttl) == (120.0, 240.0, 7200.0)
    assert config.retries.max_attempts == 3
    assert config.processing.chars_per_token == pytest.approx(2.0)
    assert config.progress.heartbeat_interval == pytest.approx(30.0)
    assert config.source.api_url == "https://api.github.com"
    assert config.service.cors_origins == ["http://localhost:5173"]


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".repoinsight.yml"
    config_file.write_text(
        """
llm:
  endpoint: "http://gpu-box:11434/api/generate"
  model: "codellama:13b"
modes:
  standard:
    chunk_tokens: 800
    chunk_timeout: 90
  kt:
    cache_ttl: 600
retries:
  max_attempts: 5
  initial_delay: 0.5
processing:
  chars_per_token: 3.5
  chunk_concurrency: 4
progress:
  heartbeat_interval: 15
source:
  api_url: "https://ghe.example.test/api/v3"
  recursive: true
service:
  cors_origins:
    - "https://review.example.test"
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.llm.endpoint == "http://gpu-box:11434/api/generate"
    assert config.llm.model == "codellama:13b"
    standard = config.mode(AnalysisMode.STANDARD)
    assert standard.chunk_tokens == 800
    assert standard.chunk_timeout == pytest.approx(90.0)
    assert standard.max_output_tokens == 2000
    assert config.mode(AnalysisMode.KT).cache_ttl == pytest.approx(600.0)
    assert config.mode(AnalysisMode.KT).chunk_tokens == 1000
    assert config.retries.max_attempts == 5
    assert config.retries.initial_delay == pytest.approx(0.5)
    assert config.retries.max_delay == pytest.approx(5.0)
    assert config.processing.chars_per_token == pytest.approx(3.5)
    assert config.processing.chunk_concurrency == 4
    assert config.progress.heartbeat_interval == pytest.approx(15.0)
    assert config.source.api_url == "https://ghe.example.test/api/v3"
    assert config.source.recursive is True
    assert config.source.fetch_timeout == pytest.approx(30.0)
    assert config.service.cors_origins == ["https://review.example.test"]


def test_load_config_accepts_directory(tmp_path: Path) -> None:
    (tmp_path / ".repoinsight.yml").write_text("llm:\n  model: phi3\n", encoding="utf-8")

    assert load_config(tmp_path).llm.model == "phi3"


def test_empty_config_file_yields_defaults(tmp_path: Path) -> None:
    config_file = tmp_path / ".repoinsight.yml"
    config_file.write_text("\n", encoding="utf-8")

    assert load_config(config_file).retries.max_attempts == 3


def test_invalid_yaml_raises_config_error(tmp_path: Path) -> None:
    config_file = tmp_path / ".repoinsight.yml"
    config_file.write_text("llm: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(config_file)


def test_non_mapping_root_raises_config_error(tmp_path: Path) -> None:
    config_file = tmp_path / ".repoinsight.yml"
    config_file.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(config_file)


def test_non_positive_counts_are_rejected(tmp_path: Path) -> None:
    config_file = tmp_path / ".repoinsight.yml"
    config_file.write_text("retries:\n  max_attempts: 0\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(config_file)
