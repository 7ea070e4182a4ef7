"""CLI entrypoints for repoinsight commands."""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Any, Optional

import httpx

from .config import ConfigError, RepoInsightConfig, load_config
from .errors import AnalysisError
from .logging import configure_logging
from .models import AnalysisMode
from .orchestrator import build_orchestrator
from .progress import COMPLETE, ERROR, PROGRESS, ProgressChannel, ProgressEvent
from .sources import GitHubContentSource


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    kwargs["default"] = argparse.SUPPRESS if suppress_default else False
    parser.add_argument("-v", "--verbose", **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repoinsight",
        description="Review repository source files with a remote language model.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        default=".",
        help="Path to .repoinsight.yml or the directory holding it.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze a GitHub repository and stream progress to the terminal.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    analyze_parser.add_argument("repository", help="Repository in owner/name form.")
    analyze_parser.add_argument(
        "--mode",
        choices=[mode.value for mode in AnalysisMode],
        default=AnalysisMode.STANDARD.value,
        help="standard for a code review, kt for onboarding documentation.",
    )
    analyze_parser.add_argument(
        "--token",
        default=None,
        help="GitHub token (defaults to the GITHUB_TOKEN environment variable).",
    )
    analyze_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the final report as JSON to this path.",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=5000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for repoinsight commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    try:
        config = load_config(Path(args.config))
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "analyze":
        token = args.token or os.getenv("GITHUB_TOKEN")
        authorization = f"Bearer {token}" if token else None
        exit_code = asyncio.run(
            _analyze(
                config,
                args.repository,
                AnalysisMode(args.mode),
                authorization=authorization,
                output=args.output,
            )
        )
        if exit_code:
            parser.exit(exit_code, "repoinsight analyze failed. Run with --verbose for more details.\n")
    elif args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


async def _analyze(
    config: RepoInsightConfig,
    repository_id: str,
    mode: AnalysisMode,
    *,
    authorization: Optional[str],
    output: Optional[Path],
) -> int:
    async with httpx.AsyncClient() as http_client:
        orchestrator = build_orchestrator(config, http_client=http_client)
        source = GitHubContentSource.from_config(
            config.source, authorization=authorization, http_client=http_client
        )
        channel = ProgressChannel(heartbeat_interval=config.progress.heartbeat_interval)

        async def _run() -> None:
            try:
                await orchestrator.run(repository_id, mode, source, channel)
            finally:
                channel.close()

        task = asyncio.create_task(_run())
        async for event in channel.events():
            _print_event(event)
            if event.event == COMPLETE and output is not None:
                output.write_text(json.dumps(event.data, indent=2), encoding="utf-8")
                print(f"Report written to {output}")
        try:
            await task
        except AnalysisError:
            return 1
    return 0


def _print_event(event: ProgressEvent) -> None:
    data: Any = event.data
    if event.event == PROGRESS:
        print(f"[done] {data['file']}")
    elif event.event == ERROR:
        if isinstance(data, dict):
            target = data.get("file")
            message = data.get("message") or data.get("error")
        else:
            target, message = None, data
        prefix = f"[error] {target}: " if target else "[error] "
        print(f"{prefix}{message}", file=sys.stderr)
    elif event.event == COMPLETE:
        summary = data.get("overview")
        if summary is None:
            summary = (data.get("documentation") or {}).get("generatedDocs", "")
        print(summary)
    else:
        print(data)


if __name__ == "__main__":
    main(sys.argv[1:])
