# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""CLI harness for spec generation and dataset harvesting."""

import argparse
import logging
import sys
from pathlib import Path
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler
from rich.style import Style
from rich.table import Table

from rspecgen.config import Conventions
from rspecgen.dataset import DatasetBuilder, DatasetError
from rspecgen.llm import EndpointClient, OllamaClient, OpenAIClient
from rspecgen.llm.endpoint import DEFAULT_TIMEOUT_SECONDS
from rspecgen.llm.openai_client import OPENAI_DEFAULT_MODEL
from rspecgen.llm_client import LLMClient
from rspecgen.persistence import (
    DEFAULT_DATASET_PATH,
    DatasetPersistenceError,
    JsonDatasetWriter,
)
from rspecgen.pipeline import GenerationPipeline, GenerationReport, Selection, ValidationError
from rspecgen.synthesis import SynthesisClient

logger = logging.getLogger(__name__)

PROVIDERS = ("endpoint", "ollama", "openai")


class ConsoleNotifier:
    """Print notifications to a Rich console."""

    def __init__(self, console: Console) -> None:
        self._console = console

    def info(self, message: str) -> None:
        self._console.print(message, markup=False, highlight=False, soft_wrap=True)

    def error(self, message: str) -> None:
        self._console.print(
            message, style="red", markup=False, highlight=False, soft_wrap=True
        )


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application logging with Rich handler.

    Args:
        level: Logging severity threshold.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser instance.
    """
    parser = argparse.ArgumentParser(prog="rspecgen")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser("generate")
    generate_parser.add_argument(
        "--file", required=True, help="Source file containing the selection."
    )
    selection_group = generate_parser.add_mutually_exclusive_group(required=True)
    selection_group.add_argument(
        "--selection", help="Selected text: a method name or a class name."
    )
    selection_group.add_argument(
        "--span", help="Selected character span as START:END offsets."
    )
    generate_parser.add_argument(
        "--provider", choices=PROVIDERS, default="endpoint", help="Inference provider."
    )
    generate_parser.add_argument(
        "--provider-url", required=True, help="Provider API endpoint URL."
    )
    generate_parser.add_argument(
        "--model", required=False, help="Provider model name (ollama, openai)."
    )
    generate_parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_SECONDS,
        help="Request timeout in seconds for the endpoint provider.",
    )
    _add_policy_arguments(generate_parser)

    dataset_parser = subparsers.add_parser("dataset")
    dataset_parser.add_argument(
        "--path", required=True, help="Rails project root directory."
    )
    dataset_parser.add_argument(
        "--limit", required=True, help="Maximum number of dataset entries."
    )
    dataset_parser.add_argument(
        "--output",
        required=False,
        help=f"Output JSON file (default: {DEFAULT_DATASET_PATH}).",
    )
    _add_policy_arguments(dataset_parser)
    return parser


def _add_policy_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--duplicate-policy",
        choices=("last_wins", "first_wins"),
        default="last_wins",
        help="Which describe block wins when two claim the same method.",
    )
    parser.add_argument(
        "--scaffold-policy",
        choices=("first_wins", "replace"),
        default="first_wins",
        help="Keep an existing spec file or re-scaffold it.",
    )


def run(argv: list[str], stdout: TextIO, stderr: TextIO) -> int:
    """Run CLI command.

    Args:
        argv: CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit:
        logger.warning(f"Argument parsing failed (argv={argv})")
        return 2
    conventions = Conventions(
        duplicate_policy=args.duplicate_policy,
        scaffold_policy=args.scaffold_policy,
    )
    if args.command == "generate":
        return _run_generate(
            args=args, conventions=conventions, stdout=stdout, stderr=stderr
        )
    if args.command == "dataset":
        return _run_dataset(
            args=args, conventions=conventions, stdout=stdout, stderr=stderr
        )

    logger.warning(f"Unsupported command (command={args.command})")
    stderr.write(f"Unsupported command: {args.command}\n")
    return 2


def _run_generate(
    args: argparse.Namespace,
    conventions: Conventions,
    stdout: TextIO,
    stderr: TextIO,
) -> int:
    """Run generate command.

    Args:
        args: Parsed CLI arguments.
        conventions: Tree conventions and policies.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.
    """
    source_path = Path(args.file).resolve()
    try:
        text = source_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning(f"Failed to read source file (path={source_path} error={exc})")
        stderr.write(f"Failed to read source file: {source_path}\n")
        return 2

    try:
        selection = build_selection(
            path=source_path, text=text, selection=args.selection, span=args.span
        )
        llm_client = build_llm_client(
            provider=args.provider,
            provider_url=args.provider_url,
            model=args.model,
            timeout=args.timeout,
        )
    except ValidationError as exc:
        logger.warning(f"Invalid generate arguments (error={exc})")
        stderr.write(f"{exc}\n")
        return 2

    notifier = ConsoleNotifier(
        Console(file=stderr, force_terminal=False, color_system="truecolor")
    )
    pipeline = GenerationPipeline(
        synthesis_client=SynthesisClient(llm_client=llm_client, notifier=notifier),
        notifier=notifier,
        conventions=conventions,
    )
    try:
        report = pipeline.run(selection)
    finally:
        llm_client.close()
    if report.error is not None:
        return 2
    _write_report(report=report, stdout=stdout)
    return 0


def _run_dataset(
    args: argparse.Namespace,
    conventions: Conventions,
    stdout: TextIO,
    stderr: TextIO,
) -> int:
    """Run dataset command.

    Args:
        args: Parsed CLI arguments.
        conventions: Tree conventions and policies.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.
    """
    try:
        limit = parse_limit(args.limit)
    except ValidationError as exc:
        logger.warning(f"Invalid limit argument (limit={args.limit} error={exc})")
        stderr.write(f"{exc}\n")
        return 2
    project_root = Path(args.path)
    if not project_root.is_dir():
        logger.warning(f"Path does not exist (path={project_root})")
        stderr.write(f"Path does not exist: {project_root}\n")
        return 2

    result = DatasetBuilder(conventions=conventions).build(
        project_root=project_root, limit=limit
    )
    _write_errors(errors=result.errors, stderr=stderr)
    output_path = Path(args.output) if args.output else DEFAULT_DATASET_PATH
    try:
        written = JsonDatasetWriter(output_path=output_path).write(result.entries)
    except DatasetPersistenceError as exc:
        stderr.write(f"Error generating dataset: {exc}\n")
        return 2

    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    _emit_summary(
        console=console,
        summary={
            "files_scanned": result.files_scanned,
            "entries": len(result.entries),
            "errors": len(result.errors),
            "limit_reached": result.limit_reached,
        },
    )
    console.print(
        f"Dataset saved to {written}", markup=False, highlight=False, soft_wrap=True
    )
    return 0


def build_selection(
    path: Path, text: str, selection: str | None, span: str | None
) -> Selection:
    """Build a selection from either selected text or an offset span.

    Args:
        path: Source file path.
        text: Source file text.
        selection: Selected text; its first occurrence in ``text`` is used.
        span: ``START:END`` character offsets.

    Returns:
        Selection value for the pipeline.

    Raises:
        ValidationError: If the selection is empty, absent or malformed.
    """
    if span is not None:
        start_raw, sep, end_raw = span.partition(":")
        if not sep or not start_raw.strip().isdigit() or not end_raw.strip().isdigit():
            raise ValidationError(f"Span must be START:END offsets, got '{span}'")
        return Selection(path=path, text=text, start=int(start_raw), end=int(end_raw))
    needle = (selection or "").strip()
    if not needle:
        raise ValidationError("No method or class selected.")
    start = text.find(needle)
    if start == -1:
        raise ValidationError(f"Selection '{needle}' not found in {path}")
    return Selection(path=path, text=text, start=start, end=start + len(needle))


def parse_limit(raw_limit: str) -> int:
    """Parse the dataset entry limit.

    Args:
        raw_limit: Limit as typed by the user.

    Returns:
        Positive entry limit.

    Raises:
        ValidationError: If the limit is not a positive integer.
    """
    value = raw_limit.strip()
    if not value.lstrip("-").isdigit():
        raise ValidationError("Limit must be a number")
    limit = int(value)
    if limit <= 0:
        raise ValidationError("Limit must be > 0")
    return limit


def build_llm_client(
    provider: str,
    provider_url: str,
    model: str | None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> LLMClient:
    """Create the configured LLM client.

    Args:
        provider: One of ``endpoint``, ``ollama``, ``openai``.
        provider_url: Provider endpoint URL.
        model: Model name; required for ``ollama``.
        timeout: Request timeout for the ``endpoint`` provider.

    Returns:
        Configured LLM client.

    Raises:
        ValidationError: If a required model name is missing.
    """
    if provider == "ollama":
        if not model:
            raise ValidationError("--model is required for the ollama provider")
        return OllamaClient(provider_url=provider_url, model=model)
    if provider == "openai":
        return OpenAIClient(provider_url=provider_url, model=model or OPENAI_DEFAULT_MODEL)
    return EndpointClient(provider_url=provider_url, timeout=timeout)


def _emit_summary(console: Console, summary: dict[str, object]) -> None:
    fields = " ".join(f"{key}={value}" for key, value in summary.items())
    console.print(fields, markup=False, highlight=False, soft_wrap=True)


def _write_errors(errors: list[DatasetError], stderr: TextIO) -> None:
    """Write dataset errors to stderr.

    Args:
        errors: Recoverable per-file errors.
        stderr: Standard error stream.
    """
    for error in errors:
        stderr.write(f"dataset_error: {error}\n")


def _write_report(report: GenerationReport, stdout: TextIO) -> None:
    """Write per-method outcomes as a table.

    Args:
        report: Generation report.
        stdout: Standard output stream.
    """
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    console.rule(f"{report.test_path}", style=Style(color="cyan"), characters="-")
    table = Table(show_header=True, show_lines=True, expand=True)
    table.add_column("method", ratio=2, overflow="fold")
    table.add_column("status", ratio=1, overflow="fold")
    table.add_column("detail", ratio=4, overflow="fold")
    for outcome in report.outcomes:
        table.add_row(outcome.name, outcome.status, outcome.detail or "")
    console.print(table)
    _emit_summary(
        console=console,
        summary={
            "scaffolded": report.scaffolded,
            "inserted": report.count("inserted"),
            "covered": report.count("covered"),
            "no_synthesis": report.count("no_synthesis"),
            "failed": report.count("failed"),
            "not_found": report.count("not_found"),
        },
    )


def main() -> None:
    """Run the CLI application and exit."""
    configure_logging()
    exit_code = run(sys.argv[1:], stdout=sys.stdout, stderr=sys.stderr)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
