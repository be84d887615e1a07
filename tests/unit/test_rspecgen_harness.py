# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for the rspecgen CLI harness."""

import io
import json
import re
from pathlib import Path

import pytest

from cli import rspecgen_harness
from cli.rspecgen_harness import build_llm_client, build_selection, parse_limit, run
from rspecgen import template
from rspecgen.llm import EndpointClient, OpenAIClient
from rspecgen.pipeline import ValidationError


def _strip_ansi(text: str) -> str:
    return re.sub(r"\x1b\[[0-9;]*m", "", text)


class _FixedLLMClient:
    def __init__(self) -> None:
        self.closed = False

    def generate_test(self, code: str) -> str:
        return template.render(code) + "```ruby\ndescribe '#charge' do\nend\n```"

    def close(self) -> None:
        self.closed = True


def test_ph8_cli_001_requires_a_command() -> None:
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run([], stdout=stdout, stderr=stderr)

    assert exit_code == 2


@pytest.mark.parametrize(
    ("raw_limit", "message"),
    [("ten", "Limit must be a number"), ("0", "Limit must be > 0"), ("-3", "Limit must be > 0")],
)
def test_ph8_cli_002_dataset_rejects_invalid_limits(
    tmp_path: Path, raw_limit: str, message: str
) -> None:
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        ["dataset", "--path", str(tmp_path), "--limit", raw_limit],
        stdout=stdout,
        stderr=stderr,
    )

    assert exit_code == 2
    assert message in stderr.getvalue()


def test_ph8_cli_003_dataset_fails_when_path_is_missing(tmp_path: Path) -> None:
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        ["dataset", "--path", str(tmp_path / "missing"), "--limit", "5"],
        stdout=stdout,
        stderr=stderr,
    )

    assert exit_code == 2
    assert "Path does not exist" in stderr.getvalue()


def test_ph8_cli_004_dataset_writes_json_and_summary(
    rails_root: Path, tmp_path: Path, write_file
) -> None:
    write_file(
        rails_root / "app" / "models" / "user.rb",
        "class User\n  def admin?\n    false\n  end\nend\n",
    )
    write_file(
        rails_root / "spec" / "models" / "user_spec.rb",
        "RSpec.describe User do\n  describe '#admin?' do\n  end\nend\n",
    )
    output_path = tmp_path / "out" / "dataset.json"
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        [
            "dataset",
            "--path",
            str(rails_root),
            "--limit",
            "10",
            "--output",
            str(output_path),
        ],
        stdout=stdout,
        stderr=stderr,
    )

    assert exit_code == 0
    rendered = _strip_ansi(stdout.getvalue())
    assert "files_scanned=1 entries=1 errors=0 limit_reached=False" in rendered
    assert f"Dataset saved to {output_path}" in rendered
    payload = json.loads(output_path.read_text(encoding="utf-8"))
    assert [item["output"] for item in payload] == ["describe '#admin?' do\n  end"]


def test_ph8_cli_005_generate_runs_pipeline_and_prints_summary(
    rails_root: Path, write_file, monkeypatch: pytest.MonkeyPatch
) -> None:
    source = write_file(
        rails_root / "app" / "services" / "billing.rb",
        "class Billing\n  def charge(amount)\n    amount\n  end\nend\n",
    )
    llm_client = _FixedLLMClient()
    monkeypatch.setattr(
        rspecgen_harness, "build_llm_client", lambda **kwargs: llm_client
    )
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        [
            "generate",
            "--file",
            str(source),
            "--selection",
            "charge",
            "--provider-url",
            "http://inference.test/",
        ],
        stdout=stdout,
        stderr=stderr,
    )

    assert exit_code == 0
    rendered = _strip_ansi(stdout.getvalue())
    assert (
        "scaffolded=True inserted=1 covered=0 no_synthesis=0 failed=0 not_found=0"
        in rendered
    )
    assert "RSpec added for method 'charge'" in _strip_ansi(stderr.getvalue())
    spec_text = (rails_root / "spec" / "services" / "billing_spec.rb").read_text(
        encoding="utf-8"
    )
    assert "describe '#charge' do\nend\nend\n" in spec_text
    assert llm_client.closed is True


def test_ph8_cli_006_generate_rejects_missing_file_and_bad_span(
    rails_root: Path, write_file
) -> None:
    source = write_file(rails_root / "app" / "services" / "billing.rb", "class Billing\nend\n")
    stderr = io.StringIO()

    missing_exit = run(
        [
            "generate",
            "--file",
            str(rails_root / "app" / "absent.rb"),
            "--selection",
            "Absent",
            "--provider-url",
            "http://inference.test/",
        ],
        stdout=io.StringIO(),
        stderr=stderr,
    )
    span_exit = run(
        [
            "generate",
            "--file",
            str(source),
            "--span",
            "six",
            "--provider-url",
            "http://inference.test/",
        ],
        stdout=io.StringIO(),
        stderr=stderr,
    )

    assert missing_exit == 2
    assert span_exit == 2
    assert "Failed to read source file" in stderr.getvalue()
    assert "Span must be START:END offsets" in stderr.getvalue()
    assert not (rails_root / "spec").exists()


def test_ph8_cli_007_build_selection_locates_text_and_spans(tmp_path: Path) -> None:
    path = tmp_path / "billing.rb"
    text = "class Billing\n  def charge\n  end\nend\n"

    by_text = build_selection(path=path, text=text, selection=" charge ", span=None)
    by_span = build_selection(path=path, text=text, selection=None, span="6:13")

    assert (by_text.start, by_text.end) == (20, 26)
    assert by_span.selected_text == "Billing"
    with pytest.raises(ValidationError, match="No method or class selected"):
        build_selection(path=path, text=text, selection="   ", span=None)
    with pytest.raises(ValidationError, match="not found"):
        build_selection(path=path, text=text, selection="refund", span=None)


def test_ph8_cli_008_parse_limit_and_provider_selection() -> None:
    assert parse_limit(" 25 ") == 25
    assert isinstance(
        build_llm_client(provider="endpoint", provider_url="http://x.test/", model=None),
        EndpointClient,
    )
    assert isinstance(
        build_llm_client(provider="openai", provider_url="openai", model=None),
        OpenAIClient,
    )
    with pytest.raises(ValidationError, match="--model is required"):
        build_llm_client(provider="ollama", provider_url="http://localhost:11434", model=None)
