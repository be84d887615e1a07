# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
import json
from types import SimpleNamespace

import httpx
import pytest

from rspecgen import template
from rspecgen.llm import EndpointClient, OllamaClient, OpenAIClient
from rspecgen.llm.openai_client import _base_url
from rspecgen.llm_client import SynthesisError
from rspecgen.synthesis import SynthesisClient, extract_response, normalize_subject

FENCED_REPLY = "\n".join(
    [
        template.render("def charge(amount)\n  amount\nend"),
        "```ruby",
        "describe '#charge' do",
        "  it { expect(described_class.charge(1)).to eq(1) }",
        "end",
        "```",
        "<|end_of_text|>",
    ]
)


class _RecordingNotifier:
    def __init__(self) -> None:
        self.infos: list[str] = []
        self.errors: list[str] = []

    def info(self, message: str) -> None:
        self.infos.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


class _StaticLLMClient:
    def __init__(self, reply: str | None = None, error: str | None = None) -> None:
        self._reply = reply
        self._error = error
        self.calls: list[str] = []

    def generate_test(self, code: str) -> str:
        self.calls.append(code)
        if self._error is not None:
            raise SynthesisError(self._error)
        return self._reply or ""


def test_ph4_syn_001_extract_prefers_fenced_block_after_response_marker() -> None:
    assert extract_response(FENCED_REPLY) == "\n".join(
        [
            "describe '#charge' do",
            "  it { expect(described_class.charge(1)).to eq(1) }",
            "end",
        ]
    )


def test_ph4_syn_002_extract_falls_back_to_text_up_to_end_marker() -> None:
    reply = "### Response:\ndescribe '#a' do\nend<|end_of_text|>ignored"

    assert extract_response(reply) == "describe '#a' do\nend"
    assert extract_response("### Response:\nfoo\n### Note\nbar") == "foo"
    assert extract_response("### Response:\n  tail to end  \n") == "tail to end"


def test_ph4_syn_003_extract_returns_none_without_usable_response() -> None:
    assert extract_response("no marker here") is None
    assert extract_response("### Response:\n   <|end_of_text|>") is None


def test_ph4_syn_004_normalize_subject_instantiates_described_class_once() -> None:
    text = "described_class.call\ndescribed_class.new(1)\ndescribed_classes"

    assert normalize_subject(text) == (
        "described_class.new.call\ndescribed_class.new(1)\ndescribed_classes"
    )
    assert normalize_subject(normalize_subject(text)) == normalize_subject(text)


def test_ph4_syn_005_synthesize_sends_body_verbatim_and_normalizes() -> None:
    llm_client = _StaticLLMClient(reply=FENCED_REPLY)
    body = "def charge(amount)\n  amount\nend"

    result = SynthesisClient(llm_client=llm_client).synthesize(body)

    assert llm_client.calls == [body]
    assert result is not None
    assert "described_class.new.charge(1)" in result


def test_ph4_syn_006_transport_failure_is_notified_and_returns_none() -> None:
    notifier = _RecordingNotifier()
    client = SynthesisClient(
        llm_client=_StaticLLMClient(error="connection refused"), notifier=notifier
    )

    assert client.synthesize("def a\nend") is None
    assert len(notifier.errors) == 1
    assert "connection refused" in notifier.errors[0]


def test_ph4_syn_007_malformed_reply_returns_none_without_notification() -> None:
    notifier = _RecordingNotifier()
    client = SynthesisClient(
        llm_client=_StaticLLMClient(reply="I cannot help with that."),
        notifier=notifier,
    )

    assert client.synthesize("def a\nend") is None
    assert notifier.errors == []


def test_ph4_llm_001_endpoint_client_posts_input_and_reads_result() -> None:
    seen: list[dict[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"result": FENCED_REPLY})

    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    client = EndpointClient(provider_url="http://inference.test/", client=http_client)

    assert client.generate_test("def a\nend") == FENCED_REPLY
    assert seen == [{"input": "def a\nend"}]


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "boom"}),
        httpx.Response(200, content=b"not json"),
        httpx.Response(200, json={"output": "missing result"}),
    ],
)
def test_ph4_llm_002_endpoint_client_raises_on_bad_replies(
    response: httpx.Response,
) -> None:
    http_client = httpx.Client(transport=httpx.MockTransport(lambda request: response))
    client = EndpointClient(provider_url="http://inference.test/", client=http_client)

    with pytest.raises(SynthesisError):
        client.generate_test("def a\nend")


def test_ph4_llm_003_endpoint_client_wraps_connection_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    client = EndpointClient(provider_url="http://inference.test/", client=http_client)

    with pytest.raises(SynthesisError, match="refused"):
        client.generate_test("def a\nend")


def test_ph4_llm_004_ollama_client_returns_prompt_plus_completion() -> None:
    calls: list[dict[str, object]] = []

    def generate(**kwargs: object) -> dict[str, str]:
        calls.append(kwargs)
        return {"response": "```ruby\ndescribe '#a' do\nend\n```"}

    client = OllamaClient(provider_url="http://localhost:11434", model="rspec-coder")
    client._client = SimpleNamespace(generate=generate)  # type: ignore[assignment]

    transcript = client.generate_test("def a\nend")

    assert transcript.startswith(template.render("def a\nend"))
    assert extract_response(transcript) == "describe '#a' do\nend"
    assert calls[0]["model"] == "rspec-coder"
    assert calls[0]["raw"] is True


def test_ph4_llm_005_openai_client_returns_prompt_plus_output_text() -> None:
    def create(**kwargs: object) -> SimpleNamespace:
        return SimpleNamespace(output_text="```ruby\ndescribe '#a' do\nend\n```")

    client = OpenAIClient(provider_url="openai")
    client._client = SimpleNamespace(  # type: ignore[assignment]
        responses=SimpleNamespace(create=create)
    )

    transcript = client.generate_test("def a\nend")

    assert extract_response(transcript) == "describe '#a' do\nend"


def test_ph4_llm_006_openai_client_rejects_empty_output() -> None:
    client = OpenAIClient(provider_url="openai")
    client._client = SimpleNamespace(  # type: ignore[assignment]
        responses=SimpleNamespace(create=lambda **kwargs: SimpleNamespace(output_text=""))
    )

    with pytest.raises(SynthesisError):
        client.generate_test("def a\nend")


def test_ph4_llm_007_openai_base_url_keeps_sdk_default_for_openai_hosts() -> None:
    assert _base_url("openai") is None
    assert _base_url("https://api.openai.com/v1/") is None
    assert _base_url("localhost:8000/v1/") == "https://localhost:8000/v1"
    assert _base_url("http://vllm.internal:9000/v1") == "http://vllm.internal:9000/v1"
    with pytest.raises(ValueError):
        _base_url("   ")


def test_ph4_llm_008_endpoint_client_closes_only_its_own_http_client() -> None:
    injected = httpx.Client(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={}))
    )
    with EndpointClient(provider_url="http://inference.test/", client=injected):
        pass
    owned = EndpointClient(provider_url="http://inference.test/")
    owned.close()

    assert injected.is_closed is False
    assert owned._client.is_closed is True
