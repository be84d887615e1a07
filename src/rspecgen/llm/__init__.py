# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""LLM client implementations for RSpec synthesis."""

from rspecgen.llm.endpoint import EndpointClient
from rspecgen.llm.ollama import OllamaClient
from rspecgen.llm.openai_client import OPENAI_DEFAULT_MODEL, OpenAIClient

__all__ = ["EndpointClient", "OllamaClient", "OpenAIClient", "OPENAI_DEFAULT_MODEL"]
