# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Extractor package for Ruby sources and RSpec files."""

from rspecgen.extractors.ruby import RSpecBlockExtractor, RubyMethodExtractor

__all__ = ["RSpecBlockExtractor", "RubyMethodExtractor"]
