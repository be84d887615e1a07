# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Ruby method and RSpec block extractors.

Method boundaries come from a flat scan: a method runs from its ``def`` token
to the next ``def`` token. Methods containing nested ``def`` constructs are
therefore cut short at the inner definition. This is a known limitation of the
scan, not something to be patched by guessing intent.
"""

import logging
import re

import Levenshtein

from rspecgen.config import DuplicatePolicy
from rspecgen.coverage import (
    IDENTITY_PATTERN,
    SELECTOR_PREFIX_PATTERN,
    normalize_identity,
)
from rspecgen.extractor import MethodNotFoundError, MethodRecord, TestBlockRecord

logger = logging.getLogger(__name__)

SUGGESTION_THRESHOLD = 0.75

_DEF_TOKEN = re.compile(r"\bdef\b")
_DEFINITION = re.compile(
    rf"def\s+(?P<receiver>self\.)?(?P<name>{IDENTITY_PATTERN})(?![\w?!=])"
)
_TRAILING_END = re.compile(r"\bend\s*$")

_DESCRIBE = re.compile(
    r"^[ \t]*(?P<declaration>(?:RSpec\.)?describe)\s*\(?\s*(?P<quote>['\"])"
    rf"(?P<label>{SELECTOR_PREFIX_PATTERN}?{IDENTITY_PATTERN})"
    r"(?P=quote)(?=[^\n]*\bdo\b)",
    re.IGNORECASE | re.MULTILINE,
)
_BLOCK_TOKEN = re.compile(
    r"(?<![.:\w])(?P<word>do|end)\b"
    r"|^[ \t]*(?P<opener>if|unless|while|until|for|case|begin|def|class|module)\b"
    r"|[=(,][ \t]*(?P<value_opener>if|unless|while|until|case|begin)\b",
    re.MULTILINE,
)
_LOOP_KEYWORDS = frozenset({"while", "until", "for"})

# Characters after which ``/``, ``%`` and ``<<`` open a literal rather than
# acting as operators.
_LITERAL_PRECEDERS = frozenset("(,=!~|&{[;:?+-*<>")
_PERCENT_LITERAL = re.compile(r"%[qQwWiIrsx]?(?P<open>[(\[{<|!/^])")
_HEREDOC = re.compile(r"<<[~-]?(?P<quote>['\"`]?)(?P<tag>[A-Za-z_]\w*)(?P=quote)")
_CLOSING_DELIMITERS = {"(": ")", "[": "]", "{": "}", "<": ">"}


class RubyMethodExtractor:
    """Locate Ruby method definitions and isolate their bodies."""

    def extract(self, method_name: str, source_text: str) -> MethodRecord:
        """Return the first definition of ``method_name``.

        The body runs from the ``def`` token up to, not including, the next
        ``def`` token, or to the end of the text when none follows. Trailing
        whitespace is dropped.

        Args:
            method_name: Bare method name, e.g. ``charge`` or ``valid?``.
            source_text: Ruby source text.

        Returns:
            Extracted method record.

        Raises:
            MethodNotFoundError: If the method is not defined in the text.
        """
        pattern = re.compile(
            rf"\bdef\s+(?P<receiver>self\.)?{re.escape(method_name)}(?![\w?!=])"
        )
        match = pattern.search(source_text)
        if match is None:
            candidates = list(self.extract_all(source_text))
            raise MethodNotFoundError(
                method_name, suggestions=_suggest(method_name, candidates)
            )
        next_def = _DEF_TOKEN.search(source_text, match.end())
        end = next_def.start() if next_def else len(source_text)
        return MethodRecord(
            name=method_name,
            body=source_text[match.start() : end].rstrip(),
            singleton=match.group("receiver") is not None,
        )

    def extract_all(self, source_text: str) -> dict[str, MethodRecord]:
        """Return every named method in declaration order.

        Boundaries follow the next-``def`` rule of :meth:`extract`. The last
        definition has no following token, so it closes at the first ``end``
        line sharing the definition's indentation (a top-level ``end`` for an
        unindented method); without one it runs to the end of the text. The
        first definition of a repeated name wins.

        Args:
            source_text: Ruby source text.

        Returns:
            Mapping of method name to record.
        """
        tokens = [token.start() for token in _DEF_TOKEN.finditer(source_text)]
        methods: dict[str, MethodRecord] = {}
        for position, start in enumerate(tokens):
            match = _DEFINITION.match(source_text, start)
            if match is None:
                logger.debug(f"Skipping unnamed definition (offset={start})")
                continue
            if position + 1 < len(tokens):
                end = tokens[position + 1]
            else:
                end = _closing_offset(source_text, start, match.end())
            name = match.group("name")
            if name in methods:
                continue
            methods[name] = MethodRecord(
                name=name,
                body=source_text[start:end].rstrip(),
                singleton=match.group("receiver") is not None,
            )
        return methods


class RSpecBlockExtractor:
    """Index ``describe`` blocks by the method identity they claim to test."""

    def __init__(self, duplicate_policy: DuplicatePolicy = "last_wins") -> None:
        """Initialize extractor.

        Args:
            duplicate_policy: Whether the later or the earlier of two blocks
                claiming one identity is kept.
        """
        self._duplicate_policy = duplicate_policy

    def index(self, test_text: str) -> dict[str, TestBlockRecord]:
        """Index recognized describe blocks.

        A block is recognized when a line opens with ``describe`` taking a
        quoted label of the form ``[#|.|VERB ]identity``. Its text spans from
        ``describe`` to the matching ``end``, paired with a depth counter over
        block openers and ``end`` outside literals and comments.

        Args:
            test_text: Spec file text.

        Returns:
            Blocks keyed by normalized identity, in first-seen order.
        """
        masked = _mask_literals(test_text)
        blocks: dict[str, TestBlockRecord] = {}
        for match in _DESCRIBE.finditer(test_text):
            start = match.start("declaration")
            label = match.group("label")
            identity = normalize_identity(label)
            if identity is None:
                continue
            record = TestBlockRecord(
                label=label,
                identity=identity,
                text=test_text[start : _block_end(masked, start)],
            )
            if self._duplicate_policy == "first_wins":
                blocks.setdefault(identity, record)
            else:
                blocks[identity] = record
        return blocks


def _closing_offset(source_text: str, def_start: int, name_end: int) -> int:
    """Find where a definition with no following ``def`` token ends."""
    line_start = source_text.rfind("\n", 0, def_start) + 1
    line_end = source_text.find("\n", name_end)
    if line_end == -1:
        line_end = len(source_text)
    if _TRAILING_END.search(source_text, name_end, line_end):
        return line_end
    line_prefix = source_text[line_start:def_start]
    indent = line_prefix[: len(line_prefix) - len(line_prefix.lstrip())]
    closing = re.compile(rf"^{re.escape(indent)}end\b[^\n]*", re.MULTILINE)
    match = closing.search(source_text, line_end)
    return match.end() if match else len(source_text)


def _block_end(masked: str, start: int) -> int:
    """Return the offset just past the ``end`` closing the block at ``start``.

    The optional ``do`` of a ``while``/``until``/``for`` loop belongs to the
    loop keyword and is not counted again.
    """
    depth = 0
    loop_line_end = -1
    for token in _BLOCK_TOKEN.finditer(masked, start):
        word = token.group("word")
        if word == "end":
            depth -= 1
            if depth == 0:
                return token.end()
            continue
        if word == "do" and token.start() < loop_line_end:
            loop_line_end = -1
            continue
        if (token.group("opener") or token.group("value_opener")) in _LOOP_KEYWORDS:
            loop_line_end = _line_end(masked, token.end())
        depth += 1
    logger.debug(f"Unbalanced describe block; capturing to end of text (offset={start})")
    return len(masked)


def _mask_literals(text: str) -> str:
    """Blank out literal contents and comments, preserving offsets.

    Quoted strings, regexp and ``%`` literals, character literals, heredoc
    bodies, ``#`` comments and ``=begin``/``=end`` documents are blanked;
    delimiters are kept.
    """
    chars = list(text)
    heredoc_tags: list[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char == "\n":
            index += 1
            if heredoc_tags:
                index = _mask_heredoc_bodies(text, chars, index, heredoc_tags)
                heredoc_tags.clear()
            continue
        if (index == 0 or text[index - 1] == "\n") and text.startswith("=begin", index):
            index = _mask_embedded_document(text, chars, index)
            continue
        if char == "#":
            line_end = _line_end(text, index)
            _blank(chars, index, line_end)
            index = line_end
            continue
        if char in "'\"`":
            index = _mask_delimited(text, chars, index + 1, char, char)
            continue
        if char == "?" and _is_character_literal(text, index):
            chars[index + 1] = " "
            index += 2
            continue
        if char in "/%<" and _literal_allowed(text, index):
            if char == "/":
                index = _mask_delimited(text, chars, index + 1, "/", "/")
                continue
            percent = _PERCENT_LITERAL.match(text, index)
            if percent is not None:
                opening = percent.group("open")
                closing = _CLOSING_DELIMITERS.get(opening, opening)
                index = _mask_delimited(text, chars, percent.end(), opening, closing)
                continue
            heredoc = _HEREDOC.match(text, index)
            if heredoc is not None:
                heredoc_tags.append(heredoc.group("tag"))
                index = heredoc.end()
                continue
        index += 1
    return "".join(chars)


def _is_character_literal(text: str, index: int) -> bool:
    """Tell whether ``?`` at ``index`` opens a literal such as ``?'``."""
    return text[index + 1 : index + 2] in ("'", '"', "`", "#", "/", "%") and not (
        _is_word(text, index - 1)
    )


def _literal_allowed(text: str, index: int) -> bool:
    """Tell whether ``/``, ``%`` or ``<<`` at ``index`` opens a literal.

    A literal opens at line start, after an operator or opening bracket, or
    after a spaced word when no space follows (``match /x/``); otherwise the
    character is an operator (``total / 2``).
    """
    cursor = index - 1
    while cursor >= 0 and text[cursor] in " \t":
        cursor -= 1
    if cursor < 0 or text[cursor] == "\n" or text[cursor] in _LITERAL_PRECEDERS:
        return True
    following = text[index + 1 : index + 2]
    return (
        cursor < index - 1
        and _is_word(text, cursor)
        and following not in ("", " ", "\t", "\n", "=")
    )


def _mask_delimited(
    text: str, chars: list[str], index: int, opening: str, closing: str
) -> int:
    """Blank a literal body up to its closing delimiter and return the offset after it."""
    depth = 1
    while index < len(text):
        char = text[index]
        if char == "\\" and index + 1 < len(text):
            _blank(chars, index, index + 2)
            index += 2
            continue
        if char == closing:
            depth -= 1
            if depth == 0:
                return index + 1
        elif char == opening:
            depth += 1
        _blank(chars, index, index + 1)
        index += 1
    return index


def _mask_heredoc_bodies(
    text: str, chars: list[str], index: int, tags: list[str]
) -> int:
    """Blank the bodies of heredocs opened on the previous line."""
    for tag in tags:
        while index < len(text):
            line_end = _line_end(text, index)
            terminated = text[index:line_end].strip() == tag
            if not terminated:
                _blank(chars, index, line_end)
            index = min(line_end + 1, len(text))
            if terminated:
                break
    return index


def _mask_embedded_document(text: str, chars: list[str], index: int) -> int:
    while index < len(text):
        line_end = _line_end(text, index)
        finished = text.startswith("=end", index)
        _blank(chars, index, line_end)
        index = min(line_end + 1, len(text))
        if finished:
            break
    return index


def _blank(chars: list[str], start: int, end: int) -> None:
    for position in range(start, end):
        if chars[position] != "\n":
            chars[position] = " "


def _line_end(text: str, index: int) -> int:
    line_end = text.find("\n", index)
    return len(text) if line_end == -1 else line_end


def _is_word(text: str, index: int) -> bool:
    return index >= 0 and (text[index].isalnum() or text[index] == "_")


def _suggest(method_name: str, candidates: list[str]) -> list[str]:
    """Return candidate names similar to ``method_name``, best first."""
    scored = [
        (Levenshtein.ratio(method_name, candidate), candidate)
        for candidate in candidates
    ]
    return [
        candidate
        for ratio, candidate in sorted(scored, key=lambda item: (-item[0], item[1]))
        if ratio >= SUGGESTION_THRESHOLD
    ]
