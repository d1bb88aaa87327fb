"""
Cog output contract and extraction capabilities.

Outputs are frozen dataclasses. Cog types opt into extraction helpers by
mixing in:
- WithText: stripped text and lines
- WithJson: JSON extraction with a fallback cascade
- WithNumber: numeric extraction tolerant of currency and separators

Each mixin reads the underlying text through a single hook method so that a
cog can choose which field (stdout, response, ...) feeds the parsers.
"""

import json
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterator

from cogwork.errors import OutputParseError


@dataclass(frozen=True)
class CogOutput:
    """Base class for cog outputs."""


# ============================================================================
# Text
# ============================================================================


class WithText:
    def _raw_text(self) -> str:
        raise NotImplementedError

    def text(self) -> str:
        return (self._raw_text() or "").strip()

    def lines(self) -> list[str]:
        return [line.strip() for line in self.text().splitlines()]


# ============================================================================
# JSON
# ============================================================================

_FENCED_BLOCK = re.compile(r"```([\w+-]*)[ \t]*\r?\n(.*?)```", re.DOTALL)


def _fenced_candidates(text: str) -> Iterator[str]:
    blocks = [(m.group(1).lower(), m.group(2)) for m in _FENCED_BLOCK.finditer(text)]
    # Later blocks usually hold the final answer
    blocks.reverse()
    for lang, body in blocks:
        if lang == "json":
            yield body
    for lang, body in blocks:
        if lang == "":
            yield body
    for lang, body in blocks:
        if lang not in ("json", ""):
            yield body


def _longest_embedded_json(text: str) -> tuple[bool, Any]:
    decoder = json.JSONDecoder()
    best: tuple[int, Any] | None = None
    for start, char in enumerate(text):
        if char not in "{[":
            continue
        try:
            value, end = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            continue
        length = end - start
        if best is None or length > best[0]:
            best = (length, value)
    if best is None:
        return False, None
    return True, best[1]


def parse_json(text: str | None) -> Any:
    """
    Extract JSON from free-form text.

    Tries, in order: the whole string, ```json fenced blocks, bare fenced
    blocks, fenced blocks in other languages, then the longest {...} or [...]
    substring that parses.

    Raises:
        OutputParseError: If no candidate parses
    """
    stripped = (text or "").strip()
    if not stripped:
        return {}

    for candidate in (stripped, *_fenced_candidates(stripped)):
        try:
            return json.loads(candidate.strip())
        except json.JSONDecodeError:
            continue

    found, value = _longest_embedded_json(stripped)
    if found:
        return value
    raise OutputParseError(f"Could not extract JSON from output: {stripped[:200]!r}")


class WithJson:
    def _json_text(self) -> str:
        return self._raw_text()

    def _raw_text(self) -> str:
        raise NotImplementedError

    def json(self) -> Any:
        return parse_json(self._json_text())

    def json_or_none(self) -> Any:
        try:
            return self.json()
        except OutputParseError:
            return None


# ============================================================================
# Numbers
# ============================================================================

_NUMBER_LIKE = re.compile(r"-?[\d\s$¢£€¥.,_]+(?:[eE][+-]?\d+)?")
_NUMBER_NOISE = re.compile(r"[\s$¢£€¥,_]")
_VALID_NUMBER = re.compile(r"^-?\d+(?:\.\d*)?(?:[eE][+-]?\d+)?$")


def _number_candidates(text: str) -> Iterator[str]:
    yield text
    yield from reversed(text.splitlines())
    yield from reversed(_NUMBER_LIKE.findall(text))


def parse_number(text: str | None) -> str:
    """
    Locate the most plausible number in ``text``.

    Returns:
        The normalized numeric string

    Raises:
        OutputParseError: If no candidate is a valid number
    """
    stripped = (text or "").strip()
    for candidate in _number_candidates(stripped):
        normalized = _NUMBER_NOISE.sub("", candidate)
        if _VALID_NUMBER.match(normalized):
            return normalized
    raise OutputParseError(f"Could not extract a number from output: {stripped[:200]!r}")


class WithNumber:
    def _number_text(self) -> str:
        return self._raw_text()

    def _raw_text(self) -> str:
        raise NotImplementedError

    def to_float(self) -> float:
        return float(parse_number(self._number_text()))

    def to_float_or_none(self) -> float | None:
        try:
            return self.to_float()
        except OutputParseError:
            return None

    def to_int(self) -> int:
        """Nearest integer, halves rounded away from zero."""
        number = Decimal(parse_number(self._number_text()))
        return int(number.to_integral_value(rounding=ROUND_HALF_UP))

    def to_int_or_none(self) -> int | None:
        try:
            return self.to_int()
        except OutputParseError:
            return None


__all__ = [
    "CogOutput",
    "WithText",
    "WithJson",
    "WithNumber",
    "parse_json",
    "parse_number",
]
