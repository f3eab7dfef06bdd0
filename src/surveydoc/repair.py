"""
JSON text repair (Layer 1: raw model output -> valid JSON text).

Text-generation models wrap JSON in commentary and markdown fences, use
typographic quotes, leave comments and trailing commas, and sometimes
quote with single quotes. This module applies a fixed sequence of small,
total, side-effect-free repairs and then parses the result.

Pipeline:
    1. strip_code_fences      - keep the inside of a ``` block
    2. sanitize_quotes        - typographic quotes -> ASCII
    3. remove_comments        - /* block */ and // line comments
    4. extract_largest_json   - only if the text does not start with { or [
    5. remove_trailing_commas - ",}" and ",]"
    6. quote_single_quoted    - 'key': 'value' -> "key": "value"
    7. normalize_nbsp         - U+00A0 -> space

Comment removal and the later steps track double-quoted strings, so
"http://example.org" inside a string survives. The single-quote repair is
a pattern heuristic and can misfire on strings that themselves contain
quote characters.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Iterator, Optional, Tuple

from surveydoc.config import get_settings
from surveydoc.errors import RepairError


logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.IGNORECASE | re.DOTALL)

_QUOTE_TABLE = str.maketrans({
    "\u201c": '"',  # “
    "\u201d": '"',  # ”
    "\u201e": '"',  # „
    "\u201f": '"',  # ‟
    "\u2039": '"',  # ‹
    "\u203a": '"',  # ›
    "\u00ab": '"',  # «
    "\u00bb": '"',  # »
    "\u2018": "'",  # ‘
    "\u2019": "'",  # ’
    "\u201a": "'",  # ‚
    "\u201b": "'",  # ‛
})

_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_SINGLE_KEY_RE = re.compile(r"([{,\[]\s*)'([^'\"]+?)'\s*:")
_SINGLE_VALUE_RE = re.compile(r":\s*'([^'\\]*(?:\\.[^'\\]*)*)'")
_SINGLE_ITEM_RE = re.compile(r"([\[,]\s*)'([^'\\]*(?:\\.[^'\\]*)*)'(?=\s*[,\]])")

# A single quote only opens a string after one of these.
_STRUCTURAL = "{[,:"


def strip_code_fences(text: str) -> str:
    """Return the inside of the first ``` fence, or the trimmed text."""
    if not text:
        return text
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def sanitize_quotes(text: str) -> str:
    """Map typographic quotes and apostrophes to their ASCII forms."""
    return text.translate(_QUOTE_TABLE)


def _last_significant(chars: list) -> str:
    for ch in reversed(chars):
        if not ch.isspace():
            return ch
    return ""


def remove_comments(text: str) -> str:
    """
    Strip /* block */ and // line comments outside of string literals.

    Double-quoted strings are always tracked. Single-quoted strings are
    tracked only where JSON would expect a key or value, so apostrophes
    in surrounding prose do not open a phantom string. An unterminated
    block comment is left as-is.
    """
    out: list = []
    i = 0
    n = len(text)
    quote: Optional[str] = None
    while i < n:
        ch = text[i]
        if quote:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
            i += 1
            continue
        if ch == '"' or (ch == "'" and _last_significant(out) in _STRUCTURAL):
            quote = ch
            out.append(ch)
            i += 1
            continue
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end < 0:
                out.append(text[i:])
                break
            i = end + 2
            continue
        if text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end < 0 else end
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def extract_largest_json(text: str) -> Optional[str]:
    """
    Find the outermost balanced {...} span, falling back to [...].

    The scan pushes every opening bracket and pops on a closing one; the
    first time a pop empties the stack, that span is the answer. Brackets
    inside double-quoted strings of the span are ignored.

    Returns:
        The span text, or None if no balanced span exists
    """
    for open_ch, close_ch in (("{", "}"), ("[", "]")):
        span = _scan_balanced(text, open_ch, close_ch)
        if span is not None:
            start, end = span
            return text[start:end + 1]
    return None


def _scan_balanced(text: str, open_ch: str, close_ch: str) -> Optional[Tuple[int, int]]:
    stack: list = []
    in_string = False
    i = 0
    while i < len(text):
        ch = text[i]
        if in_string:
            if ch == "\\":
                i += 2
                continue
            if ch == '"':
                in_string = False
        elif ch == '"' and stack:
            in_string = True
        elif ch == open_ch:
            stack.append(i)
        elif ch == close_ch and stack:
            start = stack.pop()
            if not stack:
                return start, i
        i += 1
    return None


def _segments(text: str) -> Iterator[Tuple[str, bool]]:
    """Split text into (chunk, is_double_quoted_string) pieces."""
    start = 0
    i = 0
    n = len(text)
    while i < n:
        if text[i] == '"':
            if i > start:
                yield text[start:i], False
            j = i + 1
            while j < n and text[j] != '"':
                j += 2 if text[j] == "\\" else 1
            j = min(j + 1, n)
            yield text[i:j], True
            start = i = j
            continue
        i += 1
    if start < n:
        yield text[start:], False


def _outside_strings(text: str, fix: Callable[[str], str]) -> str:
    return "".join(chunk if is_string else fix(chunk) for chunk, is_string in _segments(text))


def remove_trailing_commas(text: str) -> str:
    """Drop commas directly before a closing } or ]."""
    return _outside_strings(text, lambda chunk: _TRAILING_COMMA_RE.sub(r"\1", chunk))


def _to_double(body: str) -> str:
    return body.replace("\\'", "'")


def quote_single_quoted(text: str) -> str:
    """
    Convert single-quoted keys, values and array items to double quotes.

    Examples:
        {'title': 'A'}  -> {"title": "A"}
        ['a', 'b']      -> ["a", "b"]
    """
    def fix(chunk: str) -> str:
        chunk = _SINGLE_KEY_RE.sub(lambda m: f'{m.group(1)}"{m.group(2)}":', chunk)
        chunk = _SINGLE_VALUE_RE.sub(lambda m: f': "{_to_double(m.group(1))}"', chunk)
        chunk = _SINGLE_ITEM_RE.sub(lambda m: f'{m.group(1)}"{_to_double(m.group(2))}"', chunk)
        return chunk

    return _outside_strings(text, fix)


def normalize_nbsp(text: str) -> str:
    return text.replace("\u00a0", " ")


def _preview(raw: str) -> str:
    return (raw or "")[: get_settings().preview_chars]


def repair_json_text(raw: str) -> str:
    """
    Repair raw model output into syntactically valid JSON text.

    Args:
        raw: Arbitrary text, typically a model response

    Returns:
        JSON text that json.loads accepts

    Raises:
        RepairError: (code INVALID_INPUT) if no repair yields valid JSON.
            Never returns partial output.
    """
    if not raw or not raw.strip():
        raise RepairError("Empty input", preview="")

    s = strip_code_fences(raw)
    s = sanitize_quotes(s)
    s = remove_comments(s)
    stripped = s.strip()
    if not (stripped.startswith("{") or stripped.startswith("[")):
        largest = extract_largest_json(s)
        if largest is not None:
            s = largest
    s = remove_trailing_commas(s)
    s = quote_single_quoted(s)
    s = normalize_nbsp(s)

    try:
        json.loads(s)
    except json.JSONDecodeError as e:
        logger.warning("Could not repair JSON input (%d chars): %s", len(raw), e)
        raise RepairError(f"Input is not valid JSON after repair: {e}", preview=_preview(raw)) from e
    return s.strip()


def repair_json(raw: str) -> Any:
    """Repair raw text and return the parsed JSON value."""
    return json.loads(repair_json_text(raw))
