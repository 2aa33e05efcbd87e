"""Lenient parsing for model output that is almost, but not quite, JSON.

Each repair rule is a pure text → text function. Rules that rewrite
structure only touch text outside double-quoted string literals, so a
comma or colon inside an issue description is never mistaken for syntax.
Valid JSON passes through every rule unchanged.
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable

_FENCE_OPEN_RE = re.compile(r"^```[A-Za-z]*\s*")
_FENCE_CLOSE_RE = re.compile(r"\s*```$")

# A double-quoted JSON string, honouring backslash escapes.
_DQ_STRING_RE = re.compile(r'"(?:\\.|[^"\\])*"')
# Either a double- or single-quoted string; used when converting the latter.
_ANY_STRING_RE = re.compile(r'"(?:\\.|[^"\\])*"|\'(?:\\.|[^\'\\])*\'')

_UNQUOTED_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_\-]*)(\s*:)")
_BAREWORD_VALUE_RE = re.compile(r"(:\s*)([A-Za-z_][^,}\]\n]*?)(\s*)(?=[,}\]\n]|$)")
_ELLIPSIS = r"(?:\.\.\.|…)"
# "key": ... -> "key": null
_VALUE_ELLIPSIS_RE = re.compile(r"(:\s*)" + _ELLIPSIS)
# ", ..." before another element or a closing bracket
_TRAILING_ELLIPSIS_RE = re.compile(r",\s*" + _ELLIPSIS + r"(?=\s*[,\]}])")
# "[..., " or "{...}" at the start of a container
_LEADING_ELLIPSIS_RE = re.compile(r"([\[{]\s*)" + _ELLIPSIS + r"\s*,?")
_BARE_ELLIPSIS_RE = re.compile(_ELLIPSIS)
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_NULL_SEVERITY_RE = re.compile(r'("severity"\s*:\s*)null\b')

_JSON_LITERALS = {"true", "false", "null"}


def strip_code_fence(raw: str) -> str:
    """Remove one outer ```json ... ``` fence, leaving fences inside values alone."""
    cleaned = _FENCE_OPEN_RE.sub("", raw.strip())
    return _FENCE_CLOSE_RE.sub("", cleaned.strip())


def _outside_strings(text: str, transform: Callable[[str], str]) -> str:
    """Apply `transform` to every run of text between double-quoted strings."""
    parts: list[str] = []
    pos = 0
    for match in _DQ_STRING_RE.finditer(text):
        parts.append(transform(text[pos : match.start()]))
        parts.append(match.group(0))
        pos = match.end()
    parts.append(transform(text[pos:]))
    return "".join(parts)


def convert_single_quoted_strings(text: str) -> str:
    """'value' → "value", escaping any double quotes the value contains."""

    def _convert(match: re.Match) -> str:
        token = match.group(0)
        if token.startswith('"'):
            return token
        inner = token[1:-1].replace("\\'", "'")
        return json.dumps(inner, ensure_ascii=False)

    return _ANY_STRING_RE.sub(_convert, text)


def quote_unquoted_keys(text: str) -> str:
    """{line: 3} → {"line": 3}"""
    return _outside_strings(text, lambda seg: _UNQUOTED_KEY_RE.sub(r'\1"\2"\3', seg))


def default_null_severity(text: str) -> str:
    """"severity": null → "severity": "low" """
    return _NULL_SEVERITY_RE.sub(r'\1"low"', text)


def quote_bareword_values(text: str) -> str:
    """{"severity": high} → {"severity": "high"}; true/false/null are left alone."""

    def _quote(match: re.Match) -> str:
        word = match.group(2)
        if word in _JSON_LITERALS:
            return match.group(0)
        return f"{match.group(1)}{json.dumps(word, ensure_ascii=False)}{match.group(3)}"

    return _outside_strings(text, lambda seg: _BAREWORD_VALUE_RE.sub(_quote, seg))


def drop_ellipsis_placeholders(text: str) -> str:
    """[{...}, ...] → [{}]; {"line": ...} → {"line": null}

    Only the comma that introduces a placeholder is removed, so the
    separator between the elements around it survives.
    """

    def _drop(seg: str) -> str:
        seg = _VALUE_ELLIPSIS_RE.sub(r"\1null", seg)
        seg = _TRAILING_ELLIPSIS_RE.sub("", seg)
        seg = _LEADING_ELLIPSIS_RE.sub(r"\1", seg)
        return _BARE_ELLIPSIS_RE.sub("", seg)

    return _outside_strings(text, _drop)


def strip_trailing_commas(text: str) -> str:
    """[1, 2,] → [1, 2]"""
    return _outside_strings(text, lambda seg: _TRAILING_COMMA_RE.sub(r"\1", seg))


REPAIR_RULES: tuple[Callable[[str], str], ...] = (
    convert_single_quoted_strings,
    quote_unquoted_keys,
    default_null_severity,
    quote_bareword_values,
    drop_ellipsis_placeholders,
    strip_trailing_commas,
)


def repair(text: str) -> str:
    for rule in REPAIR_RULES:
        text = rule(text)
    return text


def loads(raw: str) -> Any:
    """Strip fences, repair, and parse. Raises json.JSONDecodeError if still invalid."""
    return json.loads(repair(strip_code_fence(raw).strip()))
