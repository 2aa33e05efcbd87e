"""Split a unified diff into token-bounded, code-only chunks.

The diff is cut at each `diff --git` header, segments for non-code files are
dropped, and the remainder is tokenized and sliced into fixed-size token
windows. Windows are decoded with an incremental UTF-8 decoder: a multi-byte
character whose bytes straddle a window boundary is emitted with the next
chunk, so joining every chunk reproduces the filtered diff exactly.
"""

from __future__ import annotations

import codecs
import logging
import re
from typing import Iterable, Iterator, Protocol, Sequence

from govaudit_core.models import DiffChunk
from govaudit_core.utils.code import is_code_file, is_excluded

logger = logging.getLogger(__name__)

_FILE_MARKER_RE = re.compile(r"^diff --git ", re.MULTILINE)
_HEADER_RE = re.compile(r'^diff --git (?:"a/(?:\\.|[^"\\])*"|a/.*?) ("b/(?:\\.|[^"\\])*"|b/.*)$')
_SIDE_PREFIX_RE = re.compile(r"^[ab]/")
_QUOTED_ESCAPE_RE = re.compile(r"\\([0-7]{3}|.)")
_C_ESCAPES = {"a": "\a", "b": "\b", "t": "\t", "n": "\n", "v": "\v", "f": "\f", "r": "\r"}
_NO_FILE = "/dev/null"

_FALLBACK_ENCODING = "cl100k_base"


class Encoding(Protocol):
    """The subset of tiktoken.Encoding the chunker relies on."""

    def encode(self, text: str, *, disallowed_special=...) -> list[int]: ...

    def decode_bytes(self, tokens: Sequence[int]) -> bytes: ...


def load_encoding(model: str) -> Encoding:
    import tiktoken

    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        logger.info("No tiktoken encoding registered for %r; using %s", model, _FALLBACK_ENCODING)
        return tiktoken.get_encoding(_FALLBACK_ENCODING)


def split_file_segments(diff_text: str) -> list[str]:
    """Return one segment per file, each starting at its `diff --git` line."""
    starts = [m.start() for m in _FILE_MARKER_RE.finditer(diff_text)]
    return [diff_text[start:end] for start, end in zip(starts, starts[1:] + [len(diff_text)])]


def _unquote_path(path: str) -> str:
    """Undo git's C-style quoting ("a/caf\\303\\251.py") of unusual paths."""
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path
    inner = path[1:-1]
    out = bytearray()
    pos = 0
    for match in _QUOTED_ESCAPE_RE.finditer(inner):
        out += inner[pos : match.start()].encode("utf-8")
        code = match.group(1)
        if len(code) == 3:
            out.append(int(code, 8))
        else:
            out += _C_ESCAPES.get(code, code).encode("utf-8")
        pos = match.end()
    out += inner[pos:].encode("utf-8")
    return out.decode("utf-8", errors="replace")


def _side_path(raw: str) -> str:
    # git appends a tab after names containing spaces; other tools append a timestamp.
    path = _unquote_path(raw.split("\t", 1)[0].rstrip("\r"))
    return path if path == _NO_FILE else _SIDE_PREFIX_RE.sub("", path)


def segment_path(segment: str) -> str | None:
    """Return the path a segment changes.

    The `+++` line names the post-change file; for a deletion it is
    /dev/null and the `---` line is used instead. Segments without either
    (binary files, pure renames) fall back to the `diff --git` header.
    """
    old = new = None
    for line in segment.split("\n@@", 1)[0].splitlines()[1:]:
        if line.startswith("+++ "):
            new = _side_path(line[4:])
        elif line.startswith("--- "):
            old = _side_path(line[4:])
    for path in (new, old):
        if path and path != _NO_FILE:
            return path

    match = _HEADER_RE.match(segment.split("\n", 1)[0])
    if match is None:
        return None
    return _side_path(match.group(1)) or None


def filter_diff(
    diff_text: str,
    extensions: Iterable[str] | None = None,
    exclude: Iterable[str] = (),
) -> str:
    """Keep only segments for allow-listed source files, concatenated in order."""
    exclude = list(exclude)
    kept = []
    for segment in split_file_segments(diff_text):
        path = segment_path(segment)
        if path is None:
            logger.warning("Skipping diff segment with unreadable header: %s", segment.split("\n", 1)[0][:200])
            continue
        if not is_code_file(path, extensions) or is_excluded(path, exclude):
            logger.debug("Skipping diff segment: %s", path)
            continue
        kept.append(segment)
    return "".join(kept)


class DiffChunker:
    def __init__(
        self,
        max_tokens_per_chunk: int,
        encoding: Encoding | None = None,
        model: str = "gpt-4o",
        extensions: Iterable[str] | None = None,
        exclude: Iterable[str] = (),
    ):
        if max_tokens_per_chunk < 1:
            raise ValueError("max_tokens_per_chunk must be at least 1")
        self.max_tokens_per_chunk = max_tokens_per_chunk
        self._encoding = encoding
        self._model = model
        self._extensions = list(extensions) if extensions is not None else None
        self._exclude = list(exclude)

    @property
    def encoding(self) -> Encoding:
        # Loaded on first use: tiktoken may download its BPE ranks.
        if self._encoding is None:
            self._encoding = load_encoding(self._model)
        return self._encoding

    def chunks(self, diff_text: str) -> Iterator[DiffChunk]:
        filtered = filter_diff(diff_text, self._extensions, self._exclude)
        if not filtered:
            return
        tokens = self.encoding.encode(filtered, disallowed_special=())
        decoder = codecs.getincrementaldecoder("utf-8")()
        size = self.max_tokens_per_chunk
        index = 0
        for start in range(0, len(tokens), size):
            window = tokens[start : start + size]
            final = start + size >= len(tokens)
            text = decoder.decode(self.encoding.decode_bytes(window), final=final)
            if not text:
                continue
            yield DiffChunk(index=index, text=text, token_count=len(window))
            index += 1
