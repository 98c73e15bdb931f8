"""
Corpus sources: previously approved copy lines with precomputed embeddings.

A corpus document is either a JSON array of {"line": ..., "embedding": [...]}
objects or JSON Lines with one such object per line. Local files can be loaded
once into an immutable CorpusHandle or streamed; remote corpora are always
streamed and decoded incrementally so the full corpus is never held in memory.
"""

import codecs
import json
import numbers
import time
from pathlib import Path
from typing import Iterable, Iterator, Optional, Tuple, Union

import numpy as np
import requests

from ..core.errors import CorpusCorruptedError, CorpusUnavailableError
from .types import Candidate
from util.logging import logger

DEFAULT_CHUNK_SIZE = 64 * 1024

# Upper bound on the undecoded text buffered for a single entry
MAX_PENDING_CHARS = 8 * 1024 * 1024

_WHITESPACE = " \t\n\r"

# Longest partial token the decoder can stop on at a chunk boundary ("-Infinit")
_PARTIAL_TOKEN_CHARS = 8


def _needs_more_input(error: json.JSONDecodeError, buffered: int) -> bool:
    """True when a decode error comes from the buffer ending mid-entry rather than bad data."""
    if error.msg.startswith("Unterminated string"):
        return True
    return error.pos >= buffered - _PARTIAL_TOKEN_CHARS


def parse_entry(record: object, position: int, source: str = "corpus") -> Candidate:
    """Validate one decoded corpus record and turn it into a Candidate."""
    if not isinstance(record, dict):
        raise CorpusCorruptedError(f"{source}: entry {position} is not an object")

    label = record.get("line")
    if not isinstance(label, str):
        raise CorpusCorruptedError(f"{source}: entry {position} has no text 'line'")

    embedding = record.get("embedding")
    if not isinstance(embedding, list) or not embedding:
        raise CorpusCorruptedError(f"{source}: entry {position} has no 'embedding' list")
    for value in embedding:
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise CorpusCorruptedError(f"{source}: entry {position} has a non-numeric embedding value")

    vector = np.array(embedding, dtype=np.float64)
    vector.setflags(write=False)
    return Candidate(label=label, vector=vector)


def iter_json_records(chunks: Iterable[str]) -> Iterator[object]:
    """
    Incrementally decode a JSON array or JSON Lines document from text chunks.

    Only the unparsed tail of the stream is buffered. Raises CorpusCorruptedError
    on malformed or truncated input.
    """
    decoder = json.JSONDecoder()
    chunk_iter = iter(chunks)
    buffer = ""
    pos = 0
    eof = False
    mode = None  # "array" | "lines" | "closed"
    expect_value = True
    count = 0

    while True:
        while pos < len(buffer) and buffer[pos] in _WHITESPACE:
            pos += 1

        if pos >= len(buffer):
            if eof:
                break
            chunk = next(chunk_iter, None)
            if chunk is None:
                eof = True
            else:
                buffer = buffer[pos:] + chunk
                pos = 0
            continue

        char = buffer[pos]
        if mode is None:
            if char == "[":
                mode = "array"
                pos += 1
                continue
            mode = "lines"

        if mode == "closed":
            raise CorpusCorruptedError("unexpected data after the end of the corpus array")

        if mode == "array":
            if char == "]":
                if expect_value and count:
                    raise CorpusCorruptedError("trailing comma in corpus array")
                mode = "closed"
                pos += 1
                continue
            if char == ",":
                if expect_value:
                    raise CorpusCorruptedError(f"unexpected ',' before corpus entry {count}")
                expect_value = True
                pos += 1
                continue
            if not expect_value:
                raise CorpusCorruptedError(f"missing ',' before corpus entry {count}")

        try:
            value, end = decoder.raw_decode(buffer, pos)
        except json.JSONDecodeError as e:
            if eof or not _needs_more_input(e, len(buffer)):
                raise CorpusCorruptedError(f"malformed corpus entry {count}: {e.msg}") from e
            if len(buffer) - pos > MAX_PENDING_CHARS:
                raise CorpusCorruptedError(
                    f"corpus entry {count} exceeds {MAX_PENDING_CHARS} characters"
                ) from e
            chunk = next(chunk_iter, None)
            if chunk is None:
                eof = True
            else:
                buffer = buffer[pos:] + chunk
                pos = 0
            continue

        pos = end
        expect_value = mode != "array"
        count += 1
        yield value

    if mode == "array":
        raise CorpusCorruptedError("corpus array is not terminated")


def _decode_chunks(byte_chunks: Iterable[bytes]) -> Iterator[str]:
    """UTF-8 decode a byte stream whose chunk boundaries may split characters, dropping a leading BOM."""
    decoder = codecs.getincrementaldecoder("utf-8-sig")()
    try:
        for chunk in byte_chunks:
            if chunk:
                yield decoder.decode(chunk)
        yield decoder.decode(b"", final=True)
    except UnicodeDecodeError as e:
        raise CorpusCorruptedError(f"corpus is not valid UTF-8: {e}") from e


def iter_corpus_file(path: Union[str, Path], chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[Candidate]:
    """Stream candidates from a local corpus file, front to back, one pass."""
    source = str(path)
    try:
        with open(path, "rb") as handle:
            byte_chunks = iter(lambda: handle.read(chunk_size), b"")
            for position, record in enumerate(iter_json_records(_decode_chunks(byte_chunks))):
                yield parse_entry(record, position, source=source)
    except OSError as e:
        raise CorpusUnavailableError(f"Could not read corpus file {source}: {e}") from e


def stream_remote_corpus(
    url: str,
    timeout: float = 30.0,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    session: Optional[requests.Session] = None,
) -> Iterator[Candidate]:
    """
    Stream candidates from a corpus served over HTTP.

    The response body is decoded as it arrives; closing the generator early
    closes the connection.
    """
    http = session or requests
    try:
        response = http.get(url, stream=True, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise CorpusUnavailableError(f"Could not fetch corpus from {url}: {e}") from e

    with response:
        try:
            byte_chunks = response.iter_content(chunk_size=chunk_size)
            for position, record in enumerate(iter_json_records(_decode_chunks(byte_chunks))):
                yield parse_entry(record, position, source=url)
        except requests.RequestException as e:
            raise CorpusUnavailableError(f"Corpus stream from {url} was interrupted: {e}") from e


class CorpusHandle:
    """
    Immutable, re-iterable corpus loaded once before serving traffic.

    All entries must share one embedding dimension.
    """

    def __init__(self, candidates: Iterable[Candidate], source: str = "memory"):
        self.source = source
        self._candidates: Tuple[Candidate, ...] = tuple(candidates)
        self._dimension = None

        for position, candidate in enumerate(self._candidates):
            size = len(candidate.vector)
            if self._dimension is None:
                self._dimension = size
            elif size != self._dimension:
                raise CorpusCorruptedError(
                    f"{source}: entry {position} has dimension {size}, expected {self._dimension}"
                )

    @property
    def dimension(self) -> Optional[int]:
        """Embedding dimension shared by all entries, or None for an empty corpus."""
        return self._dimension

    def __iter__(self) -> Iterator[Candidate]:
        return iter(self._candidates)

    def __len__(self) -> int:
        return len(self._candidates)

    def __repr__(self) -> str:
        return f"CorpusHandle(source={self.source!r}, entries={len(self)}, dimension={self._dimension})"


def load_corpus(path: Union[str, Path]) -> CorpusHandle:
    """Read a bundled corpus file into an immutable handle."""
    start_time = time.time()
    try:
        handle = CorpusHandle(iter_corpus_file(path), source=str(path))
    except (CorpusUnavailableError, CorpusCorruptedError) as e:
        logger.log_corpus_load(str(path), 0, None, start_time, time.time(), status="failed", error=str(e))
        raise
    logger.log_corpus_load(str(path), len(handle), handle.dimension, start_time, time.time())
    return handle
