from __future__ import annotations

import re
from typing import List

from common.logger import get_logger
from ingestion.document_models import TextChunk

log = get_logger(__name__)

DEFAULT_MAX_CHUNK_CHARS = 3000

PARAGRAPH_SEP = "\n\n"
SENTENCE_SEP = " "

_PARAGRAPH_BREAK = re.compile(r"\n[ \t\r\f\v]*\n")
_SENTENCE_BREAK = re.compile(r"(?<=[.!?…])\s+")


class _ChunkBuffer:
    """Greedy accumulator that flushes whenever the next piece would overflow max_len."""

    def __init__(self, max_len: int):
        self.max_len = max_len
        self.pieces: List[str] = []
        self._buf = ""

    def fits(self, piece: str, sep: str) -> bool:
        if not self._buf:
            return len(piece) <= self.max_len
        return len(self._buf) + len(sep) + len(piece) <= self.max_len

    def add(self, piece: str, sep: str) -> None:
        if self.fits(piece, sep):
            self._buf = f"{self._buf}{sep}{piece}" if self._buf else piece
        else:
            self.flush()
            self._buf = piece

    def hard_cut(self, piece: str) -> None:
        self.flush()
        for i in range(0, len(piece), self.max_len):
            self.pieces.append(piece[i : i + self.max_len])

    def flush(self) -> None:
        if self._buf:
            self.pieces.append(self._buf)
        self._buf = ""


def split_text(full_text: str, max_len: int = DEFAULT_MAX_CHUNK_CHARS) -> List[TextChunk]:
    """
    Split a document into ordered chunks of at most ``max_len`` characters.

    Paragraphs (blank-line separated) are packed greedily. A paragraph that is
    too long on its own is broken into sentences, and a sentence that is still
    too long is hard-cut into ``max_len`` slices. Nothing but whitespace is
    ever dropped, and chunk order follows document order.
    """
    if max_len < 1:
        raise ValueError(f"max_len must be positive, got {max_len}")

    buf = _ChunkBuffer(max_len)
    for para in _PARAGRAPH_BREAK.split(full_text):
        para = para.strip()
        if not para:
            continue
        if len(para) <= max_len:
            buf.add(para, PARAGRAPH_SEP)
            continue

        for sentence in _SENTENCE_BREAK.split(para):
            sentence = sentence.strip()
            if not sentence:
                continue
            if len(sentence) <= max_len:
                buf.add(sentence, SENTENCE_SEP)
            else:
                buf.hard_cut(sentence)
    buf.flush()

    pieces = buf.pieces
    if not pieces and full_text.strip():
        pieces = [full_text[:max_len]]

    log.debug("Split %d chars into %d chunks (max_len=%d)", len(full_text), len(pieces), max_len)
    return [TextChunk(index=i, text=p) for i, p in enumerate(pieces, start=1)]
