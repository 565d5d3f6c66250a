"""
Coerce free-text model output into question/answer pairs.

The backend only promises best-effort JSON, so the raw response is parsed into
an untyped JSON tree and walked through an ordered chain of fallbacks:

    plain array              [{"question": ..., "answer": ...}, ...]
    wrapped array            {"data": [...]}, {"qaPairs": [...]}, ...
    single pair              {"question": ..., "answer": ...}
    any list-valued key      {"cac_cau_hoi": [...]}
    ordinal-keyed object     {"0": {...}, "1": {...}}

Items that are not complete pairs are dropped without attempting repair.
"""
from __future__ import annotations

import re
from typing import Any, Iterator, List, Optional

import orjson

from common.logger import get_logger
from generation.errors import MalformedOutputError
from generation.models import GeneratedPair

log = get_logger(__name__)

EXCERPT_CHARS = 200

# checked in order before falling back to any list-valued key
CONTAINER_KEYS = (
    "data",
    "results",
    "items",
    "questions",
    "qa_pairs",
    "qaPairs",
    "questions_answers",
    "questionsAndAnswers",
    "questionsAnswers",
    "pairs",
)

_FENCE = re.compile(r"```[a-zA-Z]*[ \t]*\n?")


def strip_fences(raw: str) -> str:
    return _FENCE.sub("", raw).strip()


def iter_balanced_arrays(text: str) -> Iterator[str]:
    """
    Yield every ``[...]`` span whose brackets balance, in order of their opening
    bracket. Brackets inside JSON string literals are ignored.
    """
    start = text.find("[")
    while start != -1:
        end = _match_bracket(text, start)
        if end is not None:
            yield text[start : end + 1]
        start = text.find("[", start + 1)


def _match_bracket(text: str, start: int) -> Optional[int]:
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return i
    return None


def _excerpt(raw: str) -> str:
    raw = raw.strip()
    if len(raw) <= EXCERPT_CHARS:
        return raw
    return raw[:EXCERPT_CHARS] + "..."


def _parse(cleaned: str, raw: str) -> Any:
    try:
        return orjson.loads(cleaned)
    except orjson.JSONDecodeError:
        log.debug("Direct JSON parse failed, searching for an embedded array")

    for candidate in iter_balanced_arrays(cleaned):
        try:
            return orjson.loads(candidate)
        except orjson.JSONDecodeError:
            continue

    raise MalformedOutputError(
        "Could not parse JSON from model output: no parseable JSON array found",
        excerpt=_excerpt(raw),
    )


def _lower_keys(d: dict) -> dict:
    return {k.lower(): v for k, v in d.items() if isinstance(k, str)}


def _looks_like_pair(d: dict) -> bool:
    keys = _lower_keys(d)
    return "question" in keys and "answer" in keys


def _ordinal_key(key: str):
    try:
        return (0, int(key.strip()), "")
    except ValueError:
        return (1, 0, key)


def _as_items(data: Any, raw: str) -> List[Any]:
    if isinstance(data, list):
        return data

    if isinstance(data, str):
        # double-encoded JSON: the model returned a JSON string holding the array
        try:
            inner = orjson.loads(data)
        except orjson.JSONDecodeError:
            inner = None
        if isinstance(inner, (list, dict)):
            return _as_items(inner, raw)

    if not isinstance(data, dict):
        raise MalformedOutputError(
            f"Model output is neither a list nor an object (got {type(data).__name__})",
            excerpt=_excerpt(raw),
        )

    for key in CONTAINER_KEYS:
        value = data.get(key)
        if isinstance(value, list) and value:
            log.debug("Unwrapped array from container key %r (%d items)", key, len(value))
            return value

    if _looks_like_pair(data):
        log.debug("Single pair object, wrapping into a list")
        return [data]

    for key, value in data.items():
        if isinstance(value, list) and value:
            log.debug("Unwrapped array from ad-hoc key %r (%d items)", key, len(value))
            return value

    keys = sorted(data.keys(), key=_ordinal_key)
    log.debug("Treating object keys as ordinals: %s", keys[:20])
    return [data[k] for k in keys if data[k] is not None]


def _to_pair(item: Any) -> Optional[GeneratedPair]:
    if not isinstance(item, dict):
        return None
    fields = _lower_keys(item)
    question = fields.get("question")
    answer = fields.get("answer")
    if not isinstance(question, str) or not isinstance(answer, str):
        return None
    if not question.strip() or not answer.strip():
        return None
    return GeneratedPair(question=question, answer=answer)


def normalize(raw_text: str) -> List[GeneratedPair]:
    """
    Parse raw backend text into validated pairs.

    Raises ``MalformedOutputError`` if nothing usable can be recovered.
    """
    cleaned = strip_fences(raw_text or "")
    if not cleaned:
        raise MalformedOutputError("Model output is empty", excerpt="")

    items = _as_items(_parse(cleaned, raw_text), raw_text)

    pairs: List[GeneratedPair] = []
    for idx, item in enumerate(items):
        pair = _to_pair(item)
        if pair is None:
            log.debug("Dropping item #%d, not a complete question/answer pair: %.200r", idx, item)
            continue
        pairs.append(pair)

    if not pairs:
        raise MalformedOutputError(
            f"Model returned {len(items)} items but none is a valid question/answer pair",
            excerpt=_excerpt(raw_text),
        )

    log.debug("Normalized %d/%d items into pairs", len(pairs), len(items))
    return pairs
