from __future__ import annotations

import re
import unicodedata
from typing import Iterable, List

from generation.models import GeneratedPair

DEFAULT_LENGTH_RATIO = 0.3

_WS = re.compile(r"\s+")
_WS_BEFORE_PUNCT = re.compile(r"\s+([?.!,;:…])")


def normalize_question(s: str) -> str:
    s = unicodedata.normalize("NFC", s).lower().strip()
    s = _WS.sub(" ", s)
    return _WS_BEFORE_PUNCT.sub(r"\1", s)


def is_duplicate(a: str, b: str, length_ratio: float = DEFAULT_LENGTH_RATIO) -> bool:
    """
    Cheap near-duplicate check between two questions.

    Equal after case/whitespace normalization, or one contains the other while
    their lengths differ by at most ``length_ratio`` of the longer one.
    Paraphrases are not detected.
    """
    n1 = normalize_question(a)
    n2 = normalize_question(b)
    if n1 == n2:
        return True

    shorter, longer = sorted((len(n1), len(n2)))
    if longer - shorter > length_ratio * longer:
        return False

    return n1 in n2 or n2 in n1


def filter_duplicates(
    new_pairs: Iterable[GeneratedPair],
    existing_pairs: Iterable[GeneratedPair],
    length_ratio: float = DEFAULT_LENGTH_RATIO,
) -> List[GeneratedPair]:
    """
    Drop new pairs whose question duplicates an existing question, or an
    earlier survivor from the same batch. Answers are not compared.
    """
    seen = [p.question for p in existing_pairs]
    out: List[GeneratedPair] = []
    for pair in new_pairs:
        if any(is_duplicate(pair.question, q, length_ratio) for q in seen):
            continue
        out.append(pair)
        seen.append(pair.question)
    return out
