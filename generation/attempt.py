from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

from common.config import DEFAULT_SYSTEM_PROMPT
from common.logger import get_logger
from generation.models import GeneratedPair
from generation.normalizer import normalize
from generation.prompts import build_system_prompt, build_user_prompt

if TYPE_CHECKING:
    from models.llm import GenerationBackend

log = get_logger(__name__)


def attempt(
    chunk_text: str,
    count: int,
    existing_questions: Sequence[str],
    *,
    backend: "GenerationBackend",
    system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    max_chunk_chars: int = 3000,
    max_context_questions: int = 15,
) -> List[GeneratedPair]:
    """
    Ask the backend once for ``count`` pairs grounded in ``chunk_text``.

    Raises ``BackendUnavailableError`` when the call fails and
    ``MalformedOutputError`` when the answer holds no usable pair. Never
    retries; the caller owns the retry policy.
    """
    if count < 1:
        raise ValueError(f"count must be >= 1, got {count}")

    system = build_system_prompt(
        system_prompt,
        count,
        existing_questions,
        max_context_questions=max_context_questions,
    )
    user = build_user_prompt(chunk_text, count, max_chunk_chars=max_chunk_chars)
    log.debug(
        "Prompt length %d chars (system: %d, user: %d)",
        len(system) + len(user) + 2,
        len(system),
        len(user),
    )

    raw = backend.complete(f"{system}\n\n{user}", structured_output=True)
    pairs = normalize(raw)
    log.info("Backend returned %d valid pairs (asked for %d)", len(pairs), count)
    return pairs
