from __future__ import annotations

import math
from enum import Enum
from typing import TYPE_CHECKING, Iterable, List, Optional

from common.config import GenerationConfig, GlobalYAMLConfig
from common.logger import get_logger
from generation.attempt import attempt
from generation.dedup import filter_duplicates
from generation.errors import (
    BackendUnavailableError,
    InputTooShortError,
    MalformedOutputError,
)
from generation.models import (
    GeneratedPair,
    GenerationResult,
    GenerationSession,
    Outcome,
)
from ingestion.chunkers import DEFAULT_MAX_CHUNK_CHARS, split_text

if TYPE_CHECKING:
    from models.llm import GenerationBackend

log = get_logger(__name__)


class FailureKind(str, Enum):
    FIRST_ATTEMPT_EMPTY = "first_attempt_empty"
    LATER_ATTEMPT_WITH_PROGRESS = "later_attempt_with_progress"
    LATER_ATTEMPT_NO_PROGRESS = "later_attempt_no_progress"

    @property
    def recoverable(self) -> bool:
        return self is FailureKind.LATER_ATTEMPT_WITH_PROGRESS


def classify_failure(attempts: int, accumulated: int) -> FailureKind:
    """
    Decide what a failed attempt means for the session.

    Only a later attempt that already has pairs to fall back on is swallowed;
    anything else surfaces the root cause to the caller.
    """
    if attempts <= 1:
        return FailureKind.FIRST_ATTEMPT_EMPTY
    if accumulated > 0:
        return FailureKind.LATER_ATTEMPT_WITH_PROGRESS
    return FailureKind.LATER_ATTEMPT_NO_PROGRESS


class QAGenerator:
    """
    Drives repeated generation attempts over rotating chunks of a document
    until the target number of distinct pairs is reached or the document is
    exhausted.

    Holds only configuration and the backend; all per-call state lives in a
    ``GenerationSession``. Calls for the same document must be serialized by
    the caller.
    """

    def __init__(
        self,
        backend: "GenerationBackend",
        config: Optional[GenerationConfig] = None,
        *,
        max_chunk_chars: int = DEFAULT_MAX_CHUNK_CHARS,
        system_prompt: Optional[str] = None,
    ):
        self.backend = backend
        self.config = config or GenerationConfig()
        self.max_chunk_chars = max_chunk_chars
        self.system_prompt = system_prompt or self.config.resolve_system_prompt()

    @classmethod
    def from_config(cls, cfg: GlobalYAMLConfig) -> "QAGenerator":
        from models.llm import build_backend

        return cls(
            build_backend(cfg.llm),
            cfg.generation,
            max_chunk_chars=cfg.chunking.max_chunk_chars,
        )

    def generate(self, full_text: str, target_count: int) -> List[GeneratedPair]:
        return self.run(full_text, target_count).pairs

    def run(
        self,
        full_text: str,
        target_count: int,
        *,
        start_chunk: int = 0,
        existing_pairs: Iterable[GeneratedPair] = (),
    ) -> GenerationResult:
        """
        Generate up to ``target_count`` distinct pairs from ``full_text``.

        ``start_chunk`` offsets the chunk rotation (0-based) so a follow-up
        call can continue where a previous one stopped. ``existing_pairs``
        are pairs already stored for this document: they feed the
        anti-duplication context and the duplicate filter but are never
        returned.

        Returning fewer pairs than requested is not an error; it means the
        document ran out of distinct content or the attempt limit was reached.
        """
        cfg = self.config
        if target_count < 1:
            raise ValueError(f"target_count must be >= 1, got {target_count}")

        text = full_text.strip()
        if len(text) < cfg.min_text_chars:
            raise InputTooShortError(
                f"Document content is too short ({len(text)} chars). "
                f"At least {cfg.min_text_chars} characters are needed to generate Q&A pairs.",
                length=len(text),
            )

        chunks = split_text(text, self.max_chunk_chars)
        seed = list(existing_pairs)
        session = GenerationSession(target_count=target_count, last_chunk_index=start_chunk % len(chunks))
        min_request = math.ceil(target_count / cfg.min_request_divisor)
        outcome = Outcome.EXHAUSTED

        log.info(
            "Generating %d pairs from %d chars split into %d chunks (max %d chars)",
            target_count,
            len(text),
            len(chunks),
            self.max_chunk_chars,
        )

        while True:
            if session.done:
                outcome = Outcome.SUCCEEDED
                break
            if session.attempts >= cfg.max_attempts:
                break

            session.attempts += 1
            request_count = max(min_request, session.needed)
            chunk_idx = (start_chunk + session.attempts - 1) % len(chunks)
            chunk = chunks[chunk_idx]
            session.last_chunk_index = chunk_idx

            log.info(
                "Attempt %d/%d: have %d/%d, requesting %d from chunk #%d/%d (%d chars)",
                session.attempts,
                cfg.max_attempts,
                len(session.accumulated),
                target_count,
                request_count,
                chunk.index,
                len(chunks),
                len(chunk),
            )

            chunk_len = len(chunk.text.strip())
            if chunk_len < cfg.min_chunk_chars:
                if session.accumulated:
                    log.warning(
                        "Chunk #%d too short (%d chars), stopping with %d pairs",
                        chunk.index,
                        chunk_len,
                        len(session.accumulated),
                    )
                    break
                raise InputTooShortError(
                    "Document content is too short or exhausted. No more Q&A pairs can be generated.",
                    length=chunk_len,
                )

            known = seed + session.accumulated
            try:
                new_pairs = attempt(
                    chunk.text,
                    request_count,
                    [p.question for p in known],
                    backend=self.backend,
                    system_prompt=self.system_prompt,
                    max_chunk_chars=cfg.max_prompt_chunk_chars,
                    max_context_questions=cfg.max_context_questions,
                )
            except (BackendUnavailableError, MalformedOutputError) as e:
                kind = classify_failure(session.attempts, len(session.accumulated))
                if not kind.recoverable:
                    log.error("Attempt %d failed (%s): %s", session.attempts, kind.value, e)
                    if isinstance(e, MalformedOutputError) and e.excerpt:
                        log.debug("Raw output excerpt: %s", e.excerpt)
                    raise
                log.warning(
                    "Attempt %d failed but %d pairs are already collected, continuing: %s",
                    session.attempts,
                    len(session.accumulated),
                    e,
                )
                continue

            unique = filter_duplicates(new_pairs, known, cfg.duplicate_length_ratio)
            session.accumulated.extend(unique)
            if unique:
                log.info(
                    "Attempt %d: added %d new pairs (%d duplicates dropped)",
                    session.attempts,
                    len(unique),
                    len(new_pairs) - len(unique),
                )
            else:
                log.warning("Attempt %d: all %d pairs were duplicates", session.attempts, len(new_pairs))

        if outcome is Outcome.EXHAUSTED:
            log.warning(
                "Only %d/%d pairs after %d attempts; the document may not have enough distinct content",
                len(session.accumulated),
                target_count,
                session.attempts,
            )
        else:
            log.info("Collected %d/%d pairs after %d attempts", len(session.accumulated), target_count, session.attempts)

        return GenerationResult(
            pairs=session.accumulated[:target_count],
            outcome=outcome,
            attempts=session.attempts,
            last_chunk_index=session.last_chunk_index,
            total_chunks=len(chunks),
        )
