from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, field_validator


class GeneratedPair(BaseModel):
    """One question/answer unit. Both fields are trimmed and non-empty."""

    model_config = ConfigDict(frozen=True)

    question: str
    answer: str

    @field_validator("question", "answer")
    @classmethod
    def _non_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must be a non-empty string")
        return v

    def to_dict(self) -> Dict[str, str]:
        return {"question": self.question, "answer": self.answer}


class Outcome(str, Enum):
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass
class GenerationSession:
    """Mutable state of one top-level generate call."""

    target_count: int
    accumulated: List[GeneratedPair] = field(default_factory=list)
    attempts: int = 0
    last_chunk_index: int = 0

    @property
    def needed(self) -> int:
        return self.target_count - len(self.accumulated)

    @property
    def done(self) -> bool:
        return len(self.accumulated) >= self.target_count


@dataclass(frozen=True)
class GenerationResult:
    pairs: List[GeneratedPair]
    outcome: Outcome
    attempts: int
    last_chunk_index: int  # 0-based, for resuming with start_chunk
    total_chunks: int

    @property
    def exhausted(self) -> bool:
        return self.outcome is Outcome.EXHAUSTED
