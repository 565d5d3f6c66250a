from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class RawDoc:
    source_id: str  # stable ID (resolved path)
    text: str  # full extracted text
    metadata: Dict[str, Any]  # { "source": "...", "type": "pdf|docx|text", "extractor": "tika|pypdf|local" }
    content_sha1: str  # hash of the extracted text


@dataclass(frozen=True)
class TextChunk:
    index: int  # 1-based position in the document
    text: str

    def __len__(self) -> int:
        return len(self.text)
