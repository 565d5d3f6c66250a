from __future__ import annotations

import hashlib
from pathlib import Path
from typing import List

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from common.logger import get_logger
from ingestion.cleaners import clean_extracted_text, normalize_text
from ingestion.document_models import RawDoc
from ingestion.tika_client import EmptyExtractionError, ExtractionError, TikaClient

log = get_logger(__name__)

TEXT_EXTS = (".txt", ".md")
TIKA_EXTS = (".pdf", ".docx", ".doc")
ALLOWED_EXTS = TEXT_EXTS + TIKA_EXTS


def discover_files(root: Path) -> List[Path]:
    """
    Recursively find all supported documents under ``root``.
    """
    paths: List[Path] = []
    for p in root.rglob("*"):
        if p.is_file() and p.suffix.lower() in ALLOWED_EXTS:
            paths.append(p)
    return sorted(paths)


def load_document(path: Path, tika: TikaClient | None = None) -> RawDoc:
    """
    Extract the text of one document.

    Plain text files are read locally. PDF/DOCX go through Tika when a client
    is given; without one, PDFs fall back to pypdf and Word files are rejected.
    """
    ext = path.suffix.lower()
    if ext in TEXT_EXTS:
        text = normalize_text(path.read_text(encoding="utf-8", errors="ignore"))
        extractor = "local"
    elif ext in TIKA_EXTS and tika is not None:
        text = tika.extract_text(path.read_bytes())
        extractor = "tika"
    elif ext == ".pdf":
        text = _extract_pdf_text(path)
        extractor = "pypdf"
    else:
        raise ValueError(f"Unsupported file type (or no Tika client given): {path.name}")

    if not text.strip():
        raise EmptyExtractionError(f"No text could be extracted from {path.name}")

    return RawDoc(
        source_id=str(path.resolve()),
        text=text,
        metadata={"source": path.name, "type": ext.lstrip("."), "extractor": extractor},
        content_sha1=hashlib.sha1(text.encode("utf-8")).hexdigest(),
    )


def _extract_pdf_text(path: Path) -> str:
    try:
        reader = PdfReader(str(path))
        pages = [page.extract_text() or "" for page in reader.pages]
    except PyPdfError as e:
        log.error("pypdf could not read %s: %s", path.name, e)
        raise ExtractionError(f"Could not read PDF {path.name}: {e}") from e
    log.info("pypdf read %d pages from %s", len(pages), path.name)
    # page breaks become paragraph breaks so the chunker can regroup them
    return clean_extracted_text("\n\n".join(pages))
