from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List

import orjson
from tqdm import tqdm

from common.config import yaml_config
from common.logger import get_logger
from generation.errors import QAGenerationError
from generation.models import GeneratedPair
from generation.orchestrator import QAGenerator
from ingestion.loaders import discover_files, load_document
from ingestion.tika_client import ExtractionError, TikaClient

log = get_logger(__name__)


def write_jsonl(path: Path, pairs: Iterable[GeneratedPair]) -> int:
    path.parent.mkdir(parents=True, exist_ok=True)
    n = 0
    with path.open("wb") as f:
        for p in pairs:
            f.write(orjson.dumps(p.to_dict(), option=orjson.OPT_APPEND_NEWLINE))
            n += 1
    return n


def generate_for_folder(
    input_dir: Path | None = None,
    count: int = 5,
    output_dir: Path | None = None,
    use_tika: bool | None = None,
    generator: QAGenerator | None = None,
    tika: TikaClient | None = None,
) -> List[Dict[str, Any]]:
    """
    Generate Q&A pairs for every supported document in a folder.
    - Extracts text (Tika, or local readers)
    - Generates up to ``count`` pairs per document
    - Writes one JSONL file per document
    - Writes a manifest JSON (for audit/debug)

    A document that fails is recorded in the manifest and skipped.
    """
    input_dir = Path(input_dir or yaml_config.app.data_dir)
    output_dir = Path(output_dir or yaml_config.app.output_dir)
    use_tika = yaml_config.tika.enabled if use_tika is None else use_tika
    if use_tika and tika is None:
        tika = TikaClient.from_config(yaml_config.tika)
    if not use_tika:
        tika = None
    generator = generator or QAGenerator.from_config(yaml_config)

    files = discover_files(input_dir)
    log.info("Discovered %d documents in %s", len(files), input_dir)
    if not files:
        log.warning("No documents found to process.")
        return []

    manifest: List[Dict[str, Any]] = []
    for f in tqdm(files, desc="Generating Q&A", unit="doc"):
        entry: Dict[str, Any] = {"file": f.name, "requested": count, "pairs": 0}
        try:
            doc = load_document(f, tika=tika)
            result = generator.run(doc.text, count)
        except (ExtractionError, QAGenerationError, ValueError) as e:
            log.error("Failed to generate Q&A for %s: %s", f.name, e)
            entry["error"] = f"{type(e).__name__}: {e}"
            manifest.append(entry)
            continue

        out = output_dir / f"{f.stem}.qa.jsonl"
        entry.update(
            {
                "output": str(out),
                "pairs": write_jsonl(out, result.pairs),
                "outcome": result.outcome.value,
                "attempts": result.attempts,
                "last_chunk_index": result.last_chunk_index,
                "total_chunks": result.total_chunks,
                "sha1": doc.content_sha1,
                "chars": len(doc.text),
            }
        )
        manifest.append(entry)

    out = output_dir / "manifest.json"
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(orjson.dumps(manifest, option=orjson.OPT_INDENT_2))
    log.info("Wrote manifest to %s", out)
    return manifest
