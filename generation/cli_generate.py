from __future__ import annotations

import argparse
from pathlib import Path

from common.config import yaml_config
from common.logger import get_logger
from generation.pipeline import generate_for_folder

log = get_logger(__name__)

MIN_COUNT = 1
MAX_COUNT = 20


def main():
    parser = argparse.ArgumentParser(
        description="Generate question/answer pairs from legal documents (PDF/DOCX/TXT)."
    )
    parser.add_argument(
        "--input_dir",
        type=str,
        default=str(yaml_config.app.data_dir),
        help="Folder with PDF/DOCX/TXT/MD documents",
    )
    parser.add_argument(
        "--count", type=int, default=5, help="Q&A pairs per document (1-20)"
    )
    parser.add_argument(
        "--output_dir",
        type=str,
        default=str(yaml_config.app.output_dir),
        help="Where to write <name>.qa.jsonl files and the manifest",
    )
    parser.add_argument(
        "--no_tika",
        action="store_true",
        help="Extract locally (txt/md, pdf via pypdf) instead of calling Tika",
    )
    args = parser.parse_args()

    input_dir = Path(args.input_dir)
    if not input_dir.exists():
        log.error("Input directory does not exist: %s", input_dir)
        raise SystemExit(1)
    if not MIN_COUNT <= args.count <= MAX_COUNT:
        log.error("--count must be between %d and %d", MIN_COUNT, MAX_COUNT)
        raise SystemExit(1)

    manifest = generate_for_folder(
        input_dir=input_dir,
        count=args.count,
        output_dir=Path(args.output_dir),
        use_tika=False if args.no_tika else None,
    )
    failed = [m for m in manifest if "error" in m]
    log.info(
        "Done: %d documents, %d pairs, %d failed",
        len(manifest),
        sum(m["pairs"] for m in manifest),
        len(failed),
    )
    if failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
