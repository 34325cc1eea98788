"""Command-line entry point: serve the API or extract cards from files."""
from __future__ import annotations
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from tqdm import tqdm

from src.card.aggregator import FieldAggregator
from src.card.config import Settings, configure_logging, load_settings
from src.card.validation import OcrLinesValidationError, parse_ocr_lines
from src.ner.recognizer import TaggerHandle

log = logging.getLogger(__name__)


def read_lines(path: str) -> list[str]:
    if path == "-":
        raw = sys.stdin.read()
    else:
        raw = Path(path).read_text(encoding="utf-8")
    return [ln.strip() for ln in raw.splitlines() if ln.strip()]


async def run_batch(aggregator: FieldAggregator, input_path: Path, output_path: Path) -> dict:
    """Extract every row of a JSONL file carrying ``ocrLines``.

    A failing row gets an ``error`` field; the rest of the file still runs.
    Rows that are not JSON objects are written as ``{"line": n, "error": ...}``
    (plus ``"row"`` when the line parsed).
    Returns: {"total": int, "failed": int}
    """
    with open(input_path, "r", encoding="utf-8") as f:
        raw_lines = [(n, ln.strip()) for n, ln in enumerate(f, start=1) if ln.strip()]

    output_path.parent.mkdir(parents=True, exist_ok=True)
    failed = 0
    with open(output_path, "w", encoding="utf-8") as out:
        for n, raw in tqdm(raw_lines, desc="cards"):
            try:
                row = json.loads(raw)
            except json.JSONDecodeError as e:
                log.warning("Line %d is not valid JSON: %s", n, e)
                row = {"line": n, "error": f"invalid JSON: {e.msg}"}
                failed += 1
            else:
                if not isinstance(row, dict):
                    row = {"line": n, "row": row, "error": "row must be a JSON object"}
                    failed += 1
                else:
                    try:
                        lines = parse_ocr_lines(row)
                    except OcrLinesValidationError as e:
                        row["error"] = str(e)
                        failed += 1
                    else:
                        try:
                            result = await aggregator.extract(lines)
                            row["result"] = result.model_dump(exclude_none=True)
                        except Exception as e:
                            log.exception("Line %d failed", n)
                            row["error"] = str(e)
                            failed += 1
            out.write(json.dumps(row, ensure_ascii=False) + "\n")

    log.info("Batch complete: %d rows, %d failed", len(raw_lines), failed)
    return {"total": len(raw_lines), "failed": failed}


def cmd_serve(settings: Settings, args) -> int:
    import uvicorn
    from src.api.app import create_app
    uvicorn.run(
        create_app(settings),
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


def cmd_extract(settings: Settings, args) -> int:
    aggregator = FieldAggregator(TaggerHandle.from_settings(settings))
    result = asyncio.run(aggregator.extract(read_lines(args.file)))
    print(json.dumps(result.model_dump(exclude_none=True), ensure_ascii=False, indent=2))
    return 0


def cmd_batch(settings: Settings, args) -> int:
    aggregator = FieldAggregator(TaggerHandle.from_settings(settings))
    stats = asyncio.run(run_batch(aggregator, Path(args.input), Path(args.output)))
    return 1 if stats["failed"] else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="card-ner")
    parser.add_argument("--config", help="YAML settings file")
    parser.add_argument("--log-level", help="override log level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p1 = subparsers.add_parser("serve")
    p1.add_argument("--host")
    p1.add_argument("--port", type=int)
    p1.set_defaults(func=cmd_serve)

    p2 = subparsers.add_parser("extract")
    p2.add_argument("file", help="text file with one OCR line per line, '-' for stdin")
    p2.set_defaults(func=cmd_extract)

    p3 = subparsers.add_parser("batch")
    p3.add_argument("input", help="JSONL with an ocrLines array per row")
    p3.add_argument("output")
    p3.set_defaults(func=cmd_batch)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args.config)
    if args.log_level:
        settings.log_level = args.log_level.upper()
    configure_logging(settings.log_level)
    return args.func(settings, args)


if __name__ == "__main__":
    sys.exit(main())
