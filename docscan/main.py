import argparse
import asyncio
import sys
from pathlib import Path

from docscan.config.settings import Settings
from docscan.logging.logger import Log
from docscan.sources.exceptions import InvalidSourceError
from docscan.sources.file_source import discover_sources
from docscan.workspace import Workspace, build_workspace


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="docscan",
        description="Scan a folder of documents and print a CSV summary.",
    )
    parser.add_argument("directory", type=Path, help="folder to scan")
    parser.add_argument("--no-recursive", action="store_true", help="do not descend into subfolders")
    parser.add_argument("--deep", action="store_true", help="also run deep metadata and full key-data scans")
    parser.add_argument("--ocr", action="store_true", help="also run OCR on eligible documents")
    parser.add_argument("--output", type=Path, default=None, help="write the CSV here instead of stdout")
    return parser.parse_args(argv)


async def _run(workspace: Workspace, args: argparse.Namespace) -> None:
    workspace.ingest(discover_sources(args.directory, recursive=not args.no_recursive))
    report = await workspace.process()
    Log.info(
        f"Quick scan done: {report.completed} completed, {report.errored} errored, "
        f"batches {report.batches}"
    )
    for document in workspace.registry.query():
        if args.deep:
            await workspace.run_metadata_deep(document.id)
            await workspace.run_keydata_full(document.id)
            await workspace.reclassify(document.id)
        if args.ocr:
            await workspace.run_ocr(document.id)


def main(argv: list[str] | None = None) -> None:
    """Entry point: load settings -> build workspace -> scan -> export."""
    args = _parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level, stream=sys.stderr)

    workspace = build_workspace(settings)
    try:
        asyncio.run(_run(workspace, args))
    except InvalidSourceError as exc:
        Log.error(f"Cannot scan {args.directory}: {exc}")
        raise SystemExit(2) from exc

    csv_text = workspace.export_summary()
    if args.output is not None:
        args.output.write_text(csv_text, encoding="utf-8")
        Log.info(f"Summary written to {args.output}")
    else:
        sys.stdout.write(csv_text)


if __name__ == "__main__":
    main()
