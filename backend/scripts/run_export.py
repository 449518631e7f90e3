#!/usr/bin/env python3
"""
Run an export job from the terminal against the configured catalog API.

Identifiers come from ``--codes`` or a spreadsheet via ``--file``.  Document
batches stop at every record that needs its image order reviewed and ask
for a new order on stdin.

Usage:
    cd backend
    python -m scripts.run_export --kind DOCUMENT_BATCH --codes "SKU-1,SKU-2" --out ./out
    python -m scripts.run_export --kind LOGISTICS_REPORT --file orders.xlsx --out ./out
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from catalog_export.clients import CatalogClient  # noqa: E402
from catalog_export.core.config import settings  # noqa: E402
from catalog_export.core.constants import ExportKind, JobState  # noqa: E402
from catalog_export.core.logging import setup_logging  # noqa: E402
from catalog_export.factory import build_orchestrator  # noqa: E402
from catalog_export.pipeline.errors import InvalidOrderingError  # noqa: E402
from catalog_export.rendering import PdfArtifactRenderer  # noqa: E402


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Export product PDFs or a logistics workbook")
    parser.add_argument("--kind", choices=[k.value for k in ExportKind], default=ExportKind.DOCUMENT_BATCH.value)
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--codes", help="identifiers separated by commas, spaces or newlines")
    source.add_argument("--file", type=Path, help=".xlsx / .xls / .csv with an identifier column")
    parser.add_argument("--out", type=Path, default=Path("."), help="output directory")
    parser.add_argument("--yes", action="store_true", help="accept every suspension with its original order")
    return parser.parse_args(argv)


def _print_progress(snapshot):
    print(
        f"  [{snapshot.state}] {snapshot.current_index}/{snapshot.total}"
        f"  ok={snapshot.succeeded} failed={snapshot.failed} skipped={snapshot.skipped}"
        + (f"  current={snapshot.current_record}" if snapshot.current_record else "")
    )


def _parse_positions(answer, size):
    """Turn '2 1 3' into 0-based positions; raises ValueError naming the bad entry."""
    positions = []
    for token in answer.replace(",", " ").split():
        if not token.isdecimal():
            raise ValueError(f"'{token}' is not a position number")
        position = int(token)
        if not 1 <= position <= size:
            raise ValueError(f"position {position} is outside 1..{size}")
        positions.append(position - 1)
    return positions


def _ask_ordering(suspension):
    """Prompt for a new order as 1-based positions; empty keeps the draft, 'c' cancels."""
    print(f"\n{'─' * 50}")
    print(f"  Review required: {suspension.record.code} (category {suspension.policy.id})")
    for position, url in enumerate(suspension.draft, start=1):
        print(f"    {position}. {url}")
    while True:
        answer = input("  New order (e.g. 2 1 3), Enter to keep, 'c' to cancel the job: ").strip()
        if answer.lower() == "c":
            return None, True
        if not answer:
            return None, False
        try:
            positions = _parse_positions(answer, len(suspension.draft))
        except ValueError as exc:
            print(f"  ✗ {exc}")
            continue
        return [suspension.draft[p] for p in positions], False


async def run(args):
    client = CatalogClient.from_settings()
    renderer = PdfArtifactRenderer.from_settings()
    try:
        orchestrator = build_orchestrator(ExportKind(args.kind), client=client, renderer=renderer)
        orchestrator.subscribe(_print_progress)

        if args.file:
            snapshot = orchestrator.submit_file(args.file.name, args.file.read_bytes())
        else:
            snapshot = orchestrator.submit_input(args.codes)
        if snapshot.state == JobState.INPUT_COLLECTED:
            snapshot = await orchestrator.start_resolve()
        if snapshot.state == JobState.FAILED_PRECONDITION:
            print(f"\n  ✗ {snapshot.failure_reason}: {snapshot.failure_message}")
            return 1

        args.out.mkdir(parents=True, exist_ok=True)
        if snapshot.state == JobState.LOGISTICS_READY:
            handle = orchestrator.finalize_report()
        else:
            snapshot = await orchestrator.start_generate()
            while snapshot.state == JobState.SUSPENDED:
                suspension = orchestrator.suspension
                ordering, cancel = (None, False) if args.yes else _ask_ordering(suspension)
                try:
                    snapshot = await orchestrator.resolve_suspension(suspension.token, ordering, cancel=cancel)
                except InvalidOrderingError as exc:
                    print(f"  ✗ {exc}")
            if snapshot.state != JobState.COMPLETED:
                print(f"\n  Job ended as {snapshot.state}")
                return 1
            handle = orchestrator.archive()

        target = args.out / handle.filename
        target.write_bytes(handle.content)

        summary = orchestrator.summary()
        print(f"\n{'─' * 50}")
        print(f"  Output     : {target}")
        print(f"  Succeeded  : {summary.succeeded}")
        print(f"  Skipped    : {summary.skipped}")
        print(f"  Failed     : {summary.failed}")
        for failure in summary.failures:
            print(f"    ✗ {failure.display_code}: {failure.reason}")
        if summary.unresolved:
            print(f"  Unresolved : {', '.join(summary.unresolved)}")
        return 0
    finally:
        await renderer.aclose()
        await client.aclose()


def main(argv=None):
    setup_logging(settings.effective_log_level)
    return asyncio.run(run(_parse_args(argv)))


if __name__ == "__main__":
    sys.exit(main())
