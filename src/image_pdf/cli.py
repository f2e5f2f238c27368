"""Command-line interface for image-pdf."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TimeRemainingColumn,
)

from . import _resolve_pdf_path
from .assembler import AssembledDocument, assemble_async
from .config import DEFAULT_MARGIN, PAGE_SIZES, AssemblyConfig
from .errors import ImagePdfError, SourceError
from .items import ImageItem
from .sources import collect_items, is_url


def _format_size(num_bytes: int) -> str:
    """Format a byte count as a human-readable string."""
    value = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if abs(value) < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TB"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="image-pdf",
        description=(
            "Combine images into a single PDF, one image per page, scaled to"
            " fit and centered."
        ),
    )
    parser.add_argument(
        "sources",
        nargs="+",
        help=(
            "Image files, directories of images, or http(s) URLs."
            " Pages follow the order given; directories are read in name order."
        ),
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help=(
            "Output path: a .pdf file path, a directory, or omit for"
            " converted-images.pdf in CWD."
        ),
    )
    parser.add_argument(
        "--page-size",
        choices=sorted(PAGE_SIZES),
        default="a4",
        help="Page size (default: a4)",
    )
    parser.add_argument(
        "--landscape",
        action="store_const",
        const="landscape",
        default="portrait",
        dest="orientation",
        help="Use landscape pages instead of portrait",
    )
    parser.add_argument(
        "--margin",
        type=float,
        default=DEFAULT_MARGIN,
        help=f"Margin around each image in pixels at 96 dpi (default: {DEFAULT_MARGIN:g})",
    )
    parser.add_argument(
        "--title",
        default=None,
        help="Document title stored in the PDF metadata",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Log each decoded and placed image",
    )
    return parser


def _configure_logging(*, console: Console, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _make_progress(console: Console) -> Progress:
    return Progress(
        SpinnerColumn(),
        "[progress.description]{task.description}",
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console,
    )


async def _collect_with_progress(
    *,
    console: Console,
    sources: list[str],
) -> list[ImageItem]:
    """Gather images, showing a progress bar while URLs download."""
    url_count = sum(1 for s in sources if is_url(s))
    progress = _make_progress(console)
    with progress:
        task_id = progress.add_task(
            description="Fetching images",
            total=url_count,
            visible=url_count > 0,
        )
        collected = await collect_items(
            sources,
            on_item_done=lambda: progress.advance(task_id=task_id),
        )

    if collected.failures:
        for source in collected.failed_sources:
            console.print(f"  [red]- {source}[/red]")
        raise SourceError(f"Could not fetch {collected.failures} image(s)")
    return collected.items


async def _assemble_with_progress(
    *,
    console: Console,
    items: list[ImageItem],
    config: AssemblyConfig,
) -> AssembledDocument:
    """Assemble pages with a rich progress bar."""
    progress = _make_progress(console)
    with progress:
        task_id = progress.add_task(
            description="Building pages",
            total=len(items),
        )
        result = await assemble_async(
            items,
            config,
            on_page_done=lambda _record: progress.advance(task_id=task_id),
        )
    return result.unwrap()


async def _async_main(args: argparse.Namespace) -> None:
    console = Console()
    start_time = time.monotonic()

    config = AssemblyConfig(
        page_size=args.page_size,
        margin=args.margin,
        orientation=args.orientation,
        title=args.title,
    )
    pdf_path = _resolve_pdf_path(output=args.output)

    items = await _collect_with_progress(console=console, sources=args.sources)
    console.print(f"Found {len(items)} image(s)")

    document = await _assemble_with_progress(
        console=console,
        items=items,
        config=config,
    )

    with console.status("[bold blue]Writing PDF..."):
        pdf_size = document.write(pdf_path)

    elapsed = time.monotonic() - start_time

    summary_lines = [
        f"[bold]Pages:[/bold] {document.page_count}",
        f"[bold]Page size:[/bold] {args.page_size.upper()} {args.orientation}",
        f"[bold]PDF size:[/bold] {_format_size(pdf_size)}",
        f"[bold]Output:[/bold] {pdf_path}",
    ]

    console.print(Panel(
        "\n".join(summary_lines),
        title=f"[bold green]Done in {elapsed:.1f}s[/bold green]",
        border_style="green",
    ))


def main() -> None:
    """Entry point for the ``image-pdf`` CLI command."""
    console = Console(stderr=True)
    parser = _build_parser()
    args = parser.parse_args()
    _configure_logging(console=console, verbose=args.verbose)

    try:
        asyncio.run(_async_main(args=args))
    except (ImagePdfError, FileNotFoundError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted.[/dim]")
        sys.exit(130)
