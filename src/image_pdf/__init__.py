"""image-pdf: Combine images into a single PDF, one centered image per page."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from .assembler import (
    AssembledDocument,
    AssemblyResult,
    PageRecord,
    assemble,
    assemble_async,
    negotiate_format,
)
from .config import PAGE_SIZES, AssemblyConfig
from .decoder import DecodedImage, decode_image
from .errors import (
    ConfigurationError,
    DecodeError,
    EmbedError,
    EmptyInputError,
    ImagePdfError,
    ItemError,
    SourceError,
)
from .items import ImageItem, load_image_items
from .layout import PagePlacement, plan_placement
from .sources import collect_items

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "PAGE_SIZES",
    "AssembledDocument",
    "AssemblyConfig",
    "AssemblyResult",
    "BuildResult",
    "ConfigurationError",
    "DecodeError",
    "DecodedImage",
    "EmbedError",
    "EmptyInputError",
    "ImageItem",
    "ImagePdfError",
    "ItemError",
    "PagePlacement",
    "PageRecord",
    "SourceError",
    "assemble",
    "assemble_async",
    "build_pdf",
    "collect_items",
    "decode_image",
    "load_image_items",
    "negotiate_format",
    "plan_placement",
]

DEFAULT_PDF_NAME = "converted-images.pdf"


@dataclass
class BuildResult:
    """Summary of a :func:`build_pdf` run."""

    page_count: int
    total_bytes: int
    output_path: Path


def _resolve_pdf_path(
    *,
    output: Path | str | None,
    default_name: str = DEFAULT_PDF_NAME,
) -> Path:
    """Resolve the output PDF file path.

    Rules:
        - ``None`` → ``{cwd}/{default_name}``
        - Ends in ``.pdf`` → treated as literal file path
        - Otherwise → treated as directory: ``{path}/{default_name}``
    """
    if output is None:
        return Path(default_name).resolve()

    output = Path(output)
    if output.suffix.lower() == ".pdf":
        return output.resolve()

    return (output / default_name).resolve()


async def build_pdf(
    sources: Sequence[Path | str],
    output: Path | str | None = None,
    *,
    config: AssemblyConfig | None = None,
    concurrency: int = 10,
    max_retries: int = 3,
) -> BuildResult:
    """Combine images from files, directories and URLs into one PDF.

    This is the high-level convenience function that gathers the images,
    assembles them in the order given and writes the result.

    Args:
        sources: Image files, directories of images, or HTTP(S) URLs.
        output: Output path.  Omit for ``converted-images.pdf`` in the CWD,
            pass a ``.pdf`` path to use it literally, or pass a directory to
            save ``converted-images.pdf`` inside it.
        config: Page size, margin, orientation and title.
        concurrency: Maximum number of concurrent image downloads.
        max_retries: Number of attempts per image download.

    Returns:
        A :class:`BuildResult` summarizing the outcome.

    Raises:
        FileNotFoundError: If a local source does not exist.
        SourceError: If any URL could not be fetched.
        EmptyInputError: If the sources contain no images.
        DecodeError: If an image cannot be decoded.
        EmbedError: If an image cannot be placed into the PDF.

    Example::

        import asyncio
        from image_pdf import build_pdf

        result = asyncio.run(build_pdf(["scan1.jpg", "scan2.png"]))
        print(f"Saved PDF to {result.output_path}")
    """
    pdf_path = _resolve_pdf_path(output=output)

    collected = await collect_items(
        sources,
        concurrency=concurrency,
        max_retries=max_retries,
    )
    if collected.failures:
        raise SourceError(
            f"Could not fetch {collected.failures} image(s): "
            + ", ".join(collected.failed_sources)
        )

    result = await assemble_async(collected.items, config)
    document = result.unwrap()
    size = document.write(pdf_path)

    return BuildResult(
        page_count=document.page_count,
        total_bytes=size,
        output_path=pdf_path,
    )
