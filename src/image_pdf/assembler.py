"""Assemble an ordered list of images into a single multi-page PDF."""

from __future__ import annotations

import asyncio
import io
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

import img2pdf
import pikepdf

from .config import POINTS_PER_UNIT, AssemblyConfig
from .decoder import DecodedImage, decode_image
from .errors import EmbedError, EmptyInputError, ImagePdfError, ItemError
from .items import ImageItem
from .layout import PagePlacement, plan_placement

logger = logging.getLogger(__name__)

SUPPORTED_EMBED_FORMATS = ("JPEG", "PNG", "WEBP")
DEFAULT_EMBED_FORMAT = "JPEG"

# Maps stored-image unit coordinates (u, v) to displayed ones (s, t) for
# each EXIF orientation, as (su, sv, s0, tu, tv, t0) where
# s = su*u + sv*v + s0 and t = tu*u + tv*v + t0.
_EXIF_TRANSFORMS: dict[int, tuple[int, int, int, int, int, int]] = {
    1: (1, 0, 0, 0, 1, 0),
    2: (-1, 0, 1, 0, 1, 0),
    3: (-1, 0, 1, 0, -1, 1),
    4: (1, 0, 0, 0, -1, 1),
    5: (0, -1, 1, -1, 0, 1),
    6: (0, 1, 0, -1, 0, 1),
    7: (0, 1, 0, 1, 0, 0),
    8: (0, -1, 1, 1, 0, 0),
}


def _draw_matrix(
    orientation: int,
    x: float,
    y: float,
    width: float,
    height: float,
) -> tuple[float, ...]:
    """PDF ``cm`` operands drawing an image upright in the given rectangle."""
    su, sv, s0, tu, tv, t0 = _EXIF_TRANSFORMS.get(orientation, _EXIF_TRANSFORMS[1])
    return (
        width * su,
        height * tu,
        width * sv,
        height * tv,
        x + width * s0,
        y + height * t0,
    )


def negotiate_format(mime_type: str) -> str:
    """Map a MIME type to an embed format, falling back to the default.

    ``image/png`` becomes ``PNG``; anything outside
    :data:`SUPPORTED_EMBED_FORMATS` becomes :data:`DEFAULT_EMBED_FORMAT`.
    """
    _, _, subtype = mime_type.partition("/")
    candidate = subtype.upper()
    if candidate in SUPPORTED_EMBED_FORMATS:
        return candidate
    return DEFAULT_EMBED_FORMAT


@dataclass(frozen=True)
class PageRecord:
    """What ended up on one page of the output."""

    page_number: int
    item_id: str
    item_name: str
    embed_format: str
    placement: PagePlacement


@dataclass(frozen=True)
class AssembledDocument:
    """A finished PDF and a record of its pages, in input order."""

    data: bytes = field(repr=False)
    pages: list[PageRecord]

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def size(self) -> int:
        return len(self.data)

    def write(self, path: Path) -> int:
        """Write the PDF to *path*, creating parent directories.

        Returns:
            Number of bytes written.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.data)
        return self.size


@dataclass(frozen=True)
class AssemblyResult:
    """Either an :class:`AssembledDocument` or the error that stopped it."""

    document: AssembledDocument | None = None
    error: ImagePdfError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> AssembledDocument:
        """Return the document, or raise the stored error."""
        if self.error is not None:
            raise self.error
        if self.document is None:
            raise ImagePdfError("Assembly produced no document")
        return self.document


class PdfBuilder:
    """Mutable PDF accumulator.

    The document starts with one blank page.  Further pages are added with
    :meth:`add_page`, and :meth:`place_image` always draws on the last page.
    Not safe for concurrent use.
    """

    def __init__(self, page_width: float, page_height: float) -> None:
        self._page_size_pt = (
            page_width * POINTS_PER_UNIT,
            page_height * POINTS_PER_UNIT,
        )
        self._pdf = pikepdf.Pdf.new()
        # Rendered single-page PDFs stay open until the output is saved.
        self._sources: list[pikepdf.Pdf] = []
        self._pdf.add_blank_page(page_size=self._page_size_pt)

    def __enter__(self) -> PdfBuilder:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def page_count(self) -> int:
        return len(self._pdf.pages)

    def add_page(self) -> None:
        self._pdf.add_blank_page(page_size=self._page_size_pt)

    def place_image(
        self,
        data: bytes,
        embed_format: str,
        placement: PagePlacement,
        *,
        orientation: int = 1,
    ) -> None:
        """Draw image *data* on the current page at *placement*.

        img2pdf turns the payload into an image XObject without
        re-encoding where the PDF format allows it; the XObject is then
        copied onto the current page and drawn at the planned rectangle.
        A valid EXIF *orientation* is applied here, in the draw matrix.
        Invalid orientation tags are left to img2pdf, which rejects them.
        """
        page_w, page_h = self._page_size_pt
        width = placement.width * POINTS_PER_UNIT
        height = placement.height * POINTS_PER_UNIT
        x = placement.x * POINTS_PER_UNIT
        # PDF user space grows upwards from the bottom-left corner.
        y = page_h - (placement.y * POINTS_PER_UNIT) - height

        options = {}
        if orientation in _EXIF_TRANSFORMS:
            options["rotation"] = img2pdf.Rotation.none
        rendered = img2pdf.convert(
            data,
            layout_fun=lambda *_: (page_w, page_h, width, height),
            **options,
        )
        source = pikepdf.open(io.BytesIO(rendered))
        self._sources.append(source)

        xobjects = source.pages[0].obj.Resources.XObject
        image = self._pdf.copy_foreign(xobjects[next(iter(xobjects.keys()))])

        page = self._pdf.pages[-1]
        name = page.add_resource(image, pikepdf.Name.XObject, prefix="Im")
        matrix = " ".join(
            f"{v:.4f}" for v in _draw_matrix(orientation, x, y, width, height)
        )
        content = f"q {matrix} cm {name} Do Q\n"
        page.obj.Contents = self._pdf.make_stream(content.encode("ascii"))
        logger.debug(
            "Placed %s image on page %d at %.1f,%.1f (%.1fx%.1f pt)",
            embed_format,
            self.page_count,
            x,
            y,
            width,
            height,
        )

    def finalize(self, *, title: str | None = None) -> bytes:
        """Serialize the document to PDF bytes."""
        if title:
            self._pdf.docinfo[pikepdf.Name.Title] = title
        buffer = io.BytesIO()
        self._pdf.save(buffer)
        return buffer.getvalue()

    def close(self) -> None:
        for source in self._sources:
            source.close()
        self._sources.clear()
        self._pdf.close()


class _Assembly:
    """State of one in-flight assembly: the builder and pages so far."""

    def __init__(
        self,
        config: AssemblyConfig,
        on_page_done: Callable[[PageRecord], None] | None,
    ) -> None:
        self.config = config
        self.on_page_done = on_page_done
        self.pages: list[PageRecord] = []
        self.builder = PdfBuilder(config.page_width, config.page_height)

    def __enter__(self) -> _Assembly:
        return self

    def __exit__(self, *exc_info) -> None:
        self.builder.close()

    def add(self, item: ImageItem, decoded: DecodedImage) -> None:
        config = self.config
        placement = plan_placement(
            decoded.width,
            decoded.height,
            config.page_width,
            config.page_height,
            config.margin,
        )
        embed_format = negotiate_format(item.mime_type)
        if embed_format != decoded.format:
            logger.debug(
                "%s: declared %s, detected %s; embedding as %s",
                item.name,
                item.mime_type,
                decoded.format,
                embed_format,
            )

        if self.pages:
            self.builder.add_page()
        try:
            self.builder.place_image(
                decoded.data,
                embed_format,
                placement,
                orientation=decoded.orientation,
            )
        except Exception as exc:
            # img2pdf signals several failures with a bare Exception.
            raise EmbedError(
                f"Could not embed image: {exc}",
                item_id=item.id,
                item_name=item.name,
            ) from exc

        record = PageRecord(
            page_number=len(self.pages) + 1,
            item_id=item.id,
            item_name=item.name,
            embed_format=embed_format,
            placement=placement,
        )
        self.pages.append(record)
        if self.on_page_done is not None:
            self.on_page_done(record)

    def finish(self) -> AssembledDocument:
        data = self.builder.finalize(title=self.config.title)
        logger.info("Assembled %d-page PDF (%d bytes)", len(self.pages), len(data))
        return AssembledDocument(data=data, pages=list(self.pages))


def _failed(exc: ItemError, position: int) -> AssemblyResult:
    exc.position = position
    logger.warning("Assembly aborted: %s", exc)
    return AssemblyResult(error=exc)


def _empty() -> AssemblyResult:
    return AssemblyResult(error=EmptyInputError("No images to assemble"))


def assemble(
    items: Iterable[ImageItem],
    config: AssemblyConfig | None = None,
    *,
    on_page_done: Callable[[PageRecord], None] | None = None,
) -> AssemblyResult:
    """Build one PDF page per image, in the order given.

    Assembly is all-or-nothing: the first image that cannot be decoded or
    embedded stops the run, and the result names that image instead of
    carrying a partial document.

    Args:
        items: Images in output page order.
        config: Page size, margin and orientation.  Defaults to A4 portrait
            with a 40 unit margin.
        on_page_done: Called with each :class:`PageRecord` once its page
            is complete.

    Returns:
        An :class:`AssemblyResult`.  Failures carry an
        :class:`~image_pdf.errors.EmptyInputError`,
        :class:`~image_pdf.errors.DecodeError` or
        :class:`~image_pdf.errors.EmbedError`.
    """
    items = list(items)
    if not items:
        return _empty()
    config = config or AssemblyConfig()

    with _Assembly(config, on_page_done) as job:
        for position, item in enumerate(items, start=1):
            try:
                decoded = decode_image(item.data, item.mime_type, item=item)
                job.add(item, decoded)
            except ItemError as exc:
                return _failed(exc, position)
        return AssemblyResult(document=job.finish())


async def assemble_async(
    items: Iterable[ImageItem],
    config: AssemblyConfig | None = None,
    *,
    on_page_done: Callable[[PageRecord], None] | None = None,
) -> AssemblyResult:
    """Async variant of :func:`assemble`.

    Each image is decoded in a worker thread so the event loop stays
    responsive, but images are still handled strictly one at a time.
    Cancelling the task discards the document being built.
    """
    items = list(items)
    if not items:
        return _empty()
    config = config or AssemblyConfig()

    with _Assembly(config, on_page_done) as job:
        for position, item in enumerate(items, start=1):
            try:
                decoded = await asyncio.to_thread(
                    decode_image, item.data, item.mime_type, item=item
                )
                job.add(item, decoded)
            except ItemError as exc:
                return _failed(exc, position)
        return AssemblyResult(document=job.finish())
