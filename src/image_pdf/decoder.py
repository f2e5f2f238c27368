"""Read displayed pixel dimensions from raw image bytes."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field

from PIL import ExifTags, Image, UnidentifiedImageError

from .errors import DecodeError
from .items import ImageItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodedImage:
    """Displayed size of an image plus the payload needed to embed it.

    ``width`` and ``height`` already account for the EXIF orientation, so a
    portrait photo stored sideways reports a portrait size.  ``orientation``
    is the raw EXIF tag value (1 when absent).
    """

    width: int
    height: int
    format: str | None
    data: bytes = field(repr=False)
    orientation: int = 1


# EXIF orientations whose stored pixels are transposed relative to display.
_TRANSPOSED_ORIENTATIONS = (5, 6, 7, 8)


def decode_image(
    payload: bytes,
    declared_type: str = "",
    *,
    item: ImageItem | None = None,
) -> DecodedImage:
    """Decode *payload* far enough to trust its width and height.

    The whole raster is loaded so that truncated files are caught here
    rather than when the PDF is written.  *declared_type* is informational
    only; the format is detected from the data itself.

    Raises:
        DecodeError: If the payload is empty, not a recognizable raster
            image, corrupt, or has no usable size.
    """
    identity = {}
    if item is not None:
        identity = {"item_id": item.id, "item_name": item.name}

    if not payload:
        raise DecodeError("Image data is empty", **identity)

    try:
        with Image.open(io.BytesIO(payload)) as img:
            img.load()
            width, height = img.size
            detected = img.format
            orientation = img.getexif().get(ExifTags.Base.Orientation, 1)
    except UnidentifiedImageError as exc:
        raise DecodeError("Not a recognizable image format", **identity) from exc
    except Image.DecompressionBombError as exc:
        raise DecodeError(f"Image is too large to decode: {exc}", **identity) from exc
    except (OSError, SyntaxError, ValueError) as exc:
        raise DecodeError(f"Image data is corrupt: {exc}", **identity) from exc

    if width <= 0 or height <= 0:
        raise DecodeError(f"Image has no usable size ({width}x{height})", **identity)
    if orientation in _TRANSPOSED_ORIENTATIONS:
        width, height = height, width

    logger.debug(
        "Decoded %s: %dx%d %s orientation %s (declared %s)",
        item.name if item is not None else "image",
        width,
        height,
        detected,
        orientation,
        declared_type or "unknown",
    )
    return DecodedImage(
        width=width,
        height=height,
        format=detected,
        data=payload,
        orientation=orientation,
    )
