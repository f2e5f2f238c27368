"""Exception hierarchy for image-pdf."""

from __future__ import annotations


class ImagePdfError(Exception):
    """Base exception for image-pdf errors."""


class EmptyInputError(ImagePdfError):
    """Raised when assembly is requested with no images."""


class ConfigurationError(ImagePdfError, ValueError):
    """Raised when the page size, margin or orientation is invalid."""


class SourceError(ImagePdfError):
    """Raised when one or more input sources could not be fetched."""


class ItemError(ImagePdfError):
    """Base class for failures attributable to a single image.

    Attributes:
        item_id: Identity of the offending image, if known.
        item_name: Display name of the offending image, if known.
        position: 1-based position of the image in the input, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        item_id: str | None = None,
        item_name: str | None = None,
        position: int | None = None,
    ) -> None:
        super().__init__(message)
        self.item_id = item_id
        self.item_name = item_name
        self.position = position

    def __str__(self) -> str:
        message = super().__str__()
        if self.item_name is None:
            return message
        prefix = f"Image {self.item_name}"
        if self.position is not None:
            prefix += f" (#{self.position})"
        return f"{prefix}: {message}"


class DecodeError(ItemError):
    """Raised when image data is empty, corrupt or not a raster image."""


class EmbedError(ItemError):
    """Raised when a decoded image cannot be placed into the PDF."""
