"""Shared image fixtures — images are synthesized in memory."""

from __future__ import annotations

import io
import struct
import zlib

import pytest
from PIL import ExifTags, Image

from image_pdf.items import ImageItem


def create_minimal_png(*, width: int = 100, height: int = 100) -> bytes:
    """Create a minimal valid RGB PNG."""

    def _chunk(chunk_type: bytes, data: bytes) -> bytes:
        c = chunk_type + data
        crc = struct.pack(">I", zlib.crc32(c) & 0xFFFFFFFF)
        return struct.pack(">I", len(data)) + c + crc

    signature = b"\x89PNG\r\n\x1a\n"
    ihdr_data = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    ihdr = _chunk(b"IHDR", ihdr_data)

    raw_data = b""
    for _ in range(height):
        raw_data += b"\x00" + b"\xff\x00\x00" * width
    idat = _chunk(b"IDAT", zlib.compress(raw_data))
    iend = _chunk(b"IEND", b"")

    return signature + ihdr + idat + iend


def create_jpeg(
    *,
    width: int = 64,
    height: int = 64,
    noisy: bool = False,
    orientation: int | None = None,
) -> bytes:
    if noisy:
        img = Image.effect_noise((width, height), 64).convert("RGB")
    else:
        img = Image.new("RGB", (width, height), (0, 128, 255))
    extra = {}
    if orientation is not None:
        exif = Image.Exif()
        exif[ExifTags.Base.Orientation] = orientation
        extra["exif"] = exif
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=95, **extra)
    return buffer.getvalue()


@pytest.fixture
def png_item():
    def _make(width: int = 100, height: int = 100, name: str | None = None) -> ImageItem:
        return ImageItem(
            data=create_minimal_png(width=width, height=height),
            mime_type="image/png",
            name=name or f"{width}x{height}.png",
        )

    return _make


@pytest.fixture
def jpeg_item():
    def _make(width: int = 64, height: int = 64, name: str = "photo.jpg") -> ImageItem:
        return ImageItem(
            data=create_jpeg(width=width, height=height),
            mime_type="image/jpeg",
            name=name,
        )

    return _make
