"""Source images and loading them from the local filesystem."""

from __future__ import annotations

import logging
import mimetypes
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

_FALLBACK_MIME_TYPE = "application/octet-stream"


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ImageItem:
    """One source image destined for one output page."""

    data: bytes = field(repr=False)
    mime_type: str
    name: str
    id: str = field(default_factory=_new_id)

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @classmethod
    def from_path(cls, path: Path | str) -> ImageItem:
        """Read an image file, guessing its MIME type from the file name.

        Raises:
            FileNotFoundError: If *path* does not exist.
        """
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Image not found: {path}")

        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            data=path.read_bytes(),
            mime_type=mime_type or _FALLBACK_MIME_TYPE,
            name=path.name,
        )


def _expand(path: Path) -> list[Path]:
    if path.is_dir():
        return sorted(p for p in path.iterdir() if p.is_file())
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")
    return [path]


def load_image_items(paths: Iterable[Path | str]) -> list[ImageItem]:
    """Load image files in order.

    Directories are expanded to the files they contain, sorted by name.
    Files whose type is not ``image/*`` are skipped with a warning.

    Raises:
        FileNotFoundError: If any path does not exist.
    """
    items: list[ImageItem] = []
    for raw in paths:
        for path in _expand(Path(raw)):
            item = ImageItem.from_path(path)
            if not item.is_image:
                logger.warning("Skipping %s: not an image (%s)", path, item.mime_type)
                continue
            items.append(item)
    return items
