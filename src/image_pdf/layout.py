"""Fit-and-center placement of an image on a fixed-size page."""

from __future__ import annotations

import math
from dataclasses import dataclass

from .config import check_page_geometry


@dataclass(frozen=True)
class PagePlacement:
    """Rectangle an image occupies on its page, in page-space units.

    ``x`` and ``y`` are measured from the top-left corner of the page.
    """

    width: float
    height: float
    x: float
    y: float


def plan_placement(
    intrinsic_width: float,
    intrinsic_height: float,
    page_width: float,
    page_height: float,
    margin: float,
) -> PagePlacement:
    """Scale an image to the largest size that fits inside the page margins.

    The aspect ratio is preserved and the result is centered within the
    margin box.  Width is fitted first; only when that makes the image too
    tall is the height used as the constraint instead.

    Raises:
        ValueError: If the intrinsic size is not positive and finite.
        ConfigurationError: If the page size or margin is invalid.
    """
    if not all(
        math.isfinite(v) and v > 0 for v in (intrinsic_width, intrinsic_height)
    ):
        raise ValueError(
            f"Image size must be positive, got {intrinsic_width} x {intrinsic_height}"
        )
    check_page_geometry(page_width, page_height, margin)

    available_width = page_width - 2 * margin
    available_height = page_height - 2 * margin
    aspect = intrinsic_width / intrinsic_height

    width = available_width
    height = width / aspect
    if height > available_height:
        height = available_height
        width = height * aspect

    return PagePlacement(
        width=width,
        height=height,
        x=margin + (available_width - width) / 2,
        y=margin + (available_height - height) / 2,
    )
