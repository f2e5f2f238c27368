"""Page configuration for document assembly.

Page-space units are CSS pixels (96 per inch), the same unit image
dimensions are reported in.  PDF points are 72 per inch, so one unit is
``0.75`` points.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

from .errors import ConfigurationError

POINTS_PER_UNIT = 72 / 96

DEFAULT_PAGE_SIZE = "a4"
DEFAULT_MARGIN = 40.0
DEFAULT_ORIENTATION = "portrait"

Orientation = Literal["portrait", "landscape"]

_ORIENTATIONS = ("portrait", "landscape")

# Portrait sizes in PDF points.
_PAGE_SIZES_PT: dict[str, tuple[float, float]] = {
    "a3": (841.89, 1190.55),
    "a4": (595.28, 841.89),
    "a5": (419.53, 595.28),
    "letter": (612.0, 792.0),
    "legal": (612.0, 1008.0),
}

PAGE_SIZES: dict[str, tuple[float, float]] = {
    name: (w / POINTS_PER_UNIT, h / POINTS_PER_UNIT)
    for name, (w, h) in _PAGE_SIZES_PT.items()
}


def _is_positive(value: float) -> bool:
    return math.isfinite(value) and value > 0


def check_page_geometry(
    page_width: float,
    page_height: float,
    margin: float,
) -> None:
    """Validate a page size and margin combination.

    Raises:
        ConfigurationError: If either dimension is not a positive finite
            number, the margin is negative or non-finite, or the margins
            leave no room on the page.
    """
    if not (_is_positive(page_width) and _is_positive(page_height)):
        raise ConfigurationError(
            f"Page size must be positive, got {page_width} x {page_height}"
        )
    if not math.isfinite(margin) or margin < 0:
        raise ConfigurationError(f"Margin must be a non-negative number, got {margin}")
    if margin * 2 >= page_width or margin * 2 >= page_height:
        raise ConfigurationError(
            f"Margin {margin} leaves no room on a "
            f"{page_width:g} x {page_height:g} page"
        )


@dataclass(frozen=True)
class AssemblyConfig:
    """Page layout settings for one assembly.

    Args:
        page_size: A preset name from :data:`PAGE_SIZES` (case-insensitive)
            or an explicit ``(width, height)`` in page-space units.
        margin: Uniform inset from every page edge.
        orientation: ``"portrait"`` or ``"landscape"``.
        title: Optional document title written to the PDF metadata.
    """

    page_size: str | tuple[float, float] = DEFAULT_PAGE_SIZE
    margin: float = DEFAULT_MARGIN
    orientation: Orientation = DEFAULT_ORIENTATION
    title: str | None = None

    def __post_init__(self) -> None:
        if self.orientation not in _ORIENTATIONS:
            raise ConfigurationError(
                f"Unknown orientation {self.orientation!r}; "
                f"expected one of {', '.join(_ORIENTATIONS)}"
            )
        width, height = self.page_dimensions
        check_page_geometry(width, height, self.margin)

    @property
    def page_dimensions(self) -> tuple[float, float]:
        """Page ``(width, height)`` after applying the orientation."""
        if isinstance(self.page_size, str):
            try:
                width, height = PAGE_SIZES[self.page_size.lower()]
            except KeyError:
                raise ConfigurationError(
                    f"Unknown page size {self.page_size!r}; "
                    f"expected one of {', '.join(PAGE_SIZES)}"
                ) from None
        else:
            width, height = (float(v) for v in self.page_size)

        short, long = sorted((width, height))
        if self.orientation == "landscape":
            return long, short
        return short, long

    @property
    def page_width(self) -> float:
        return self.page_dimensions[0]

    @property
    def page_height(self) -> float:
        return self.page_dimensions[1]
