"""Line display style with ARGB colors."""

from dataclasses import dataclass
from enum import Enum

BLACK = 0xFF000000
WHITE = 0xFFFFFFFF
RED = 0xFFFF0000
BLUE = 0xFF0000FF
GRAY = 0xFF888888
DKGRAY = 0xFF444444
TRANSPARENT = 0x00000000


class Shape(Enum):
    RECT = "rect"
    ROUNDED = "rounded"
    CIRCLE = "circle"


def parse_color(color: str) -> int:
    """Parse ``#rrggbb`` (opaque) or ``#aarrggbb`` into an ARGB integer."""
    if not color or not color.startswith("#"):
        raise ValueError(f"Unknown color: {color!r}")
    digits = color[1:]
    try:
        value = int(digits, 16)
    except ValueError as e:
        raise ValueError(f"Unknown color: {color!r}") from e
    if len(digits) == 6:
        return 0xFF000000 | value
    if len(digits) == 8:
        return value
    raise ValueError(f"Unknown color: {color!r}")


def rgb(red: int, green: int, blue: int) -> int:
    return 0xFF000000 | (red & 0xFF) << 16 | (green & 0xFF) << 8 | (blue & 0xFF)


def red_of(color: int) -> int:
    return (color >> 16) & 0xFF


def green_of(color: int) -> int:
    return (color >> 8) & 0xFF


def blue_of(color: int) -> int:
    return color & 0xFF


def perceived_brightness(color: int) -> float:
    """Brightness in 0..1 using the W3C luma weights."""
    return (0.299 * red_of(color) + 0.587 * green_of(color) + 0.114 * blue_of(color)) / 256


def derive_foreground_color(background_color: int) -> int:
    """Pick black or white text for the given background."""
    return BLACK if perceived_brightness(background_color) >= 0.5 else WHITE


def to_hex(color: int) -> str:
    """Render an ARGB integer as ``#aarrggbb``."""
    return f"#{color & 0xFFFFFFFF:08x}"


@dataclass(frozen=True)
class Style:
    """Colors and shape used to render a line badge."""

    background_color: int
    foreground_color: int
    border_color: int | None = None
    shape: Shape = Shape.ROUNDED

    @classmethod
    def with_background(cls, background_color: int, shape: Shape = Shape.ROUNDED) -> "Style":
        return cls(background_color, derive_foreground_color(background_color), shape=shape)

    @property
    def has_border(self) -> bool:
        return self.border_color is not None
