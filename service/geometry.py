"""Pivot alignment, font fitting and frame resizing for the reading frame."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Protocol, Tuple

from PIL import Image, ImageDraw, ImageFont

from domain.reading import (
    DEFAULT_FRAME_HEIGHT,
    DEFAULT_FRAME_WIDTH,
    FRAME_HEIGHT_MAX,
    FRAME_HEIGHT_MIN,
    FRAME_WIDTH_MAX,
    FRAME_WIDTH_MIN,
    INVALID_CONFIG_CODE,
    GeometryUnavailableError,
    PivotPolicy,
    ReaderValidationError,
    pivot_index,
    split_word,
)

FONT_MIN_PX = 38.0
FONT_MAX_PX = 140.0
FONT_FLOOR_PX = 12.0
FIT_WIDTH_RATIO = 0.88
FIT_HEIGHT_RATIO = 0.70
RESIZE_GAIN = 2.0
MONOSPACE_ADVANCE_RATIO = 0.6
MONOSPACE_LINE_RATIO = 1.2

LOGGER = logging.getLogger("rsvp_reader.geometry")


class TextMetrics(Protocol):
    """Measures rendered text; raises GeometryUnavailableError when it cannot."""

    def text_width(self, text_value: str, font_size: float) -> float: ...

    def line_height(self, font_size: float) -> float: ...


class MonospaceTextMetrics:
    """Headless metrics with a fixed advance per character."""

    def __init__(
        self,
        advance_ratio: float = MONOSPACE_ADVANCE_RATIO,
        line_ratio: float = MONOSPACE_LINE_RATIO,
    ) -> None:
        if advance_ratio <= 0 or line_ratio <= 0:
            raise ReaderValidationError(
                INVALID_CONFIG_CODE, "monospace ratios must be positive"
            )
        self.advance_ratio = advance_ratio
        self.line_ratio = line_ratio

    def text_width(self, text_value: str, font_size: float) -> float:
        return len(text_value) * font_size * self.advance_ratio

    def line_height(self, font_size: float) -> float:
        return font_size * self.line_ratio


class PillowTextMetrics:
    """Metrics backed by a Pillow font, loaded once per pixel size."""

    def __init__(self, font_path: str | None = None) -> None:
        self.font_path = font_path
        self._cache: dict[int, ImageFont.FreeTypeFont] = {}
        self._draw = ImageDraw.Draw(Image.new("RGBA", (1, 1)))

    def font(self, font_size: float) -> ImageFont.FreeTypeFont:
        """Return the font at the given size, rounded to whole pixels."""
        pixel_size = max(1, int(round(font_size)))
        cached_font = self._cache.get(pixel_size)
        if cached_font is not None:
            return cached_font
        try:
            if self.font_path is None:
                font = ImageFont.load_default(size=pixel_size)
            else:
                font = ImageFont.truetype(
                    self.font_path, size=pixel_size, layout_engine=ImageFont.Layout.BASIC
                )
        except (OSError, ImportError, ValueError) as exc:
            raise GeometryUnavailableError(
                f"failed to load font {self.font_path or '<default>'} at size {pixel_size}"
            ) from exc
        if not isinstance(font, ImageFont.FreeTypeFont):
            raise GeometryUnavailableError("scalable font rendering is unavailable")
        self._cache[pixel_size] = font
        return font

    def text_width(self, text_value: str, font_size: float) -> float:
        if not text_value:
            return 0.0
        font = self.font(font_size)
        return float(self._draw.textlength(text_value, font=font))

    def line_height(self, font_size: float) -> float:
        ascent, descent = self.font(font_size).getmetrics()
        return float(ascent + descent)


@dataclass(frozen=True)
class Viewport:
    """Pixel size of the surface hosting the reading frame."""

    width: int
    height: int


@dataclass(frozen=True)
class FrameGeometry:
    """Reading frame size as percentages of the viewport."""

    width_pct: float = DEFAULT_FRAME_WIDTH
    height_pct: float = DEFAULT_FRAME_HEIGHT

    def __post_init__(self) -> None:
        if not FRAME_WIDTH_MIN <= self.width_pct <= FRAME_WIDTH_MAX:
            raise ReaderValidationError(
                INVALID_CONFIG_CODE,
                f"frame width must be between {FRAME_WIDTH_MIN:g} and {FRAME_WIDTH_MAX:g}",
            )
        if not FRAME_HEIGHT_MIN <= self.height_pct <= FRAME_HEIGHT_MAX:
            raise ReaderValidationError(
                INVALID_CONFIG_CODE,
                f"frame height must be between {FRAME_HEIGHT_MIN:g} and {FRAME_HEIGHT_MAX:g}",
            )

    @classmethod
    def clamped(cls, width_pct: float, height_pct: float) -> "FrameGeometry":
        return cls(
            max(FRAME_WIDTH_MIN, min(FRAME_WIDTH_MAX, width_pct)),
            max(FRAME_HEIGHT_MIN, min(FRAME_HEIGHT_MAX, height_pct)),
        )

    def pixel_size(self, viewport: Viewport) -> Tuple[float, float]:
        return (
            viewport.width * self.width_pct / 100.0,
            viewport.height * self.height_pct / 100.0,
        )

    def pixel_box(self, viewport: Viewport) -> Tuple[float, float, float, float]:
        """Return the frame box centered in the viewport as (left, top, right, bottom)."""
        frame_width, frame_height = self.pixel_size(viewport)
        left = (viewport.width - frame_width) / 2.0
        top = (viewport.height - frame_height) / 2.0
        return left, top, left + frame_width, top + frame_height


@dataclass(frozen=True)
class WordLayout:
    """Fitted font size and pivot placement for one word."""

    word: str
    left: str
    pivot: str
    right: str
    pivot_index: int
    font_size: float
    pivot_offset: float
    anchor_x: float
    anchor_y: float
    frame_box: Tuple[float, float, float, float]

    @property
    def origin_x(self) -> float:
        """X coordinate where the word starts so the pivot center sits on the anchor."""
        return self.anchor_x - self.pivot_offset


class GeometryFitter:
    """Derives word layout from the current word, frame and word scale.

    Every call recomputes from its inputs. The only retained value is the last
    font size that could be measured, used when measuring fails.
    """

    def __init__(self, metrics: TextMetrics, initial_font_size: float = FONT_MIN_PX) -> None:
        self.metrics = metrics
        self.last_font_size = initial_font_size

    def candidate_font_size(self, viewport: Viewport, word_scale: float) -> float:
        """Font size proportional to viewport width, bounded to the legible range."""
        scaled = viewport.width * word_scale / 100.0
        return max(FONT_MIN_PX, min(FONT_MAX_PX, scaled))

    def fit_font_size(
        self, word: str, frame: FrameGeometry, viewport: Viewport, word_scale: float
    ) -> float:
        if viewport.width <= 0 or viewport.height <= 0:
            raise GeometryUnavailableError("viewport has no area")
        frame_width, frame_height = frame.pixel_size(viewport)
        candidate = self.candidate_font_size(viewport, word_scale)

        width_limited = candidate
        word_width = self.metrics.text_width(word, candidate)
        width_limit = frame_width * FIT_WIDTH_RATIO
        if word_width > width_limit:
            width_limited = candidate * width_limit / word_width

        height_limited = candidate
        line_height = self.metrics.line_height(candidate)
        height_limit = frame_height * FIT_HEIGHT_RATIO
        if line_height > height_limit:
            height_limited = candidate * height_limit / line_height

        return max(min(width_limited, height_limited), FONT_FLOOR_PX)

    def pivot_offset(self, left: str, pivot: str, font_size: float) -> float:
        """Width of the text before the pivot plus half the pivot width."""
        left_width = self.metrics.text_width(left, font_size)
        pivot_width = self.metrics.text_width(pivot, font_size)
        return left_width + pivot_width / 2.0

    def fit(
        self,
        word: str,
        policy: PivotPolicy,
        frame: FrameGeometry,
        viewport: Viewport,
        word_scale: float,
    ) -> WordLayout:
        index = pivot_index(word, policy)
        parts = split_word(word, index)
        frame_box = frame.pixel_box(viewport)
        try:
            font_size = self.fit_font_size(word, frame, viewport, word_scale)
            offset = self.pivot_offset(parts.left, parts.pivot, font_size)
            self.last_font_size = font_size
        except GeometryUnavailableError as exc:
            LOGGER.warning(
                "%s: %s; keeping font size %.1f", exc.code, str(exc).strip(), self.last_font_size
            )
            font_size = self.last_font_size
            offset = 0.0

        return WordLayout(
            word=word,
            left=parts.left,
            pivot=parts.pivot,
            right=parts.right,
            pivot_index=index,
            font_size=font_size,
            pivot_offset=offset,
            anchor_x=(frame_box[0] + frame_box[2]) / 2.0,
            anchor_y=(frame_box[1] + frame_box[3]) / 2.0,
            frame_box=frame_box,
        )


class ResizeHandle(str, Enum):
    """Drag handles on the reading frame."""

    N = "n"
    S = "s"
    E = "e"
    W = "w"
    NE = "ne"
    NW = "nw"
    SE = "se"
    SW = "sw"


HANDLE_DIRECTIONS = {
    ResizeHandle.N: (0, -1),
    ResizeHandle.S: (0, 1),
    ResizeHandle.E: (1, 0),
    ResizeHandle.W: (-1, 0),
    ResizeHandle.NE: (1, -1),
    ResizeHandle.NW: (-1, -1),
    ResizeHandle.SE: (1, 1),
    ResizeHandle.SW: (-1, 1),
}


@dataclass(frozen=True)
class ResizeDrag:
    """Pointer and frame state captured when a drag starts."""

    handle: ResizeHandle
    start_x: float
    start_y: float
    start_frame: FrameGeometry


class FrameResizer:
    """Tracks at most one drag session and turns pointer moves into frame sizes."""

    def __init__(self, frame: FrameGeometry | None = None) -> None:
        self.frame = frame or FrameGeometry()
        self._drag: ResizeDrag | None = None

    @property
    def active(self) -> bool:
        return self._drag is not None

    def begin(self, handle: ResizeHandle, pointer_x: float, pointer_y: float) -> bool:
        if self._drag is not None:
            LOGGER.debug("resize already active on %s", self._drag.handle.value)
            return False
        self._drag = ResizeDrag(ResizeHandle(handle), pointer_x, pointer_y, self.frame)
        return True

    def move(self, pointer_x: float, pointer_y: float, viewport: Viewport) -> FrameGeometry:
        drag = self._drag
        if drag is None:
            return self.frame
        if viewport.width <= 0 or viewport.height <= 0:
            return self.frame
        x_direction, y_direction = HANDLE_DIRECTIONS[drag.handle]
        delta_width = (pointer_x - drag.start_x) / viewport.width * 100.0 * RESIZE_GAIN
        delta_height = (pointer_y - drag.start_y) / viewport.height * 100.0 * RESIZE_GAIN
        self.frame = FrameGeometry.clamped(
            drag.start_frame.width_pct + x_direction * delta_width,
            drag.start_frame.height_pct + y_direction * delta_height,
        )
        return self.frame

    def end(self) -> None:
        self._drag = None
