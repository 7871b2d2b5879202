"""Serializable reader session snapshot and its tolerant parser."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from typing import Any, Mapping

from domain.reading import (
    DEFAULT_FIXED_PIVOT,
    DEFAULT_FRAME_HEIGHT,
    DEFAULT_FRAME_WIDTH,
    DEFAULT_WORD_SCALE,
    DEFAULT_WPM,
    FIXED_PIVOT_MAX,
    FIXED_PIVOT_MIN,
    FRAME_HEIGHT_MAX,
    FRAME_HEIGHT_MIN,
    FRAME_WIDTH_MAX,
    FRAME_WIDTH_MIN,
    WORD_SCALE_MAX,
    WORD_SCALE_MIN,
    WPM_MAX,
    WPM_MIN,
    PivotMode,
    PivotPolicy,
)

INVALID_SNAPSHOT_FIELD_CODE = "rsvp_reader.snapshot.invalid_field"

LOGGER = logging.getLogger("rsvp_reader.snapshot")


@dataclass(frozen=True)
class SessionSnapshot:
    """Everything needed to rebuild a reader session."""

    wpm: int = DEFAULT_WPM
    pivot_policy: PivotPolicy = field(
        default_factory=lambda: PivotPolicy(PivotMode.AUTO, DEFAULT_FIXED_PIVOT)
    )
    word_scale: int = DEFAULT_WORD_SCALE
    frame_width: float = DEFAULT_FRAME_WIDTH
    frame_height: float = DEFAULT_FRAME_HEIGHT
    current_position: int = 0
    raw_text: str = ""
    display_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "wpm": self.wpm,
            "pivot_policy": {
                "mode": self.pivot_policy.mode.value,
                "fixed_index": self.pivot_policy.fixed_index,
            },
            "word_scale": self.word_scale,
            "frame": {"width": self.frame_width, "height": self.frame_height},
            "current_position": self.current_position,
            "raw_text": self.raw_text,
            "display_name": self.display_name,
        }


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _is_integral(value: Any) -> bool:
    return _is_number(value) and float(value).is_integer()


def _discard(field_name: str, value: Any) -> None:
    LOGGER.warning(
        "%s: discarded snapshot field %s=%r", INVALID_SNAPSHOT_FIELD_CODE, field_name, value
    )


def _parse_bounded_int(
    payload: Mapping[str, Any], key: str, min_value: int, max_value: int, default: int
) -> int:
    if key not in payload:
        return default
    value = payload[key]
    if not _is_integral(value):
        _discard(key, value)
        return default
    if value < min_value or value > max_value:
        _discard(key, value)
        return default
    return int(value)


def _parse_pivot_policy(payload: Mapping[str, Any]) -> PivotPolicy:
    default = PivotPolicy(PivotMode.AUTO, DEFAULT_FIXED_PIVOT)
    if "pivot_policy" not in payload:
        return default
    value = payload["pivot_policy"]
    if not isinstance(value, Mapping):
        _discard("pivot_policy", value)
        return default

    mode = PivotMode.AUTO
    raw_mode = value.get("mode", PivotMode.AUTO.value)
    try:
        mode = PivotMode(raw_mode)
    except ValueError:
        _discard("pivot_policy.mode", raw_mode)

    fixed_index = _parse_bounded_int(
        value, "fixed_index", FIXED_PIVOT_MIN, FIXED_PIVOT_MAX, DEFAULT_FIXED_PIVOT
    )
    return PivotPolicy(mode, fixed_index)


def _parse_frame_dimension(
    frame: Mapping[str, Any], key: str, min_value: float, max_value: float, default: float
) -> float:
    if key not in frame:
        return default
    value = frame[key]
    if not _is_number(value) or value < min_value or value > max_value:
        _discard(f"frame.{key}", value)
        return default
    return float(value)


def parse_snapshot(payload: Any) -> SessionSnapshot:
    """Build a snapshot, replacing each malformed field with its default."""
    if not isinstance(payload, Mapping):
        _discard("snapshot", type(payload).__name__)
        return SessionSnapshot()

    wpm = _parse_bounded_int(payload, "wpm", WPM_MIN, WPM_MAX, DEFAULT_WPM)
    pivot_policy = _parse_pivot_policy(payload)
    word_scale = _parse_bounded_int(
        payload, "word_scale", WORD_SCALE_MIN, WORD_SCALE_MAX, DEFAULT_WORD_SCALE
    )

    frame_width = DEFAULT_FRAME_WIDTH
    frame_height = DEFAULT_FRAME_HEIGHT
    if "frame" in payload:
        frame = payload["frame"]
        if isinstance(frame, Mapping):
            frame_width = _parse_frame_dimension(
                frame, "width", FRAME_WIDTH_MIN, FRAME_WIDTH_MAX, DEFAULT_FRAME_WIDTH
            )
            frame_height = _parse_frame_dimension(
                frame, "height", FRAME_HEIGHT_MIN, FRAME_HEIGHT_MAX, DEFAULT_FRAME_HEIGHT
            )
        else:
            _discard("frame", frame)

    raw_text = payload.get("raw_text", "")
    if not isinstance(raw_text, str):
        _discard("raw_text", raw_text)
        raw_text = ""

    display_name = payload.get("display_name")
    if display_name is not None and not isinstance(display_name, str):
        _discard("display_name", display_name)
        display_name = None

    current_position = 0
    if "current_position" in payload:
        value = payload["current_position"]
        if _is_integral(value) and value >= 0:
            current_position = int(value)
        else:
            _discard("current_position", value)

    return SessionSnapshot(
        wpm=wpm,
        pivot_policy=pivot_policy,
        word_scale=word_scale,
        frame_width=frame_width,
        frame_height=frame_height,
        current_position=current_position,
        raw_text=raw_text,
        display_name=display_name,
    )
