"""Render plan construction: scheduler timing mapped onto video frames."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

from domain.reading import (
    INVALID_CONFIG_CODE,
    EmptyContentError,
    PacingConfig,
    ReaderValidationError,
    WordToken,
)
from service.playback import PlaybackScheduler, PlaybackState, VirtualClock


@dataclass(frozen=True)
class ScheduledWord:
    """A word scheduled over a contiguous frame range."""

    token_index: int
    start_ms: float
    duration_ms: float
    start_frame: int
    frame_count: int

    def __post_init__(self) -> None:
        if self.token_index < 0:
            raise ReaderValidationError(
                INVALID_CONFIG_CODE, "token_index must be non-negative"
            )
        if self.start_frame < 0:
            raise ReaderValidationError(
                INVALID_CONFIG_CODE, "start_frame must be non-negative"
            )
        if self.frame_count <= 0:
            raise ReaderValidationError(
                INVALID_CONFIG_CODE, "frame_count must be positive"
            )


@dataclass(frozen=True)
class RenderPlan:
    """Plan describing word ordering and timing across frames."""

    total_frames: int
    words: Tuple[WordToken, ...]
    scheduled_words: Tuple[ScheduledWord, ...]

    def __post_init__(self) -> None:
        if self.total_frames <= 0:
            raise ReaderValidationError(
                INVALID_CONFIG_CODE, "total_frames must be positive"
            )
        if not self.words:
            raise EmptyContentError("no words to render")

        last_end_frame = 0
        for scheduled_word in self.scheduled_words:
            if scheduled_word.token_index >= len(self.words):
                raise ReaderValidationError(
                    INVALID_CONFIG_CODE, "token_index out of bounds"
                )
            end_frame = scheduled_word.start_frame + scheduled_word.frame_count
            if end_frame > self.total_frames:
                raise ReaderValidationError(
                    INVALID_CONFIG_CODE, "scheduled word exceeds total frames"
                )
            if scheduled_word.start_frame < last_end_frame:
                raise ReaderValidationError(
                    INVALID_CONFIG_CODE, "scheduled words overlap"
                )
            last_end_frame = end_frame

    @property
    def duration_seconds(self) -> float:
        if not self.scheduled_words:
            return 0.0
        last = self.scheduled_words[-1]
        return (last.start_ms + last.duration_ms) / 1000.0


def ms_to_frame(milliseconds: float, fps: int) -> int:
    """Convert a millisecond timestamp to the nearest frame index."""
    return int(round(milliseconds * fps / 1000.0))


def record_word_boundaries(
    tokens: Sequence[WordToken], pacing: PacingConfig, start_position: int = 0
) -> Tuple[Tuple[Tuple[int, float], ...], float]:
    """Play tokens to the end on a virtual clock.

    Returns the (position, shown_at_ms) pairs in display order and the time at
    which playback stopped.
    """
    clock = VirtualClock()
    boundaries: list[tuple[int, float]] = []
    stopped_at_ms = 0.0

    def on_state(state: PlaybackState) -> None:
        nonlocal stopped_at_ms
        if state.playing:
            if not boundaries or boundaries[-1][0] != state.position:
                boundaries.append((state.position, clock.now_ms))
        else:
            stopped_at_ms = clock.now_ms

    scheduler = PlaybackScheduler(clock, pacing, on_state)
    scheduler.load(tokens, start_position)
    scheduler.play()
    try:
        clock.run_until_idle()
    finally:
        scheduler.close()
    return tuple(boundaries), stopped_at_ms


def build_reading_render_plan(
    tokens: Sequence[WordToken],
    pacing: PacingConfig,
    fps: int,
    start_position: int = 0,
) -> RenderPlan:
    """Build a render plan from the scheduler's own pacing decisions."""
    if not tokens:
        raise EmptyContentError("no words to render")
    if fps <= 0:
        raise ReaderValidationError(INVALID_CONFIG_CODE, "fps must be positive")

    boundaries, stopped_at_ms = record_word_boundaries(tokens, pacing, start_position)

    scheduled_words: list[ScheduledWord] = []
    cursor_frame = 0
    for index, (position, shown_at_ms) in enumerate(boundaries):
        if index + 1 < len(boundaries):
            hidden_at_ms = boundaries[index + 1][1]
        else:
            hidden_at_ms = stopped_at_ms
        start_frame = max(ms_to_frame(shown_at_ms, fps), cursor_frame)
        end_frame = max(ms_to_frame(hidden_at_ms, fps), start_frame + 1)
        scheduled_words.append(
            ScheduledWord(
                token_index=position,
                start_ms=shown_at_ms,
                duration_ms=hidden_at_ms - shown_at_ms,
                start_frame=start_frame,
                frame_count=end_frame - start_frame,
            )
        )
        cursor_frame = end_frame

    return RenderPlan(
        total_frames=cursor_frame,
        words=tuple(tokens),
        scheduled_words=tuple(scheduled_words),
    )
