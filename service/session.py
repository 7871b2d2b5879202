"""Reader session: token sequence, playback, layout and user controls."""

from __future__ import annotations

import logging
from typing import Callable, Tuple

from domain.reading import (
    DEFAULT_FIXED_PIVOT,
    DEFAULT_WORD_SCALE,
    FIXED_PIVOT_MAX,
    FIXED_PIVOT_MIN,
    WORD_SCALE_MAX,
    WORD_SCALE_MIN,
    EmptyContentError,
    PacingConfig,
    PivotMode,
    PivotPolicy,
    WordToken,
    clamp_int,
    normalize_text,
    tokenize,
)
from domain.snapshot import SessionSnapshot
from service.acquisition import TextAcquirer
from service.geometry import (
    FrameGeometry,
    FrameResizer,
    GeometryFitter,
    ResizeHandle,
    TextMetrics,
    Viewport,
    WordLayout,
)
from service.playback import PlaybackScheduler, PlaybackState, TimerBackend

TOGGLE_KEY = "Space"
STEP_BACK_KEY = "ArrowLeft"
STEP_FORWARD_KEY = "ArrowRight"

LOGGER = logging.getLogger("rsvp_reader.session")

StateListener = Callable[[PlaybackState], None]


class ReaderSession:
    """Single owner of the reader state behind the user input surface."""

    def __init__(
        self,
        timer_backend: TimerBackend,
        metrics: TextMetrics,
        viewport: Viewport,
        pacing: PacingConfig | None = None,
        pivot_policy: PivotPolicy | None = None,
        word_scale: int = DEFAULT_WORD_SCALE,
        frame: FrameGeometry | None = None,
        listener: StateListener | None = None,
    ) -> None:
        self.scheduler = PlaybackScheduler(
            timer_backend, pacing or PacingConfig(), self._on_playback_state
        )
        self.fitter = GeometryFitter(metrics)
        self.resizer = FrameResizer(frame)
        self.viewport = viewport
        self.pivot_policy = pivot_policy or PivotPolicy(PivotMode.AUTO, DEFAULT_FIXED_PIVOT)
        self.word_scale = clamp_int(word_scale, WORD_SCALE_MIN, WORD_SCALE_MAX)
        self.raw_text = ""
        self.display_name: str | None = None
        self._listener = listener
        self._key_bindings: dict[str, Callable[[], None]] = {
            TOGGLE_KEY: self.toggle,
            STEP_BACK_KEY: self.step_back,
            STEP_FORWARD_KEY: self.step_forward,
        }

    @property
    def tokens(self) -> Tuple[WordToken, ...]:
        return self.scheduler.tokens

    @property
    def has_content(self) -> bool:
        return self.scheduler.token_count > 0

    @property
    def state(self) -> PlaybackState:
        return self.scheduler.state

    @property
    def pacing(self) -> PacingConfig:
        return self.scheduler.pacing

    @property
    def frame(self) -> FrameGeometry:
        return self.resizer.frame

    @property
    def current_word(self) -> str:
        token = self.scheduler.current_token
        return token.text if token is not None else ""

    def set_listener(self, listener: StateListener | None) -> None:
        self._listener = listener

    def load_text(self, text_value: str, display_name: str | None = None) -> None:
        """Replace the token sequence.

        Empty text raises EmptyContentError; playback stops and the previous
        sequence is kept.
        """
        tokens = tokenize(text_value)
        if not tokens:
            self.scheduler.pause()
            raise EmptyContentError()
        self.raw_text = normalize_text(text_value)
        self.display_name = display_name
        self.scheduler.load(tokens)
        LOGGER.info("loaded %d words from %s", len(tokens), display_name or "text")

    async def acquire(self, acquirer: TextAcquirer, source: str) -> None:
        """Stop playback, then acquire text and load it.

        On failure the previous sequence and position are kept.
        """
        self.scheduler.pause()
        acquired = await acquirer.acquire(source)
        self.load_text(acquired.text, acquired.display_name)

    def play(self) -> None:
        self.scheduler.play()

    def pause(self) -> None:
        self.scheduler.pause()

    def toggle(self) -> None:
        self.scheduler.toggle()

    def restart(self) -> None:
        self.scheduler.restart()

    def step_forward(self) -> None:
        self.scheduler.step_forward()

    def step_back(self) -> None:
        self.scheduler.step_back()

    def seek(self, delta: int) -> None:
        self.scheduler.seek(delta)

    def handle_key(self, key_code: str) -> bool:
        """Dispatch a key code; return True when it is bound."""
        action = self._key_bindings.get(key_code)
        if action is None:
            return False
        action()
        return True

    def set_wpm(self, wpm: int) -> PacingConfig:
        pacing = PacingConfig.clamped(wpm)
        self.scheduler.set_pacing(pacing)
        return pacing

    def set_pivot_policy(self, policy: PivotPolicy) -> None:
        self.pivot_policy = policy

    def set_pivot_mode(self, mode: PivotMode) -> None:
        self.pivot_policy = PivotPolicy(PivotMode(mode), self.pivot_policy.fixed_index)

    def set_fixed_pivot(self, index: int) -> None:
        fixed_index = clamp_int(index, FIXED_PIVOT_MIN, FIXED_PIVOT_MAX)
        self.pivot_policy = PivotPolicy(self.pivot_policy.mode, fixed_index)

    def set_word_scale(self, word_scale: int) -> None:
        self.word_scale = clamp_int(word_scale, WORD_SCALE_MIN, WORD_SCALE_MAX)

    def set_viewport(self, viewport: Viewport) -> None:
        self.viewport = viewport

    def set_frame(self, frame: FrameGeometry) -> None:
        self.resizer.frame = frame

    def begin_resize(self, handle: ResizeHandle, pointer_x: float, pointer_y: float) -> bool:
        return self.resizer.begin(handle, pointer_x, pointer_y)

    def move_resize(self, pointer_x: float, pointer_y: float) -> FrameGeometry:
        return self.resizer.move(pointer_x, pointer_y, self.viewport)

    def end_resize(self) -> None:
        self.resizer.end()

    def layout(self) -> WordLayout:
        """Recompute the layout of the current word from current inputs."""
        return self.layout_for(self.current_word)

    def layout_for(self, word: str) -> WordLayout:
        return self.fitter.fit(
            word, self.pivot_policy, self.frame, self.viewport, self.word_scale
        )

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            wpm=self.pacing.wpm,
            pivot_policy=self.pivot_policy,
            word_scale=self.word_scale,
            frame_width=self.frame.width_pct,
            frame_height=self.frame.height_pct,
            current_position=self.scheduler.position,
            raw_text=self.raw_text,
            display_name=self.display_name,
        )

    def restore(self, snapshot: SessionSnapshot) -> None:
        """Rehydrate settings and text; the position is clamped to the restored text."""
        self.scheduler.set_pacing(PacingConfig.clamped(snapshot.wpm))
        self.pivot_policy = snapshot.pivot_policy
        self.set_word_scale(snapshot.word_scale)
        self.set_frame(FrameGeometry.clamped(snapshot.frame_width, snapshot.frame_height))
        tokens = tokenize(snapshot.raw_text)
        if not tokens:
            return
        self.raw_text = normalize_text(snapshot.raw_text)
        self.display_name = snapshot.display_name
        self.scheduler.load(tokens, snapshot.current_position)

    def close(self) -> None:
        """Release the pacing timer and any resize drag."""
        self.resizer.end()
        self.scheduler.close()

    def _on_playback_state(self, state: PlaybackState) -> None:
        if self._listener is not None:
            self._listener(state)
