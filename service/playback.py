"""Play/pause scheduler that advances the current word under pacing timers."""

from __future__ import annotations

from dataclasses import dataclass
import heapq
import itertools
import logging
from typing import Callable, Protocol, Sequence, Tuple

from domain.reading import PacingConfig, WordToken, clamp_int, word_delay_ms

LOGGER = logging.getLogger("rsvp_reader.playback")


class TimerHandle(Protocol):
    """A pending wake-up that can be cancelled."""

    def cancel(self) -> None: ...


class TimerBackend(Protocol):
    """Schedules callbacks; an asyncio event loop satisfies this directly."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class VirtualTimer:
    """Timer handle issued by VirtualClock."""

    def __init__(self, due_ms: float, callback: Callable[[], None]) -> None:
        self.due_ms = due_ms
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualClock:
    """Deterministic single-threaded timer queue driven by explicit advances."""

    def __init__(self) -> None:
        self.now_ms = 0.0
        self._queue: list[tuple[float, int, VirtualTimer]] = []
        self._sequence = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> VirtualTimer:
        timer = VirtualTimer(self.now_ms + max(0.0, delay) * 1000.0, callback)
        heapq.heappush(self._queue, (timer.due_ms, next(self._sequence), timer))
        return timer

    @property
    def pending_count(self) -> int:
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    def _pop_due(self, until_ms: float | None) -> VirtualTimer | None:
        while self._queue:
            due_ms, _, timer = self._queue[0]
            if timer.cancelled:
                heapq.heappop(self._queue)
                continue
            if until_ms is not None and due_ms > until_ms:
                return None
            heapq.heappop(self._queue)
            return timer
        return None

    def advance(self, milliseconds: float) -> int:
        """Move time forward, firing every timer that falls due; return the count."""
        target_ms = self.now_ms + milliseconds
        fired = 0
        while True:
            timer = self._pop_due(target_ms)
            if timer is None:
                break
            self.now_ms = max(self.now_ms, timer.due_ms)
            timer.callback()
            fired += 1
        self.now_ms = target_ms
        return fired

    def run_until_idle(self, max_callbacks: int = 1_000_000) -> int:
        """Fire timers in due order until none are pending."""
        fired = 0
        while fired < max_callbacks:
            timer = self._pop_due(None)
            if timer is None:
                return fired
            self.now_ms = max(self.now_ms, timer.due_ms)
            timer.callback()
            fired += 1
        raise RuntimeError("virtual clock did not become idle")


@dataclass(frozen=True)
class PlaybackState:
    """Published view of the scheduler position."""

    position: int
    playing: bool
    token_count: int


PlaybackListener = Callable[[PlaybackState], None]


class PlaybackScheduler:
    """Owns the current position and the single pending pacing timer."""

    def __init__(
        self,
        timer_backend: TimerBackend,
        pacing: PacingConfig | None = None,
        listener: PlaybackListener | None = None,
        delay_for: Callable[[str, float], float] = word_delay_ms,
    ) -> None:
        self._timer_backend = timer_backend
        self._pacing = pacing or PacingConfig()
        self._listener = listener
        self._delay_for = delay_for
        self._tokens: Tuple[WordToken, ...] = ()
        self._position = 0
        self._playing = False
        self._timer: TimerHandle | None = None
        self._closed = False

    @property
    def tokens(self) -> Tuple[WordToken, ...]:
        return self._tokens

    @property
    def token_count(self) -> int:
        return len(self._tokens)

    @property
    def position(self) -> int:
        return self._position

    @property
    def playing(self) -> bool:
        return self._playing

    @property
    def pacing(self) -> PacingConfig:
        return self._pacing

    @property
    def has_pending_timer(self) -> bool:
        return self._timer is not None

    @property
    def current_token(self) -> WordToken | None:
        if not self._tokens:
            return None
        return self._tokens[self._position]

    @property
    def state(self) -> PlaybackState:
        return PlaybackState(self._position, self._playing, len(self._tokens))

    def set_listener(self, listener: PlaybackListener | None) -> None:
        self._listener = listener

    def load(self, tokens: Sequence[WordToken], position: int = 0) -> None:
        """Replace the token sequence; playback stops."""
        self._cancel_timer()
        self._tokens = tuple(tokens)
        self._playing = False
        self._position = clamp_int(position, 0, max(len(self._tokens) - 1, 0))
        self._notify()

    def play(self) -> None:
        if not self._tokens or self._closed or self._playing:
            return
        self._playing = True
        self._arm_timer()
        self._notify()

    def pause(self) -> None:
        was_playing = self._playing
        self._cancel_timer()
        self._playing = False
        if was_playing:
            self._notify()

    def toggle(self) -> None:
        if self._playing:
            self.pause()
        else:
            self.play()

    def seek(self, delta: int) -> None:
        """Move the position by delta, clamped; a pending timer is re-armed."""
        if not self._tokens:
            return
        target = clamp_int(self._position + delta, 0, len(self._tokens) - 1)
        if target == self._position:
            return
        self._position = target
        if self._playing:
            self._arm_timer()
        self._notify()

    def step_forward(self) -> None:
        self.seek(1)

    def step_back(self) -> None:
        self.seek(-1)

    def restart(self) -> None:
        self._cancel_timer()
        self._position = 0
        self._playing = False
        self._notify()

    def set_pacing(self, pacing: PacingConfig) -> None:
        # The pending timer keeps its delay; the new rate applies from the next word.
        self._pacing = pacing

    def close(self) -> None:
        """Cancel the pending timer and refuse further playback."""
        self._cancel_timer()
        self._playing = False
        self._closed = True

    def current_delay_ms(self) -> float:
        token = self.current_token
        if token is None:
            return 0.0
        return self._delay_for(token.text, self._pacing.wpm)

    def _arm_timer(self) -> None:
        self._cancel_timer()
        delay_ms = self.current_delay_ms()
        self._timer = self._timer_backend.call_later(delay_ms / 1000.0, self._on_timer)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        if not self._playing or not self._tokens:
            return
        if self._position + 1 >= len(self._tokens):
            self._playing = False
            LOGGER.debug("playback reached the last word at %s", self._position)
        else:
            self._position += 1
            self._arm_timer()
        self._notify()

    def _notify(self) -> None:
        if self._listener is not None:
            self._listener(self.state)
