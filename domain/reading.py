"""Domain types and pure functions for the RSVP reader."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import math
import re
from typing import Tuple

INVALID_CONFIG_CODE = "rsvp_reader.input.invalid_config"
INVALID_COLOR_CODE = "rsvp_reader.input.invalid_color"
INVALID_PIVOT_CODE = "rsvp_reader.input.invalid_pivot"
EMPTY_TEXT_CODE = "rsvp_reader.input.empty_text"
ACQUISITION_FAILED_CODE = "rsvp_reader.acquisition.failed"
GEOMETRY_UNAVAILABLE_CODE = "rsvp_reader.geometry.unavailable"

WHITESPACE_RUN_PATTERN = re.compile(r"\s+")
SENTENCE_END_PATTERN = re.compile(r"[.!?]$")
CLAUSE_END_PATTERN = re.compile(r"[,:;]$")
DASH_PATTERN = re.compile(r"—|--")

ORP_TABLE = (0, 0, 1, 1, 1, 1, 2, 2, 2, 2, 3, 3, 3, 3, 4)
ORP_TABLE_MAX = len(ORP_TABLE) - 1

WPM_MIN = 120
WPM_MAX = 900
DEFAULT_WPM = 320
MIN_WORD_DELAY_MS = 40.0
SENTENCE_PAUSE_MS = 320.0
CLAUSE_PAUSE_MS = 180.0
DASH_PAUSE_MS = 160.0
LONG_WORD_THRESHOLD = 6
LONG_WORD_PAUSE_MS = 14.0

WORD_SCALE_MIN = 6
WORD_SCALE_MAX = 16
DEFAULT_WORD_SCALE = 11
FIXED_PIVOT_MIN = 0
FIXED_PIVOT_MAX = 6
DEFAULT_FIXED_PIVOT = 2
FRAME_WIDTH_MIN = 40.0
FRAME_WIDTH_MAX = 100.0
FRAME_HEIGHT_MIN = 35.0
FRAME_HEIGHT_MAX = 100.0
DEFAULT_FRAME_WIDTH = 80.0
DEFAULT_FRAME_HEIGHT = 60.0


class ReaderValidationError(ValueError):
    """Validation error with a stable error code."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class EmptyContentError(ReaderValidationError):
    """Raised when text yields no words to play."""

    def __init__(self, message: str = "no readable text found") -> None:
        super().__init__(EMPTY_TEXT_CODE, message)


class AcquisitionError(RuntimeError):
    """Text acquisition failure; the message is meant for the user."""

    def __init__(self, message: str, code: str = ACQUISITION_FAILED_CODE) -> None:
        super().__init__(message)
        self.code = code


class GeometryUnavailableError(RuntimeError):
    """Frame or font metrics could not be measured."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.code = GEOMETRY_UNAVAILABLE_CODE


@dataclass(frozen=True)
class WordToken:
    """A single word and its position in the token sequence."""

    text: str
    position: int

    def __post_init__(self) -> None:
        if not self.text:
            raise ReaderValidationError(INVALID_CONFIG_CODE, "word token is empty")
        if WHITESPACE_RUN_PATTERN.search(self.text):
            raise ReaderValidationError(
                INVALID_CONFIG_CODE, f"word token contains whitespace: {self.text!r}"
            )
        if self.position < 0:
            raise ReaderValidationError(
                INVALID_CONFIG_CODE, "word token position must be non-negative"
            )


class PivotMode(str, Enum):
    """Supported pivot selection modes."""

    AUTO = "auto"
    FIXED = "fixed"


@dataclass(frozen=True)
class PivotPolicy:
    """How the pivot letter of each word is chosen."""

    mode: PivotMode = PivotMode.AUTO
    fixed_index: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.mode, PivotMode):
            raise ReaderValidationError(INVALID_PIVOT_CODE, "pivot mode is invalid")
        if isinstance(self.fixed_index, bool) or not isinstance(self.fixed_index, int):
            raise ReaderValidationError(INVALID_PIVOT_CODE, "fixed pivot index must be an integer")

    @classmethod
    def auto(cls) -> "PivotPolicy":
        return cls(PivotMode.AUTO)

    @classmethod
    def fixed(cls, index: int) -> "PivotPolicy":
        return cls(PivotMode.FIXED, index)


@dataclass(frozen=True)
class SplitWord:
    """A word partitioned around its pivot letter."""

    left: str
    pivot: str
    right: str


@dataclass(frozen=True)
class PacingConfig:
    """Reading rate in words per minute."""

    wpm: int = DEFAULT_WPM

    def __post_init__(self) -> None:
        if isinstance(self.wpm, bool) or not isinstance(self.wpm, int):
            raise ReaderValidationError(INVALID_CONFIG_CODE, "wpm must be an integer")
        if self.wpm < WPM_MIN or self.wpm > WPM_MAX:
            raise ReaderValidationError(
                INVALID_CONFIG_CODE, f"wpm must be between {WPM_MIN} and {WPM_MAX}"
            )

    @classmethod
    def clamped(cls, wpm: int) -> "PacingConfig":
        """Build a config with the rate clamped into the supported range."""
        return cls(clamp_int(int(wpm), WPM_MIN, WPM_MAX))


def clamp_int(value: int, min_value: int, max_value: int) -> int:
    """Clamp an integer between min and max."""
    return max(min_value, min(max_value, value))


def parse_pivot_mode(value: str) -> PivotMode:
    """Parse a pivot mode name into a PivotMode."""
    normalized = value.strip().lower()
    try:
        return PivotMode(normalized)
    except ValueError as exc:
        raise ReaderValidationError(
            INVALID_PIVOT_CODE, f"invalid pivot mode: {value!r}"
        ) from exc


def normalize_text(raw_text: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return WHITESPACE_RUN_PATTERN.sub(" ", raw_text.replace("\ufeff", "")).strip()


def tokenize(raw_text: str) -> Tuple[WordToken, ...]:
    """Split text into word tokens; an empty tuple means nothing to play."""
    normalized = normalize_text(raw_text)
    if not normalized:
        return ()
    return tuple(
        WordToken(text=word, position=index)
        for index, word in enumerate(normalized.split(" "))
    )


def pivot_index(word: str, policy: PivotPolicy) -> int:
    """Return the index of the anchor letter of a word."""
    if not word:
        return 0
    if policy.mode == PivotMode.FIXED:
        return clamp_int(policy.fixed_index, 0, len(word) - 1)
    return ORP_TABLE[min(len(word), ORP_TABLE_MAX)]


def split_word(word: str, index: int) -> SplitWord:
    """Partition a word into the text before, at and after the pivot."""
    clamped = clamp_int(index, 0, max(len(word) - 1, 0))
    return SplitWord(
        left=word[:clamped],
        pivot=word[clamped : clamped + 1],
        right=word[clamped + 1 :],
    )


def pivot_for_word(word: str, policy: PivotPolicy) -> SplitWord:
    """Split a word around the pivot chosen by the policy."""
    return split_word(word, pivot_index(word, policy))


def word_delay_ms(word: str, wpm: float) -> float:
    """Return how long a word stays on screen, in milliseconds."""
    base = max(60000.0 / max(wpm, 1), MIN_WORD_DELAY_MS)
    trimmed = word.strip()
    if not trimmed:
        return base

    pause = 0.0
    if SENTENCE_END_PATTERN.search(trimmed):
        pause += SENTENCE_PAUSE_MS
    if CLAUSE_END_PATTERN.search(trimmed):
        pause += CLAUSE_PAUSE_MS
    if DASH_PATTERN.search(trimmed):
        pause += DASH_PAUSE_MS
    pause += max(len(trimmed) - LONG_WORD_THRESHOLD, 0) * LONG_WORD_PAUSE_MS
    return base + pause


def progress_percent(position: int, token_count: int) -> int:
    """Return reading progress as a rounded percentage."""
    if token_count <= 0:
        return 0
    return int(math.floor((position + 1) * 100 / token_count + 0.5))
