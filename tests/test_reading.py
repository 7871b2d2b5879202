"""Unit tests for tokenizing, pivot selection and pacing."""

from __future__ import annotations

import pytest

from domain.reading import (
    EMPTY_TEXT_CODE,
    INVALID_CONFIG_CODE,
    INVALID_PIVOT_CODE,
    WPM_MAX,
    WPM_MIN,
    EmptyContentError,
    PacingConfig,
    PivotMode,
    PivotPolicy,
    ReaderValidationError,
    SplitWord,
    WordToken,
    normalize_text,
    parse_pivot_mode,
    pivot_for_word,
    pivot_index,
    progress_percent,
    split_word,
    tokenize,
    word_delay_ms,
)


def test_tokenize_collapses_whitespace() -> None:
    """Split on whitespace runs, including newlines, and trim the ends."""
    tokens = tokenize("  a   b\nc  ")

    assert [token.text for token in tokens] == ["a", "b", "c"]
    assert [token.position for token in tokens] == [0, 1, 2]


def test_tokenize_returns_empty_for_blank_text() -> None:
    """Blank input yields the empty result instead of raising."""
    assert tokenize("") == ()
    assert tokenize(" \n\t \r\n") == ()
    assert tokenize("\ufeff  ") == ()


def test_tokenize_is_idempotent() -> None:
    """Re-tokenizing normalized text produces the same sequence."""
    text_value = "The  quick\tbrown\n\nfox — jumps,   over."
    first = tokenize(text_value)
    second = tokenize(normalize_text(text_value))

    assert first == second
    assert tokenize(" ".join(token.text for token in first)) == first


def test_word_token_rejects_empty_and_whitespace() -> None:
    """Tokens are never empty and never contain whitespace."""
    with pytest.raises(ReaderValidationError):
        WordToken(text="", position=0)
    with pytest.raises(ReaderValidationError):
        WordToken(text="a b", position=0)


def test_auto_pivot_follows_orp_table() -> None:
    """Auto mode reads the table by length and saturates at the last entry."""
    expected = [0, 1, 1, 1, 1, 2, 2, 2, 2, 3, 3, 3, 3, 4, 4, 4, 4, 4]
    observed = [pivot_index("x" * length, PivotPolicy.auto()) for length in range(1, 19)]

    assert observed == expected


def test_reading_example_splits_at_auto_pivot() -> None:
    """A seven letter word pivots on its third letter."""
    assert pivot_for_word("reading", PivotPolicy.auto()) == SplitWord("re", "a", "ding")


@pytest.mark.parametrize("fixed_index", [-100, -1, 0, 2, 6, 1000])
def test_fixed_pivot_is_clamped_into_word(fixed_index: int) -> None:
    """Fixed pivots always land on a letter of the word."""
    for word in ("a", "to", "reading", "extraordinarily"):
        index = pivot_index(word, PivotPolicy.fixed(fixed_index))
        assert 0 <= index <= len(word) - 1


@pytest.mark.parametrize("fixed_index", [True, 2.5, "2", None])
def test_pivot_policy_rejects_non_integer_index(fixed_index: object) -> None:
    """Fixed pivot indexes must be plain integers."""
    with pytest.raises(ReaderValidationError) as exc_info:
        PivotPolicy(PivotMode.FIXED, fixed_index)  # type: ignore[arg-type]
    assert exc_info.value.code == INVALID_PIVOT_CODE


def test_split_preserves_every_character() -> None:
    """Left, pivot and right concatenate back to the word."""
    for word in ("a", "it", "pivot", "well-known", "naïve"):
        for index in range(-2, len(word) + 2):
            parts = split_word(word, index)
            assert parts.left + parts.pivot + parts.right == word
            assert len(parts.pivot) == 1


def test_split_single_character_word() -> None:
    """A single character word is all pivot."""
    assert split_word("I", 4) == SplitWord("", "I", "")


def test_empty_word_has_no_pivot_letter() -> None:
    """The empty word pivots at zero with an empty pivot."""
    assert pivot_index("", PivotPolicy.fixed(3)) == 0
    assert split_word("", 0) == SplitWord("", "", "")


def test_delay_example_with_clause_pause_and_length() -> None:
    """Base 200ms, clause pause 180ms and one extra character at 14ms."""
    assert word_delay_ms("slowly,", 300) == pytest.approx(394.0)


def test_delay_base_has_floor_and_guards_zero_rate() -> None:
    """Runaway speeds are floored and a zero rate is treated as one."""
    assert word_delay_ms("go", 100000) == pytest.approx(40.0)
    assert word_delay_ms("go", 0) == pytest.approx(60000.0)


def test_delay_whitespace_word_returns_base() -> None:
    """Whitespace-only words get no pauses."""
    assert word_delay_ms("   ", 300) == pytest.approx(200.0)


def test_delay_grows_with_punctuation_severity() -> None:
    """Sentence ends pause longer than clause ends, which pause longer than none."""
    plain = word_delay_ms("word", 300)
    clause = word_delay_ms("word;", 300)
    sentence = word_delay_ms("word?", 300)

    assert plain < clause < sentence
    assert clause - plain == pytest.approx(180.0)
    assert sentence - plain == pytest.approx(320.0)


def test_delay_adds_dash_pause() -> None:
    """Em-dashes and double hyphens add their own pause."""
    assert word_delay_ms("so—so", 300) == pytest.approx(200.0 + 160.0)
    assert word_delay_ms("so--so", 300) == pytest.approx(200.0 + 160.0)


def test_delay_pauses_accumulate() -> None:
    """Independent pauses add up on the same word."""
    word = "well--understood."
    expected = 200.0 + 320.0 + 160.0 + (len(word) - 6) * 14.0
    assert word_delay_ms(word, 300) == pytest.approx(expected)


def test_delay_strictly_decreases_with_rate() -> None:
    """Faster rates give shorter dwell times for the same word."""
    delays = [word_delay_ms("rhythm.", wpm) for wpm in range(WPM_MIN, WPM_MAX + 1, 60)]
    assert all(earlier > later for earlier, later in zip(delays, delays[1:]))


def test_pacing_config_bounds() -> None:
    """Rates outside the supported range are rejected or clamped."""
    with pytest.raises(ReaderValidationError) as exc_info:
        PacingConfig(WPM_MAX + 1)
    assert exc_info.value.code == INVALID_CONFIG_CODE
    assert PacingConfig.clamped(10).wpm == WPM_MIN
    assert PacingConfig.clamped(10000).wpm == WPM_MAX
    assert PacingConfig().wpm == 320


def test_parse_pivot_mode() -> None:
    """Pivot mode names are parsed case-insensitively."""
    assert parse_pivot_mode(" Fixed ") == PivotMode.FIXED
    with pytest.raises(ReaderValidationError) as exc_info:
        parse_pivot_mode("center")
    assert exc_info.value.code == INVALID_PIVOT_CODE


def test_empty_content_error_code() -> None:
    """EmptyContentError carries the empty text code."""
    assert EmptyContentError().code == EMPTY_TEXT_CODE


def test_progress_percent() -> None:
    """Progress counts the current word as read."""
    assert progress_percent(0, 0) == 0
    assert progress_percent(0, 4) == 25
    assert progress_percent(3, 4) == 100
