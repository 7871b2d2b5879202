"""Tests for the rsvp_reader CLI."""

from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path
from typing import List

import pytest
from PIL import Image

import rsvp_reader
from domain.reading import (
    INVALID_COLOR_CODE,
    INVALID_CONFIG_CODE,
    GeometryUnavailableError,
    PivotMode,
    PivotPolicy,
    ReaderValidationError,
)
from service.geometry import FrameGeometry, GeometryFitter, PillowTextMetrics, Viewport


def run_rsvp_reader(args: List[str], repo_root: Path) -> subprocess.CompletedProcess[str]:
    """Run rsvp_reader.py with the provided arguments."""
    return subprocess.run(
        [sys.executable, str(repo_root / "rsvp_reader.py"), *args],
        cwd=repo_root,
        text=True,
        capture_output=True,
        check=False,
    )


def test_parse_args_requires_a_source() -> None:
    """A text file or a session file must be given."""
    with pytest.raises(ReaderValidationError) as exc_info:
        rsvp_reader.parse_args(["--emit-schedule"])
    assert exc_info.value.code == INVALID_CONFIG_CODE


def test_parse_args_validates_options(tmp_path: Path) -> None:
    """Invalid rates, outputs and frames are rejected before any work starts."""
    input_path = str(tmp_path / "input.txt")

    with pytest.raises(ReaderValidationError):
        rsvp_reader.parse_args(["--input-text-file", input_path, "--wpm", "50"])
    with pytest.raises(ReaderValidationError):
        rsvp_reader.parse_args(["--input-text-file", input_path, "--output-video-file", "x.mp4"])
    with pytest.raises(ReaderValidationError):
        rsvp_reader.parse_args(["--input-text-file", input_path, "--frame-width", "20"])
    with pytest.raises(ReaderValidationError):
        rsvp_reader.parse_args(["--input-text-file", input_path, "--pivot-mode", "middle"])
    with pytest.raises(SystemExit):
        rsvp_reader.parse_args(["--input-text-file", input_path, "--emit-schedule", "--terminal"])


def test_parse_args_reads_overrides(tmp_path: Path) -> None:
    """Optional settings are carried on the request."""
    request = rsvp_reader.parse_args(
        [
            "--input-text-file",
            str(tmp_path / "input.txt"),
            "--wpm",
            "450",
            "--pivot-mode",
            "FIXED",
            "--fixed-pivot",
            "3",
            "--background",
            "transparent",
        ]
    )

    assert request.wpm == 450
    assert request.pivot_mode == PivotMode.FIXED
    assert request.fixed_pivot == 3
    assert request.background_rgba == (0, 0, 0, 0)
    assert rsvp_reader.select_alpha_mode(request.background_rgba) == rsvp_reader.VideoAlphaMode.ALPHA


def test_parse_hex_color() -> None:
    """Colors are #RRGGBB or transparent."""
    assert rsvp_reader.parse_hex_color_to_rgba("#FF8000") == (255, 128, 0, 255)
    with pytest.raises(ReaderValidationError) as exc_info:
        rsvp_reader.parse_hex_color_to_rgba("orange")
    assert exc_info.value.code == INVALID_COLOR_CODE


def test_terminal_line_puts_pivot_in_middle_column() -> None:
    """The pivot letter lands on the middle column whatever the word."""
    for word in ("a", "reading", "extraordinarily"):
        line = rsvp_reader.format_terminal_line(word, PivotPolicy.auto(), 40)
        prefix = line.split(rsvp_reader.TERMINAL_PIVOT_STYLE)[0]
        assert len(prefix) == 20
        plain = line.replace(rsvp_reader.TERMINAL_PIVOT_STYLE, "").replace(
            rsvp_reader.TERMINAL_RESET_STYLE, ""
        )
        assert plain.strip() == word


def color_columns(frame_image: Image.Image, color: tuple[int, int, int, int]) -> list[int]:
    """Return the x coordinates of pixels that exactly match a color."""
    pixels = frame_image.load()
    columns = []
    for y_value in range(frame_image.height):
        for x_value in range(frame_image.width):
            if pixels[x_value, y_value] == color:
                columns.append(x_value)
    return columns


def test_draw_reading_frame_highlights_pivot_at_anchor() -> None:
    """The pivot letter is drawn in its own color across the anchor column."""
    metrics = PillowTextMetrics()
    viewport = Viewport(400, 200)
    try:
        layout = GeometryFitter(metrics).fit(
            "reading", PivotPolicy.auto(), FrameGeometry(), viewport, 11
        )
        frame_image = rsvp_reader.draw_reading_frame(
            layout, metrics, viewport, rsvp_reader.parse_hex_color_to_rgba("#000000")
        )
    except GeometryUnavailableError:
        pytest.skip("scalable default font is unavailable")

    pivot_columns = color_columns(frame_image, rsvp_reader.PIVOT_COLOR)
    assert pivot_columns
    assert min(pivot_columns) <= layout.anchor_x <= max(pivot_columns)
    assert color_columns(frame_image, rsvp_reader.WORD_COLOR)
    assert frame_image.getpixel((40, 100)) == rsvp_reader.FRAME_OUTLINE_COLOR


def test_draw_reading_frame_without_pivot_draws_only_frame() -> None:
    """An empty word leaves just the frame outline and guides."""
    metrics = PillowTextMetrics()
    viewport = Viewport(400, 200)
    layout = GeometryFitter(metrics).fit("", PivotPolicy.auto(), FrameGeometry(), viewport, 11)

    frame_image = rsvp_reader.draw_reading_frame(
        layout, metrics, viewport, rsvp_reader.parse_hex_color_to_rgba("#000000")
    )

    assert color_columns(frame_image, rsvp_reader.PIVOT_COLOR) == []
    assert color_columns(frame_image, rsvp_reader.WORD_COLOR) == []
    assert frame_image.getpixel((40, 100)) == rsvp_reader.FRAME_OUTLINE_COLOR
    assert frame_image.getpixel((0, 0)) == (0, 0, 0, 255)


def test_prores_qscale_scales_with_frame_size() -> None:
    """Larger frames use a coarser quantizer within bounds."""
    assert rsvp_reader.compute_prores_qscale(1920, 1080) == 15
    assert rsvp_reader.compute_prores_qscale(320, 240) == 15
    assert rsvp_reader.compute_prores_qscale(7680, 4320) == 28


def test_emit_schedule_outputs_words_in_order(tmp_path: Path) -> None:
    """The schedule lists every word with its split, timing and frames."""
    repo_root = Path(__file__).resolve().parents[1]
    input_path = tmp_path / "input.txt"
    input_path.write_text("The quick, brown fox.", encoding="utf-8")

    result = run_rsvp_reader(
        [
            "--input-text-file",
            str(input_path),
            "--emit-schedule",
            "--wpm",
            "300",
            "--fps",
            "10",
        ],
        repo_root,
    )

    assert result.returncode == 0, result.stderr
    payload = json.loads(result.stdout)
    schedule = payload["schedule"]
    assert [entry["word"] for entry in schedule] == ["The", "quick,", "brown", "fox."]
    assert [entry["start_ms"] for entry in schedule] == [0.0, 200.0, 580.0, 780.0]
    assert schedule[1]["duration_ms"] == pytest.approx(380.0)
    for entry in schedule:
        assert entry["left"] + entry["pivot"] + entry["right"] == entry["word"]
    assert schedule[0]["start_frame"] == 0
    for previous, current in zip(schedule, schedule[1:]):
        assert current["start_frame"] == previous["start_frame"] + previous["frame_count"]
    assert payload["total_frames"] == schedule[-1]["start_frame"] + schedule[-1]["frame_count"]
    assert payload["display_name"] == "input.txt"


def test_empty_input_fails_with_acquisition_code(tmp_path: Path) -> None:
    """A file with no words is reported and nothing is emitted."""
    repo_root = Path(__file__).resolve().parents[1]
    input_path = tmp_path / "empty.txt"
    input_path.write_text(" \n\n ", encoding="utf-8")

    result = run_rsvp_reader(
        ["--input-text-file", str(input_path), "--emit-schedule"], repo_root
    )

    assert result.returncode == 1
    assert "rsvp_reader.acquisition.failed" in result.stderr
    assert result.stdout == ""


def test_saved_session_restores_settings_and_position(tmp_path: Path) -> None:
    """A saved session replays with its rate, pivot and text."""
    repo_root = Path(__file__).resolve().parents[1]
    input_path = tmp_path / "input.txt"
    input_path.write_text("alpha beta gamma", encoding="utf-8")
    session_path = tmp_path / "session.json"
    session_path.write_text(
        json.dumps(
            {
                "wpm": 600,
                "pivot_policy": {"mode": "fixed", "fixed_index": 0},
                "current_position": 1,
                "raw_text": "alpha beta gamma",
                "display_name": "input.txt",
            }
        ),
        encoding="utf-8",
    )
    saved_path = tmp_path / "saved.json"

    result = run_rsvp_reader(
        [
            "--session-file",
            str(session_path),
            "--emit-schedule",
            "--save-session",
            str(saved_path),
        ],
        repo_root,
    )

    assert result.returncode == 0, result.stderr
    payload = json.loads(result.stdout)
    assert payload["wpm"] == 600
    assert payload["pivot_mode"] == "fixed"
    assert [entry["word"] for entry in payload["schedule"]] == ["beta", "gamma"]
    assert payload["schedule"][0]["pivot"] == "b"

    saved = json.loads(saved_path.read_text(encoding="utf-8"))
    assert saved["wpm"] == 600
    assert saved["raw_text"] == "alpha beta gamma"
    assert saved["pivot_policy"] == {"mode": "fixed", "fixed_index": 0}


def test_unreadable_session_file_uses_defaults(tmp_path: Path) -> None:
    """A corrupt session file is ignored with a warning."""
    repo_root = Path(__file__).resolve().parents[1]
    input_path = tmp_path / "input.txt"
    input_path.write_text("alpha beta", encoding="utf-8")
    session_path = tmp_path / "session.json"
    session_path.write_text("{not json", encoding="utf-8")

    result = run_rsvp_reader(
        [
            "--session-file",
            str(session_path),
            "--input-text-file",
            str(input_path),
            "--emit-schedule",
        ],
        repo_root,
    )

    assert result.returncode == 0, result.stderr
    assert "rsvp_reader.input.session_file" in result.stderr
    assert json.loads(result.stdout)["wpm"] == 320
