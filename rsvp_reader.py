#!/usr/bin/env -S uv run
# /// script
# requires-python = ">=3.11"
# dependencies = [
#   "pillow>=10.1"
# ]
# ///
"""Present text one word at a time around a fixed pivot letter.

Renders the reading to a MOV, prints the word schedule as JSON, or plays it
live in a terminal.
"""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass
from enum import Enum
import json
import logging
import math
import os
import re
import shutil
import subprocess
import sys
from typing import Any, Callable, Sequence, TextIO, Tuple

from PIL import Image, ImageDraw

from domain.reading import (
    INVALID_COLOR_CODE,
    INVALID_CONFIG_CODE,
    AcquisitionError,
    EmptyContentError,
    GeometryUnavailableError,
    PacingConfig,
    PivotMode,
    PivotPolicy,
    ReaderValidationError,
    parse_pivot_mode,
    pivot_for_word,
    progress_percent,
)
from domain.snapshot import SessionSnapshot, parse_snapshot
from service.acquisition import PlainTextAcquirer
from service.geometry import (
    FONT_MIN_PX,
    FrameGeometry,
    MonospaceTextMetrics,
    PillowTextMetrics,
    TextMetrics,
    Viewport,
    WordLayout,
)
from service.playback import PlaybackState, TimerBackend, VirtualClock
from service.render_plan import RenderPlan, build_reading_render_plan
from service.session import (
    STEP_BACK_KEY,
    STEP_FORWARD_KEY,
    TOGGLE_KEY,
    ReaderSession,
)

LOGGER = logging.getLogger("rsvp_reader")

SESSION_FILE_CODE = "rsvp_reader.input.session_file"
FFMPEG_NOT_FOUND_CODE = "rsvp_reader.ffmpeg.not_found"
FFMPEG_EXEC_CODE = "rsvp_reader.ffmpeg.exec_error"
FFMPEG_UNSUPPORTED_CODE = "rsvp_reader.ffmpeg.unsupported"
FFMPEG_PROCESS_CODE = "rsvp_reader.ffmpeg.process_failed"

WORD_COLOR = (235, 235, 235, 255)
PIVOT_COLOR = (255, 64, 64, 255)
FRAME_OUTLINE_COLOR = (90, 90, 90, 255)
GUIDE_COLOR = (200, 40, 40, 255)
FRAME_OUTLINE_WIDTH = 2
GUIDE_WIDTH = 2
GUIDE_GAP_RATIO = 0.75
GUIDE_LENGTH_RATIO = 0.35

PRORES_PROFILE = "4444"
PRORES_PIXEL_FORMAT = "yuva444p10le"
PRORES_QSCALE_BASE = 15
PRORES_QSCALE_MAX = 28
PRORES_QSCALE_REFERENCE_PIXELS = 1920 * 1080
PRORES_ALPHA_BITS = "8"
H264_CODEC = "libx264"
H264_PIXEL_FORMAT = "yuv420p"
H264_CRF = "20"
H264_PRESET = "veryfast"
H264_TUNE = "stillimage"

TERMINAL_KEY_CODES = {
    " ": TOGGLE_KEY,
    "\x1b[D": STEP_BACK_KEY,
    "\x1b[C": STEP_FORWARD_KEY,
}
TERMINAL_QUIT_KEYS = ("q", "Q", "\x03")
TERMINAL_RESTART_KEYS = ("r", "R")
TERMINAL_PIVOT_STYLE = "\x1b[1;31m"
TERMINAL_RESET_STYLE = "\x1b[0m"
TERMINAL_CLEAR_LINE = "\r\x1b[2K"


class RenderPipelineError(RuntimeError):
    """Runtime error with a stable error code."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class VideoAlphaMode(str, Enum):
    """Alpha handling mode for video output."""

    ALPHA = "alpha"
    OPAQUE = "opaque"


@dataclass(frozen=True)
class ReaderRequest:
    """Parsed CLI request and runtime options."""

    input_text_file: str | None
    session_file: str | None
    save_session: str | None
    output_video_file: str
    width: int
    height: int
    fps: int
    background_rgba: Tuple[int, int, int, int]
    font_file: str | None
    wpm: int | None
    pivot_mode: PivotMode | None
    fixed_pivot: int | None
    word_scale: int | None
    frame_width: float | None
    frame_height: float | None
    emit_schedule: bool
    terminal: bool

    def __post_init__(self) -> None:
        if self.input_text_file is None and self.session_file is None:
            raise ReaderValidationError(
                INVALID_CONFIG_CODE, "input-text-file or session-file is required"
            )
        if self.width <= 0 or self.height <= 0:
            raise ReaderValidationError(
                INVALID_CONFIG_CODE, "width and height must be positive"
            )
        if self.fps <= 0:
            raise ReaderValidationError(INVALID_CONFIG_CODE, "fps must be positive")
        if not self.output_video_file.lower().endswith(".mov"):
            raise ReaderValidationError(
                INVALID_CONFIG_CODE, "output_video_file must end with .mov"
            )
        if self.emit_schedule and self.terminal:
            raise ReaderValidationError(
                INVALID_CONFIG_CODE, "emit-schedule cannot be combined with terminal"
            )


@dataclass(frozen=True)
class VideoEncodingSpec:
    """Encoder settings for a specific alpha mode."""

    codec: str
    pix_fmt: str
    args_builder: Callable[[int, int], Tuple[str, ...]]
    encoder_name: str


def configure_logging() -> None:
    """Configure logging for CLI output."""
    logging.basicConfig(level=logging.INFO, format="%(message)s")


def parse_hex_color_to_rgba(color_value: str) -> Tuple[int, int, int, int]:
    """Parse a color token into an RGBA tuple."""
    normalized = color_value.strip()
    if normalized.lower() == "transparent":
        return (0, 0, 0, 0)

    match_value = re.fullmatch(r"#([0-9a-fA-F]{6})", normalized)
    if not match_value:
        raise ReaderValidationError(
            INVALID_COLOR_CODE,
            f"invalid color value: {color_value!r}",
        )

    rgb_hex = match_value.group(1)
    return (int(rgb_hex[0:2], 16), int(rgb_hex[2:4], 16), int(rgb_hex[4:6], 16), 255)


def select_alpha_mode(background_rgba: Tuple[int, int, int, int]) -> VideoAlphaMode:
    """Select alpha output mode based on the requested background."""
    if background_rgba[3] == 0:
        return VideoAlphaMode.ALPHA
    return VideoAlphaMode.OPAQUE


def compute_prores_qscale(width: int, height: int) -> int:
    """Compute a ProRes quantizer based on the frame size."""
    scale = (width * height) / PRORES_QSCALE_REFERENCE_PIXELS
    qscale = int(round(PRORES_QSCALE_BASE * math.sqrt(scale)))
    return max(PRORES_QSCALE_BASE, min(PRORES_QSCALE_MAX, qscale))


def build_prores_args(width: int, height: int) -> Tuple[str, ...]:
    """Build ProRes codec arguments."""
    return (
        "-profile:v",
        PRORES_PROFILE,
        "-qscale:v",
        str(compute_prores_qscale(width, height)),
        "-alpha_bits",
        PRORES_ALPHA_BITS,
    )


def build_h264_args(width: int, height: int) -> Tuple[str, ...]:
    """Build H.264 codec arguments."""
    return ("-crf", H264_CRF, "-preset", H264_PRESET, "-tune", H264_TUNE)


ENCODING_SPECS = {
    VideoAlphaMode.ALPHA: VideoEncodingSpec(
        codec="prores_ks",
        pix_fmt=PRORES_PIXEL_FORMAT,
        args_builder=build_prores_args,
        encoder_name="prores_ks",
    ),
    VideoAlphaMode.OPAQUE: VideoEncodingSpec(
        codec=H264_CODEC,
        pix_fmt=H264_PIXEL_FORMAT,
        args_builder=build_h264_args,
        encoder_name=H264_CODEC,
    ),
}


def ensure_ffmpeg_available(alpha_mode: VideoAlphaMode) -> str:
    """Ensure ffmpeg is installed and supports the encoder for the alpha mode."""
    ffmpeg_path = shutil.which("ffmpeg")
    if not ffmpeg_path:
        raise RenderPipelineError(FFMPEG_NOT_FOUND_CODE, "ffmpeg not on PATH")
    try:
        encoders_result = subprocess.run(
            [ffmpeg_path, "-hide_banner", "-encoders"],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        raise RenderPipelineError(
            FFMPEG_EXEC_CODE, "ffmpeg exists but could not be executed"
        ) from exc
    encoder_name = ENCODING_SPECS[alpha_mode].encoder_name
    if encoder_name not in encoders_result.stdout:
        raise RenderPipelineError(
            FFMPEG_UNSUPPORTED_CODE, f"ffmpeg does not support {encoder_name} encoder"
        )
    return ffmpeg_path


def open_ffmpeg_process(
    request: ReaderRequest, alpha_mode: VideoAlphaMode, ffmpeg_path: str
) -> subprocess.Popen[bytes]:
    """Start ffmpeg for a raw RGBA frame stream."""
    encoding = ENCODING_SPECS[alpha_mode]
    ffmpeg_cmd = [
        ffmpeg_path,
        "-y",
        "-f",
        "rawvideo",
        "-pix_fmt",
        "rgba",
        "-s",
        f"{request.width}x{request.height}",
        "-r",
        str(request.fps),
        "-i",
        "-",
        "-an",
        "-c:v",
        encoding.codec,
        *encoding.args_builder(request.width, request.height),
        "-pix_fmt",
        encoding.pix_fmt,
        "-movflags",
        "+faststart",
        request.output_video_file,
    ]
    try:
        return subprocess.Popen(
            ffmpeg_cmd,
            stdin=subprocess.PIPE,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise RenderPipelineError(FFMPEG_NOT_FOUND_CODE, "ffmpeg not found") from exc


def load_session_snapshot(file_path: str) -> SessionSnapshot:
    """Read a session snapshot file; malformed fields fall back to defaults."""
    try:
        with open(file_path, "r", encoding="utf-8") as file_handle:
            payload = json.load(file_handle)
    except FileNotFoundError as exc:
        raise ReaderValidationError(
            SESSION_FILE_CODE, f"session file not found: {file_path}"
        ) from exc
    except (UnicodeDecodeError, json.JSONDecodeError):
        LOGGER.warning("%s: ignoring unreadable session file %s", SESSION_FILE_CODE, file_path)
        return SessionSnapshot()
    return parse_snapshot(payload)


def save_session_snapshot(file_path: str, snapshot: SessionSnapshot) -> None:
    """Write a session snapshot as JSON."""
    with open(file_path, "w", encoding="utf-8") as file_handle:
        json.dump(snapshot.to_dict(), file_handle, ensure_ascii=False, indent=2)
    LOGGER.info("saved session to %s", file_path)


def apply_request_overrides(session: ReaderSession, request: ReaderRequest) -> None:
    """Apply settings given on the command line over restored ones."""
    if request.wpm is not None:
        session.set_wpm(request.wpm)
    if request.pivot_mode is not None:
        session.set_pivot_mode(request.pivot_mode)
    if request.fixed_pivot is not None:
        session.set_fixed_pivot(request.fixed_pivot)
    if request.word_scale is not None:
        session.set_word_scale(request.word_scale)
    if request.frame_width is not None or request.frame_height is not None:
        session.set_frame(
            FrameGeometry(
                request.frame_width
                if request.frame_width is not None
                else session.frame.width_pct,
                request.frame_height
                if request.frame_height is not None
                else session.frame.height_pct,
            )
        )


async def prepare_session(
    request: ReaderRequest,
    timer_backend: TimerBackend,
    metrics: TextMetrics,
    viewport: Viewport,
) -> ReaderSession:
    """Build a session from the snapshot, the text file and the CLI overrides."""
    session = ReaderSession(timer_backend, metrics, viewport)
    if request.session_file is not None:
        session.restore(load_session_snapshot(request.session_file))
    apply_request_overrides(session, request)
    if request.input_text_file is not None:
        await session.acquire(PlainTextAcquirer(), request.input_text_file)
    if not session.has_content:
        raise EmptyContentError()
    return session


def build_schedule_payload(session: ReaderSession, plan: RenderPlan) -> dict[str, Any]:
    """Describe every scheduled word with its timing and layout."""
    entries = []
    for scheduled in plan.scheduled_words:
        token = plan.words[scheduled.token_index]
        layout = session.layout_for(token.text)
        entries.append(
            {
                "index": token.position,
                "word": token.text,
                "left": layout.left,
                "pivot": layout.pivot,
                "right": layout.right,
                "start_ms": round(scheduled.start_ms, 3),
                "duration_ms": round(scheduled.duration_ms, 3),
                "start_frame": scheduled.start_frame,
                "frame_count": scheduled.frame_count,
                "font_size": round(layout.font_size, 3),
                "pivot_offset": round(layout.pivot_offset, 3),
            }
        )
    return {
        "display_name": session.display_name,
        "wpm": session.pacing.wpm,
        "pivot_mode": session.pivot_policy.mode.value,
        "total_frames": plan.total_frames,
        "schedule": entries,
    }


def emit_schedule(payload: dict[str, Any], stream: TextIO) -> None:
    """Emit the schedule payload as JSON."""
    stream.write(json.dumps(payload, ensure_ascii=True))
    stream.write("\n")


def draw_reading_frame(
    layout: WordLayout,
    metrics: PillowTextMetrics,
    viewport: Viewport,
    background_rgba: Tuple[int, int, int, int],
) -> Image.Image:
    """Draw the frame outline, pivot guides and the word with its pivot highlighted."""
    frame_image = Image.new("RGBA", (viewport.width, viewport.height), color=background_rgba)
    draw = ImageDraw.Draw(frame_image)
    left, top, right, bottom = layout.frame_box
    draw.rectangle(
        (left, top, right - 1, bottom - 1),
        outline=FRAME_OUTLINE_COLOR,
        width=FRAME_OUTLINE_WIDTH,
    )

    guide_gap = layout.font_size * GUIDE_GAP_RATIO
    guide_length = (bottom - top) * GUIDE_LENGTH_RATIO / 2.0
    upper_end = layout.anchor_y - guide_gap
    lower_start = layout.anchor_y + guide_gap
    if upper_end - guide_length > top:
        draw.line(
            (layout.anchor_x, upper_end - guide_length, layout.anchor_x, upper_end),
            fill=GUIDE_COLOR,
            width=GUIDE_WIDTH,
        )
    if lower_start + guide_length < bottom:
        draw.line(
            (layout.anchor_x, lower_start, layout.anchor_x, lower_start + guide_length),
            fill=GUIDE_COLOR,
            width=GUIDE_WIDTH,
        )

    if not layout.pivot:
        return frame_image
    font = metrics.font(layout.font_size)
    draw.text(
        (layout.origin_x, layout.anchor_y), layout.word, font=font, fill=WORD_COLOR, anchor="lm"
    )
    pivot_x = layout.origin_x + metrics.text_width(layout.left, layout.font_size)
    draw.text((pivot_x, layout.anchor_y), layout.pivot, font=font, fill=PIVOT_COLOR, anchor="lm")
    return frame_image


def render_reading_video(
    request: ReaderRequest,
    session: ReaderSession,
    plan: RenderPlan,
    metrics: PillowTextMetrics,
) -> None:
    """Stream one frame per plan frame to ffmpeg."""
    alpha_mode = select_alpha_mode(request.background_rgba)
    if alpha_mode == VideoAlphaMode.OPAQUE and (request.width % 2 or request.height % 2):
        raise ReaderValidationError(
            INVALID_CONFIG_CODE, "width and height must be even for opaque output"
        )
    ffmpeg_path = ensure_ffmpeg_available(alpha_mode)
    ffmpeg_process = open_ffmpeg_process(request, alpha_mode, ffmpeg_path)
    if not ffmpeg_process.stdin:
        raise RenderPipelineError(FFMPEG_PROCESS_CODE, "ffmpeg stdin unavailable")

    viewport = Viewport(request.width, request.height)
    try:
        for scheduled in plan.scheduled_words:
            token = plan.words[scheduled.token_index]
            frame_image = draw_reading_frame(
                session.layout_for(token.text), metrics, viewport, request.background_rgba
            )
            frame_bytes = frame_image.tobytes()
            for _ in range(scheduled.frame_count):
                ffmpeg_process.stdin.write(frame_bytes)

        ffmpeg_process.stdin.close()
        stderr_bytes = ffmpeg_process.stderr.read() if ffmpeg_process.stderr else b""
        return_code = ffmpeg_process.wait()
        if return_code != 0:
            stderr_text = stderr_bytes.decode("utf-8", errors="replace").strip()
            raise RenderPipelineError(
                FFMPEG_PROCESS_CODE,
                f"ffmpeg failed with exit code {return_code}. {stderr_text}",
            )
    finally:
        if ffmpeg_process.stdin and not ffmpeg_process.stdin.closed:
            try:
                ffmpeg_process.stdin.close()
            except BrokenPipeError:
                LOGGER.debug("ffmpeg stdin already closed")
        if ffmpeg_process.poll() is None:
            ffmpeg_process.kill()
            ffmpeg_process.wait()


async def run_offline(request: ReaderRequest, stream: TextIO) -> None:
    """Build the schedule on a virtual clock, then emit it or render the video."""
    metrics = PillowTextMetrics(request.font_file)
    viewport = Viewport(request.width, request.height)
    session = await prepare_session(request, VirtualClock(), metrics, viewport)
    try:
        plan = build_reading_render_plan(
            session.tokens, session.pacing, request.fps, session.state.position
        )
        if request.emit_schedule:
            emit_schedule(build_schedule_payload(session, plan), stream)
        else:
            metrics.font(FONT_MIN_PX)
            render_reading_video(request, session, plan, metrics)
            LOGGER.info(
                "rendered %d words over %.2fs to %s",
                len(plan.scheduled_words),
                plan.duration_seconds,
                request.output_video_file,
            )
        if request.save_session is not None:
            save_session_snapshot(request.save_session, session.snapshot())
    finally:
        session.close()


def format_terminal_line(word: str, policy: PivotPolicy, columns: int) -> str:
    """Pad a word so its pivot letter lands on the middle column."""
    parts = pivot_for_word(word, policy)
    padding = max(columns // 2 - len(parts.left), 0)
    return (
        " " * padding
        + parts.left
        + TERMINAL_PIVOT_STYLE
        + parts.pivot
        + TERMINAL_RESET_STYLE
        + parts.right
    )


class TerminalKeyReader:
    """Reads single key presses from a TTY in cbreak mode on the event loop."""

    def __init__(self, file_descriptor: int) -> None:
        self.file_descriptor = file_descriptor
        self._saved_attributes: list[Any] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def start(self, loop: asyncio.AbstractEventLoop, on_key: Callable[[str], None]) -> None:
        import termios
        import tty

        self._saved_attributes = termios.tcgetattr(self.file_descriptor)
        tty.setcbreak(self.file_descriptor)
        self._loop = loop
        loop.add_reader(self.file_descriptor, self._read, on_key)

    def _read(self, on_key: Callable[[str], None]) -> None:
        data = os.read(self.file_descriptor, 8).decode("utf-8", errors="ignore")
        if data:
            on_key(data)

    def stop(self) -> None:
        if self._loop is not None:
            self._loop.remove_reader(self.file_descriptor)
            self._loop = None
        if self._saved_attributes is not None:
            import termios

            termios.tcsetattr(self.file_descriptor, termios.TCSADRAIN, self._saved_attributes)
            self._saved_attributes = None


async def run_terminal(request: ReaderRequest, stream: TextIO) -> None:
    """Play the reading live on the event loop until it ends or the user quits."""
    loop = asyncio.get_running_loop()
    columns, rows = shutil.get_terminal_size()
    session = await prepare_session(request, loop, MonospaceTextMetrics(), Viewport(columns, rows))
    finished: asyncio.Future[None] = loop.create_future()
    interactive = sys.stdin.isatty()
    playback_started = False

    def render(state: PlaybackState) -> None:
        line = format_terminal_line(session.current_word, session.pivot_policy, columns)
        percent = progress_percent(state.position, state.token_count)
        stream.write(f"{TERMINAL_CLEAR_LINE}{line}  [{percent}%]")
        stream.flush()
        reached_end = state.position + 1 >= state.token_count
        if (
            playback_started
            and not interactive
            and not state.playing
            and reached_end
            and not finished.done()
        ):
            finished.set_result(None)

    def on_key(data: str) -> None:
        if data in TERMINAL_QUIT_KEYS:
            if not finished.done():
                finished.set_result(None)
        elif data in TERMINAL_RESTART_KEYS:
            session.restart()
        else:
            session.handle_key(TERMINAL_KEY_CODES.get(data, ""))

    key_reader = TerminalKeyReader(sys.stdin.fileno()) if interactive else None
    session.set_listener(render)
    try:
        if key_reader is not None:
            key_reader.start(loop, on_key)
        render(session.state)
        playback_started = True
        session.play()
        await finished
    finally:
        if key_reader is not None:
            key_reader.stop()
        session.close()
        stream.write("\n")
        stream.flush()
    if request.save_session is not None:
        save_session_snapshot(request.save_session, session.snapshot())


def parse_args(argv: Sequence[str]) -> ReaderRequest:
    """Parse CLI arguments into a ReaderRequest."""
    parser = argparse.ArgumentParser(prog="rsvp_reader.py", add_help=True)
    parser.add_argument("--input-text-file", default=None)
    parser.add_argument("--session-file", default=None)
    parser.add_argument("--save-session", default=None)
    parser.add_argument("--output-video-file", default="reading.mov")
    parser.add_argument("--width", type=int, default=1280)
    parser.add_argument("--height", type=int, default=720)
    parser.add_argument("--fps", type=int, default=30)
    parser.add_argument(
        "--background", default="#101010", help="transparent or #RRGGBB (default)"
    )
    parser.add_argument("--font-file", default=None)
    parser.add_argument("--wpm", type=int, default=None)
    parser.add_argument("--pivot-mode", default=None, help="auto or fixed")
    parser.add_argument("--fixed-pivot", type=int, default=None)
    parser.add_argument("--word-scale", type=int, default=None)
    parser.add_argument("--frame-width", type=float, default=None)
    parser.add_argument("--frame-height", type=float, default=None)
    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument("--emit-schedule", action="store_true")
    mode_group.add_argument("--terminal", action="store_true")

    parsed = parser.parse_args(argv)
    if parsed.wpm is not None:
        PacingConfig(parsed.wpm)
    if parsed.font_file is not None and not os.path.isfile(parsed.font_file):
        raise ReaderValidationError(
            INVALID_CONFIG_CODE, f"font file not found: {parsed.font_file}"
        )
    if parsed.frame_width is not None or parsed.frame_height is not None:
        FrameGeometry(
            parsed.frame_width if parsed.frame_width is not None else FrameGeometry().width_pct,
            parsed.frame_height if parsed.frame_height is not None else FrameGeometry().height_pct,
        )

    return ReaderRequest(
        input_text_file=parsed.input_text_file,
        session_file=parsed.session_file,
        save_session=parsed.save_session,
        output_video_file=parsed.output_video_file,
        width=parsed.width,
        height=parsed.height,
        fps=parsed.fps,
        background_rgba=parse_hex_color_to_rgba(parsed.background),
        font_file=parsed.font_file,
        wpm=parsed.wpm,
        pivot_mode=parse_pivot_mode(parsed.pivot_mode) if parsed.pivot_mode else None,
        fixed_pivot=parsed.fixed_pivot,
        word_scale=parsed.word_scale,
        frame_width=parsed.frame_width,
        frame_height=parsed.frame_height,
        emit_schedule=parsed.emit_schedule,
        terminal=parsed.terminal,
    )


def main() -> int:
    """CLI entrypoint."""
    configure_logging()

    try:
        request = parse_args(sys.argv[1:])
        if request.terminal:
            asyncio.run(run_terminal(request, sys.stdout))
        else:
            asyncio.run(run_offline(request, sys.stdout))
        return 0
    except ReaderValidationError as exc:
        LOGGER.error("%s: %s", exc.code, str(exc).strip())
        return 1
    except AcquisitionError as exc:
        LOGGER.error("%s: %s", exc.code, str(exc).strip())
        return 1
    except GeometryUnavailableError as exc:
        LOGGER.error("%s: %s", exc.code, str(exc).strip())
        return 1
    except RenderPipelineError as exc:
        LOGGER.error("%s: %s", exc.code, str(exc).strip())
        return 1
    except KeyboardInterrupt:
        return 130
    except Exception as exc:
        LOGGER.error("rsvp_reader.unhandled_error: %s", str(exc).strip())
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
