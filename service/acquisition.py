"""Text acquisition collaborators that deliver plain text to the reader."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
import os
from typing import Protocol

from domain.reading import AcquisitionError, normalize_text

LOGGER = logging.getLogger("rsvp_reader.acquisition")


@dataclass(frozen=True)
class AcquiredText:
    """Plain text extracted from a source document."""

    display_name: str
    text: str


class TextAcquirer(Protocol):
    """Turns a source reference into plain text, asynchronously."""

    async def acquire(self, source: str) -> AcquiredText: ...


def read_utf8_text_strict(file_path: str) -> str:
    """Read a UTF-8 file with strict decoding."""
    try:
        with open(file_path, "rb") as file_handle:
            file_bytes = file_handle.read()
    except FileNotFoundError as exc:
        raise AcquisitionError(f"input text file not found: {file_path}") from exc
    except IsADirectoryError as exc:
        raise AcquisitionError(f"input text path is a directory: {file_path}") from exc
    except PermissionError as exc:
        raise AcquisitionError(f"input text file is not readable: {file_path}") from exc
    except OSError as exc:
        raise AcquisitionError(f"input text file could not be read: {file_path}") from exc

    try:
        return file_bytes.decode("utf-8", errors="strict")
    except UnicodeDecodeError as exc:
        raise AcquisitionError(
            f"input text file is not valid UTF-8 at byte offset {exc.start}"
        ) from exc


class PlainTextAcquirer:
    """Reads UTF-8 text files off the event loop thread."""

    async def acquire(self, source: str) -> AcquiredText:
        text_value = await asyncio.to_thread(read_utf8_text_strict, source)
        if not normalize_text(text_value):
            raise AcquisitionError("no readable text found")
        display_name = os.path.basename(source) or source
        LOGGER.debug("acquired %d characters from %s", len(text_value), display_name)
        return AcquiredText(display_name=display_name, text=text_value)
