"""
Line formatting for start and completion records.

Everything here is pure: a function takes request/outcome values and returns
the display string. Colour is applied with rich and rendered to ANSI escapes
only when asked for, so the plain layout is identical either way.
"""

from __future__ import annotations

import math
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from rich.console import Console
from rich.text import Text

from completion_logger.models import CompletionRecord, OutcomeKind


class Treatment(str, Enum):
    """
    Display treatment for a status severity bucket (a rich style name).
    """

    SPECIAL = "magenta"
    ALERT = "red"
    WARNING = "yellow"
    REDIRECT = "cyan"
    SUCCESS = "green"


# Hundreds digit of the status -> treatment. 0 doubles as the fallback.
SEVERITY_TABLE: Mapping[int, Treatment] = MappingProxyType(
    {
        7: Treatment.SPECIAL,
        5: Treatment.ALERT,
        4: Treatment.WARNING,
        3: Treatment.REDIRECT,
        2: Treatment.SUCCESS,
        1: Treatment.SUCCESS,
        0: Treatment.WARNING,
    }
)

EMPTY_BODY_STATUSES = frozenset({204, 205, 304})

DURATION_SECONDS_THRESHOLD_MS = 10_000

START_GLYPH = "<--"

_OUTCOME_GLYPHS: Mapping[OutcomeKind, Tuple[str, str]] = MappingProxyType(
    {
        OutcomeKind.FINISH: ("-->", "bright_black"),
        OutcomeKind.CLOSE: ("-x-", "yellow"),
        OutcomeKind.ERROR: ("xxx", "red"),
    }
)

_BYTE_UNITS = ("b", "kb", "mb", "gb", "tb", "pb")

_console = Console(
    force_terminal=True,
    color_system="standard",
    no_color=False,
    highlight=False,
    soft_wrap=True,
    width=10_000,
)


def severity_bucket(status: int) -> int:
    """
    Return the severity table key used for a status code.

    Buckets with no entry (e.g. 6xx or a malformed status) fall back to 0.
    """
    bucket = int(status) // 100
    return bucket if bucket in SEVERITY_TABLE else 0


def status_treatment(status: int) -> Treatment:
    return SEVERITY_TABLE[severity_bucket(status)]


def outcome_glyph(outcome: OutcomeKind) -> str:
    return _OUTCOME_GLYPHS[OutcomeKind(outcome)][0]


def format_bytes(size: int) -> str:
    """
    Human readable byte count with binary units, lower-cased.

    At most two decimals are kept and trailing zeros are stripped:
    128 -> "128b", 1536 -> "1.5kb", 2048 -> "2kb".
    """
    magnitude = abs(size)
    index = 0
    while index < len(_BYTE_UNITS) - 1 and magnitude >= 1024 ** (index + 1):
        index += 1

    value = size / (1024 ** index)
    text = f"{value:.2f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text}{_BYTE_UNITS[index]}"


def format_size(status: int, size: Optional[int]) -> str:
    if status in EMPTY_BODY_STATUSES:
        return ""
    if size is None:
        return "-"
    return format_bytes(size)


def format_duration(duration_ms: int) -> str:
    """
    Milliseconds below ten seconds, whole seconds (rounded half up) above.
    """
    if duration_ms < DURATION_SECONDS_THRESHOLD_MS:
        return f"{int(duration_ms)}ms"
    return f"{int(math.floor(duration_ms / 1000 + 0.5))}s"


def render(text: Text, color: bool) -> str:
    """
    Turn a styled line into a string, with ANSI escapes only if color is set.
    """
    if not color:
        return text.plain
    with _console.capture() as capture:
        _console.print(text, end="")
    return capture.get()


def _line(*parts: Tuple[str, str]) -> Text:
    text = Text("  ")
    for index, (value, style) in enumerate(parts):
        if index:
            text.append(" ")
        text.append(value, style=style or None)
    return text


def format_start(method: str, path: str, *, color: bool = False) -> str:
    line = _line(
        (START_GLYPH, "bright_black"),
        (method, "bold"),
        (path, "bright_black"),
    )
    return render(line, color)


def format_completion(
    method: str,
    path: str,
    status: int,
    duration_ms: int,
    size: Optional[int],
    outcome: OutcomeKind,
    *,
    color: bool = False,
) -> str:
    glyph, glyph_style = _OUTCOME_GLYPHS[OutcomeKind(outcome)]
    line = _line(
        (glyph, glyph_style),
        (method, "bold"),
        (path, "bright_black"),
        (str(status), status_treatment(status).value),
        (format_duration(duration_ms), "bright_black"),
        (format_size(status, size), "bright_black"),
    )
    return render(line, color)


def format_record(record: CompletionRecord, *, color: bool = False) -> str:
    return format_completion(
        record.method,
        record.path,
        record.status,
        record.duration_ms,
        record.size,
        record.outcome,
        color=color,
    )
