"""Parse schedule intervals such as ``15s``, ``1h``, ``2y`` or a bare minute count."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta

_UNIT_RE = re.compile(r"^(\d+)([smhdy])$", re.IGNORECASE)
_MINUTES_RE = re.compile(r"^\d+$")

# "y" is a flat 365 days; leap years are not accounted for.
_UNITS = {
    "s": lambda n: timedelta(seconds=n),
    "m": lambda n: timedelta(minutes=n),
    "h": lambda n: timedelta(hours=n),
    "d": lambda n: timedelta(days=n),
    "y": lambda n: timedelta(days=n * 365),
}

INTERVAL_HELP = "Use a number of minutes or a time format like 15s, 1m, 1h, 1d, 1y"


@dataclass(frozen=True)
class IntervalParseError:
    """Interval text that matched neither grammar."""

    text: str

    @property
    def message(self) -> str:
        return f"Invalid interval format: {self.text}. {INTERVAL_HELP}"


def parse_interval(text: str | None) -> timedelta | None | IntervalParseError:
    """Convert *text* into a positive ``timedelta``.

    Returns ``None`` for empty input (single run) and an
    :class:`IntervalParseError` when the text is not a valid interval.
    The unit-suffixed grammar is tried first; a bare integer falls back
    to whole minutes.
    """
    if text is None or not text.strip():
        return None
    value = text.strip()

    match = _UNIT_RE.match(value)
    if match:
        amount = int(match.group(1))
        if amount <= 0:
            return IntervalParseError(text)
        return _UNITS[match.group(2).lower()](amount)

    if _MINUTES_RE.match(value):
        minutes = int(value)
        if minutes <= 0:
            return IntervalParseError(text)
        return timedelta(minutes=minutes)

    return IntervalParseError(text)


def format_interval(interval: timedelta) -> str:
    """Render an interval compactly for log messages (``90s`` -> ``1m30s``)."""
    total = int(interval.total_seconds())
    parts = []
    for suffix, size in (("d", 86400), ("h", 3600), ("m", 60), ("s", 1)):
        count, total = divmod(total, size)
        if count:
            parts.append(f"{count}{suffix}")
    return "".join(parts) or "0s"
