"""Time-spec grammar for recording window bounds.

A bound is either a wall-clock time (``"22:10"``, ``"9:50"``) or a signed
offset from the solar anchor event (``"-1h20m"``, ``"30m"``, ``"90"``).
Parsing happens in two phases: ``tokenize`` splits the text into
``Token`` records, then ``parse_time_spec`` reduces them into a ``TimeSpec``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

SECONDS_PER_DAY = 86_400

UNIT_LETTERS = "shmz"
_SIGNS = "+-"
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "z": 1}
_DEFAULT_UNIT_SECONDS = 60  # bare numbers are minutes
_MAX_CLOCK_GROUPS = 3  # H:M:S


class TimeSpecError(ValueError):
    """Raised for malformed recording window time strings."""


class UnitBeforeDigit(TimeSpecError):
    def __init__(self, text: str) -> None:
        super().__init__(f"Unexpected token in time string {text!r}: unit specifier before integer")
        self.text = text


class ColonBeforeDigit(TimeSpecError):
    def __init__(self, text: str) -> None:
        super().__init__(f"Unexpected token in time string {text!r}: ':' before hour specifier")
        self.text = text


class UnexpectedCharacter(TimeSpecError):
    def __init__(self, text: str, char: str) -> None:
        super().__init__(f"Unexpected token in time string {text!r}: {char!r}")
        self.text = text
        self.char = char


class EmptyTimeSpec(TimeSpecError):
    def __init__(self, text: str) -> None:
        super().__init__(f"Failed to parse window time: {text!r}")
        self.text = text


@dataclass(frozen=True)
class AbsoluteTime:
    """Wall-clock time of day in the device's local time."""

    hour: int
    minute: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.hour <= 23:
            raise TimeSpecError(f"hour must be in 0..23, got {self.hour}")
        if not 0 <= self.minute <= 59:
            raise TimeSpecError(f"minute must be in 0..59, got {self.minute}")

    @property
    def seconds_past_midnight(self) -> int:
        return self.hour * 3600 + self.minute * 60


@dataclass(frozen=True)
class RelativeTime:
    """Signed offset in seconds from a solar anchor (negative = before)."""

    offset_seconds: int


TimeSpec = Union[AbsoluteTime, RelativeTime]


@dataclass(frozen=True)
class Token:
    """One magnitude group: sign, digits and what terminated it.

    ``unit`` is one of ``s``/``m``/``h``/``z``, ``":"`` for a clock group,
    or None when the group ran to the end of the string.
    """

    sign: int
    magnitude: int
    unit: str | None = None

    @property
    def value(self) -> int:
        return self.sign * self.magnitude


def tokenize(text: str) -> list[Token]:
    """Split a time string into magnitude tokens, scanning left to right."""
    tokens: list[Token] = []
    sign: int | None = None
    digits = ""

    for ch in text:
        if ch in _SIGNS:
            if sign is not None or digits:
                raise UnexpectedCharacter(text, ch)
            sign = -1 if ch == "-" else 1
        elif ch.isdigit() and ch.isascii():
            digits += ch
        elif ch in UNIT_LETTERS:
            if not digits:
                raise UnitBeforeDigit(text)
            tokens.append(Token(sign or 1, int(digits), ch))
            sign, digits = None, ""
        elif ch == ":":
            if not digits:
                raise ColonBeforeDigit(text)
            tokens.append(Token(sign or 1, int(digits), ":"))
            sign, digits = None, ""
        else:
            raise UnexpectedCharacter(text, ch)

    if digits:
        tokens.append(Token(sign or 1, int(digits)))
    return tokens


def _reduce_clock(text: str, tokens: list[Token]) -> AbsoluteTime:
    if len(tokens) > _MAX_CLOCK_GROUPS:
        raise UnexpectedCharacter(text, ":")
    for tok in tokens:
        if tok.unit not in (":", None):
            raise UnexpectedCharacter(text, tok.unit)
        if tok.sign < 0:
            raise UnexpectedCharacter(text, "-")
    # groups are hours, minutes, seconds; seconds are not used
    hour = tokens[0].magnitude
    minute = tokens[1].magnitude if len(tokens) > 1 else 0
    return AbsoluteTime(hour, minute)


def _reduce_offset(tokens: list[Token]) -> RelativeTime:
    total = 0
    for tok in tokens:
        seconds = tok.value * _UNIT_SECONDS.get(tok.unit or "", _DEFAULT_UNIT_SECONDS)
        # once negative, later unsigned groups extend the offset further back
        if total < 0 and seconds > 0:
            total -= seconds
        else:
            total += seconds
    return RelativeTime(total)


def parse_time_spec(text: str) -> TimeSpec:
    """Parse a recording window bound.

    Any ':' makes the string a clock time ("22:10" -> 22:10 local).
    Otherwise each group is a signed magnitude with an optional unit
    (s, m, h; minutes when omitted) and the groups are summed, so
    "-1h20m" is 80 minutes before the anchor.
    """
    tokens = tokenize(text)
    if not tokens:
        raise EmptyTimeSpec(text)
    if any(tok.unit == ":" for tok in tokens):
        return _reduce_clock(text, tokens)
    return _reduce_offset(tokens)


def format_time_spec(spec: TimeSpec) -> str:
    """Render a spec back to its canonical config string."""
    if isinstance(spec, AbsoluteTime):
        return f"{spec.hour:02d}:{spec.minute:02d}"
    seconds = abs(spec.offset_seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    out = "-" if spec.offset_seconds < 0 else ""
    if hours:
        out += f"{hours}h"
    if minutes:
        out += f"{minutes}m"
    if secs or not (hours or minutes):
        out += f"{secs}s"
    return out
