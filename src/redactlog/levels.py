"""Severity level table.

Levels are ordered from most to least severe. A message at level L is
shown for a ceiling C when ``L.rank <= C.rank``.

    rank   0      1      2     3     4        5      6
           fault  error  warn  info  verbose  debug  trace
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import InvalidLevel

FAULT = "fault"
ERROR = "error"
WARN = "warn"
INFO = "info"
VERBOSE = "verbose"
DEBUG = "debug"
TRACE = "trace"

LEVEL_NAMES: tuple[str, ...] = (FAULT, ERROR, WARN, INFO, VERBOSE, DEBUG, TRACE)

ANSI_RESET = "\x1b[m"

ANSI_COLORS: dict[str, str] = {
    FAULT: "\x1b[1;101;97m",
    ERROR: "\x1b[1;41;97m",
    WARN: "\x1b[1;104;97m",
    INFO: "\x1b[92m",
    VERBOSE: "\x1b[94m",
    DEBUG: "\x1b[94m",
    TRACE: "",
}

TEXT_TAGS: dict[str, str] = {
    FAULT: "[*FAULT*]",
    ERROR: "[ ERROR ]",
    WARN: "[  warn ]",
    INFO: "[   info]",
    VERBOSE: "[    vrb]",
    DEBUG: "[     db]",
    TRACE: "[      t]",
}


@dataclass(frozen=True)
class Level:
    """A severity level with its rank and display prefixes."""

    name: str
    rank: int
    text_prefix: str
    ansi_color: str = ""

    @property
    def ansi_prefix(self) -> str:
        """The bracket tag wrapped in this level's ANSI color."""
        return f"{self.ansi_color}{self.text_prefix}{ANSI_RESET}"

    def enables(self, other: Level) -> bool:
        """True if a message at ``other`` passes a ceiling of this level."""
        return other.rank <= self.rank

    def __str__(self) -> str:
        return self.name


LEVELS: tuple[Level, ...] = tuple(
    Level(name=name, rank=rank, text_prefix=TEXT_TAGS[name], ansi_color=ANSI_COLORS[name])
    for rank, name in enumerate(LEVEL_NAMES)
)

_BY_NAME: dict[str, Level] = {level.name: level for level in LEVELS}


def get_level(value: Level | str | int) -> Level:
    """Look up a level by Level, name or rank.

    Raises:
        InvalidLevel: if the value does not name a level
    """
    if isinstance(value, Level):
        return value
    if isinstance(value, str):
        level = _BY_NAME.get(value)
        if level is not None:
            return level
    elif isinstance(value, int) and not isinstance(value, bool):
        if 0 <= value < len(LEVELS):
            return LEVELS[value]
    raise InvalidLevel(value)


def is_valid_level(value: object) -> bool:
    """Check whether a value names a level."""
    try:
        get_level(value)  # type: ignore[arg-type]
    except InvalidLevel:
        return False
    return True
