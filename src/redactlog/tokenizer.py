"""Format-string tokenizer.

Turns a printf-style format and its positional arguments into a flat list
of typed tokens. Redaction markers in the format become pragma tokens so
each transport can decide for itself what to reveal.

Specifiers:
    %<  open a redacted region; at the very start of the format the whole
        line is sensitive (redact-all)
    %>  close a redacted region; at the very end of the format everything
        after it, trailing arguments included, is sensitive (redact-remainder)
    %s  next argument as a string
    %d  next argument as a decimal number
    %%  a literal percent sign

A format that both starts with ``%<`` and ends with ``%>`` is one region
wrapping the whole message, not redact-all plus redact-remainder.

Arguments left over once the format is consumed are appended as typed
tokens. Problems (unclosed regions, unsupported argument types) become
inline warning tokens; tokenizing never raises.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable, Iterator, Sequence

from rich.pretty import pretty_repr


class TokenType(str, Enum):
    """Kinds of tokens produced by the tokenizer."""

    PRAGMA = "pragma"
    BOOLEAN = "boolean"
    NUMBER = "number"
    NIL = "nil"
    STRING = "string"
    SYMBOL = "symbol"
    FUNCTION = "function"
    UNSUPPORTED = "unsupported"
    WARNING = "warning"


class Pragma(str, Enum):
    """Redaction markers carried by pragma tokens."""

    REDACT_ALL = "redact-all"
    REDACT_START = "redact-start"
    REDACT_END = "redact-end"
    REDACT_REMAINDER = "redact-remainder"


DATA_TYPES: frozenset[TokenType] = frozenset(
    {
        TokenType.BOOLEAN,
        TokenType.NUMBER,
        TokenType.NIL,
        TokenType.STRING,
        TokenType.SYMBOL,
        TokenType.FUNCTION,
        TokenType.UNSUPPORTED,
    }
)

UNCLOSED_REDACTION = "Unclosed redaction"
NESTED_REDACTION = "Nested redaction"
CLOSE_WITHOUT_OPEN = "Closing redaction without opening redaction"

# Structural inspection of %s arguments stops below this depth
INSPECT_DEPTH = 1
INSPECT_WIDTH = 1 << 16


@dataclass(frozen=True)
class Token:
    """A single token.

    ``value`` is the Pragma for pragma tokens, the message for warning
    tokens and the raw value otherwise. ``argument`` marks tokens built
    from trailing positional arguments; it does not take part in equality.
    """

    type: TokenType
    value: Any = None
    argument: bool = field(default=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", TokenType(self.type))
        if self.type is TokenType.PRAGMA:
            object.__setattr__(self, "value", Pragma(self.value))

    @property
    def is_pragma(self) -> bool:
        return self.type is TokenType.PRAGMA

    @property
    def is_data(self) -> bool:
        return self.type in DATA_TYPES


# Scanner event kinds
_LITERAL = "literal"
_OPEN = "open"
_CLOSE = "close"
_STRING = "string"
_NUMBER = "number"
_PERCENT = "percent"

_SPECIFIERS = {
    "<": _OPEN,
    ">": _CLOSE,
    "s": _STRING,
    "d": _NUMBER,
    "%": _PERCENT,
}


def _scan(fmt: str) -> Iterator[tuple[str, str]]:
    """Split a format into (kind, source text) events."""
    chars = iter(fmt)
    for c in chars:
        if c != "%":
            yield _LITERAL, c
            continue
        d = next(chars, None)
        if d is None:
            yield _LITERAL, c
        else:
            yield _SPECIFIERS.get(d, _LITERAL), c + d


def _is_wrapped(events: Sequence[tuple[str, str]]) -> bool:
    """True if a region opened at the very start stays open until the final %>."""
    last = len(events) - 1
    if last < 1 or events[0][0] != _OPEN or events[last][0] != _CLOSE:
        return False
    depth = 1
    for kind, _ in events[1:last]:
        if kind == _OPEN:
            depth += 1
        elif kind == _CLOSE:
            depth -= 1
            if depth == 0:
                return False
    return True


class _TokenBuilder:
    """Accumulates tokens while tracking redaction state."""

    def __init__(self, args: Sequence[Any]) -> None:
        self.tokens: list[Token] = []
        self._args: Iterator[Any] = iter(args)
        self._text: list[str] = []
        self._depth = 0
        self._redact_all = False

    def next_arg(self) -> tuple[bool, Any]:
        for value in self._args:
            return True, value
        return False, None

    def remaining_args(self) -> Iterator[Any]:
        return self._args

    def text(self, value: str) -> None:
        self._text.append(value)

    def warn(self, message: str) -> None:
        self.tokens.append(Token(TokenType.WARNING, message))

    def redact_all(self) -> None:
        self._flush()
        self.tokens.append(Token(TokenType.PRAGMA, Pragma.REDACT_ALL))
        self._redact_all = True

    def open_region(self) -> None:
        if self._redact_all:
            return
        if self._depth > 0:
            self.warn(NESTED_REDACTION)
            self._depth += 1
            return
        self._flush()
        self.tokens.append(Token(TokenType.PRAGMA, Pragma.REDACT_START))
        self._depth = 1

    def close_region(self) -> None:
        if self._redact_all:
            return
        if self._depth > 1:
            self._depth -= 1
        elif self._depth == 1:
            self._flush()
            self.tokens.append(Token(TokenType.PRAGMA, Pragma.REDACT_END))
            self._depth = 0
        else:
            self.warn(CLOSE_WITHOUT_OPEN)

    def redact_remainder(self) -> None:
        if self._redact_all:
            return
        self._flush()
        if self._depth > 0:
            self.warn(UNCLOSED_REDACTION)
            self._depth = 0
        self.tokens.append(Token(TokenType.PRAGMA, Pragma.REDACT_REMAINDER))

    def finish(self) -> list[Token]:
        self._flush()
        for value in self.remaining_args():
            self.tokens.extend(argument_tokens(value))
        if self._depth > 0:
            self.warn(UNCLOSED_REDACTION)
            self.tokens.append(Token(TokenType.PRAGMA, Pragma.REDACT_END))
            self._depth = 0
        return self.tokens

    def _flush(self) -> None:
        if self._text:
            self.tokens.append(Token(TokenType.STRING, "".join(self._text)))
            self._text = []


def tokenize(fmt: Any, *args: Any) -> list[Token]:
    """Tokenize a format string and its arguments.

    Args:
        fmt: printf-style format; a non-string is treated as the first
            trailing argument of an empty format
        *args: positional arguments

    Returns:
        Ordered list of tokens
    """
    if not isinstance(fmt, str):
        args = (fmt, *args)
        fmt = ""

    builder = _TokenBuilder(args)
    events = list(_scan(fmt))
    last = len(events) - 1
    wrapped = _is_wrapped(events)

    for index, (kind, source) in enumerate(events):
        if kind == _OPEN:
            if index == 0 and not wrapped:
                builder.redact_all()
            else:
                builder.open_region()
        elif kind == _CLOSE:
            if index == last and not wrapped:
                builder.redact_remainder()
            else:
                builder.close_region()
        elif kind == _STRING:
            found, value = builder.next_arg()
            builder.text(_safe_stringify(builder, value) if found else source)
        elif kind == _NUMBER:
            found, value = builder.next_arg()
            builder.text(decimal_string(value) if found else source)
        elif kind == _PERCENT:
            builder.text("%")
        else:
            builder.text(source)

    return builder.finish()


def argument_tokens(value: Any) -> list[Token]:
    """Build the token(s) for one trailing argument."""
    if value is None:
        return [Token(TokenType.NIL, None, argument=True)]
    if isinstance(value, bool):
        return [Token(TokenType.BOOLEAN, value, argument=True)]
    # IntEnum members are numbers too; the symbol reading wins
    if isinstance(value, Enum):
        return [Token(TokenType.SYMBOL, value, argument=True)]
    if isinstance(value, numbers.Number):
        return [Token(TokenType.NUMBER, value, argument=True)]
    if isinstance(value, str):
        return [Token(TokenType.STRING, value, argument=True)]
    if callable(value):
        return [Token(TokenType.FUNCTION, value, argument=True)]
    return [
        Token(TokenType.UNSUPPORTED, value, argument=True),
        Token(TokenType.WARNING, f"Unsupported type {type(value).__name__}"),
    ]


def stringify(value: Any) -> str:
    """Render a %s argument."""
    if isinstance(value, str):
        return value
    if type(value).__str__ is not object.__str__:
        return str(value)
    return pretty_repr(value, max_width=INSPECT_WIDTH, max_depth=INSPECT_DEPTH)


def _safe_stringify(builder: _TokenBuilder, value: Any) -> str:
    """stringify, falling back to a placeholder plus a warning when it fails."""
    try:
        return stringify(value)
    except Exception:
        name = type(value).__name__
        builder.warn(f"Unprintable value of type {name}")
        return f"[unprintable {name}]"


def decimal_string(value: Any) -> str:
    """Render a %d argument.

    Integral values print without a fraction or exponent, infinities as
    ``Infinity``/``-Infinity`` and anything non-numeric as ``NaN``.
    """
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, int):
        return str(value)

    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return "NaN"
    elif isinstance(value, numbers.Real):
        try:
            number = Decimal(repr(float(value)))
        except Exception:
            return "NaN"
    else:
        return "NaN"

    if number.is_nan():
        return "NaN"
    if number.is_infinite():
        return "-Infinity" if number < 0 else "Infinity"
    if number == number.to_integral_value():
        return str(int(number))
    return format(number.normalize(), "f")


def has_redactables(tokens: Iterable[Token]) -> bool:
    """True if any part of the message is marked sensitive."""
    return any(t.type is TokenType.PRAGMA for t in tokens)


def warnings_in(tokens: Iterable[Token]) -> list[str]:
    """Collect the messages of warning tokens."""
    return [t.value for t in tokens if t.type is TokenType.WARNING]
