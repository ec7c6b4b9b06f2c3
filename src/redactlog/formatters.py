"""Renderers turning token streams into output lines.

Three formats are supported:
- ansi-text: colored console output
- text: plain output with a redaction marker column
- json: one JSON object per line

Redacted regions are replaced by a single ``[redacted]`` placeholder on
transports that do not reveal sensitive content. A message marked
entirely sensitive is not rendered at all on such transports.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterable, Sequence

from .levels import DEBUG, Level, get_level
from .tokenizer import Pragma, Token, TokenType, has_redactables, warnings_in
from .transports import Format, Transport

_log = logging.getLogger(__name__)

REDACTED = "[redacted]"

ANSI_RESET = "\x1b[0m"
UNDERLINE = 4

TOKEN_COLORS: dict[TokenType, tuple[int, ...]] = {
    TokenType.BOOLEAN: (33,),
    TokenType.NUMBER: (33,),
    TokenType.NIL: (34,),
    TokenType.SYMBOL: (34,),
    TokenType.FUNCTION: (35,),
    TokenType.UNSUPPORTED: (35,),
}
PLACEHOLDER_COLORS = (90,)


@dataclass(frozen=True)
class Piece:
    """A rendered fragment of a message."""

    text: str
    type: TokenType = TokenType.STRING
    sensitive: bool = False
    argument: bool = False
    placeholder: bool = False


def token_text(token: Token) -> str:
    """Plain text for a data token."""
    value = token.value
    if token.type is TokenType.NIL:
        return "None"
    if token.type is TokenType.SYMBOL:
        if isinstance(value, Enum):
            return f"{type(value).__name__}.{value.name}"
        return str(value)
    if token.type is TokenType.FUNCTION:
        name = getattr(value, "__qualname__", None) or getattr(value, "__name__", None)
        if not name or getattr(value, "__name__", None) == "<lambda>":
            return "[anonymous function]"
        return f"[function {name}]"
    if token.type is TokenType.UNSUPPORTED:
        return f"[unsupported type {type(value).__name__}]"
    return str(value)


def render_pieces(tokens: Iterable[Token], reveal: bool) -> list[Piece] | None:
    """Apply redaction to a token stream.

    Args:
        tokens: tokens from the tokenizer
        reveal: whether the destination may see sensitive content

    Returns:
        The surviving pieces, or None when the whole message must be
        suppressed
    """
    pieces: list[Piece] = []
    redacting = False
    redact_all = False

    for token in tokens:
        if token.type is TokenType.PRAGMA:
            if token.value is Pragma.REDACT_ALL:
                if not reveal:
                    return None
                redact_all = True
            elif token.value in (Pragma.REDACT_START, Pragma.REDACT_REMAINDER):
                if not reveal and not redacting:
                    # the remainder placeholder stands in for trailing arguments
                    pieces.append(
                        Piece(
                            REDACTED,
                            sensitive=True,
                            placeholder=True,
                            argument=token.value is Pragma.REDACT_REMAINDER,
                        )
                    )
                redacting = True
            elif token.value is Pragma.REDACT_END:
                redacting = False
            continue

        if not token.is_data:
            continue
        if redacting and not reveal:
            continue
        pieces.append(
            Piece(
                text=token_text(token),
                type=token.type,
                sensitive=redacting or redact_all,
                argument=token.argument,
            )
        )
    return pieces


def join_pieces(pieces: Sequence[Piece], texts: Sequence[str] | None = None) -> str:
    """Concatenate pieces, spacing out trailing arguments."""
    out: list[str] = []
    plain_so_far = ""
    for piece, text in zip(pieces, texts if texts is not None else [p.text for p in pieces]):
        if piece.argument and plain_so_far and not plain_so_far[-1].isspace():
            out.append(" ")
            plain_so_far += " "
        out.append(text)
        plain_so_far += piece.text
    return "".join(out)


def identity_text(identity: Any) -> str:
    """Plain rendering of a logger identity."""
    if identity.path:
        return f"{identity.module} {identity.method} {identity.path}"
    if identity.method:
        return f"{identity.module}.{identity.method}"
    return f"{identity.module}"


def report_warnings(tokens: Iterable[Token], identity: Any = None) -> None:
    """Send tokenizer warnings to the diagnostic logger."""
    for message in warnings_in(tokens):
        _log.warning("Log message from %s: %s", identity_text(identity) if identity else "?", message)


class BaseFormatter:
    """Shared redaction walk; subclasses assemble the final line."""

    def format(
        self, identity: Any, level: Level, tokens: Sequence[Token], reveal: bool
    ) -> str | None:
        """Render a message, or return None when it must be suppressed."""
        pieces = render_pieces(tokens, reveal)
        if pieces is None:
            return None
        return self.assemble(identity, level, tokens, pieces)

    def assemble(
        self, identity: Any, level: Level, tokens: Sequence[Token], pieces: list[Piece]
    ) -> str:
        raise NotImplementedError


class TextFormatter(BaseFormatter):
    """Plain text.

    Format: TAG MARKER IDENTITY - MESSAGE, where MARKER is ``R`` if the
    message has any sensitive part, whether or not it is revealed here.
    """

    def assemble(
        self, identity: Any, level: Level, tokens: Sequence[Token], pieces: list[Piece]
    ) -> str:
        marker = "R" if has_redactables(tokens) else " "
        return f"{level.text_prefix}{marker}{identity_text(identity)} - {join_pieces(pieces)}"


class AnsiTextFormatter(BaseFormatter):
    """ANSI-colored text for terminals.

    Non-string values get their own color, revealed sensitive content is
    underlined and levels at or past ``dim_threshold`` dim uncolored text.
    """

    def __init__(self, dim_threshold: Level | str = DEBUG) -> None:
        self.dim_threshold = get_level(dim_threshold)

    def assemble(
        self, identity: Any, level: Level, tokens: Sequence[Token], pieces: list[Piece]
    ) -> str:
        texts = [self._colorize(piece, level) for piece in pieces]
        return f"{level.ansi_prefix}{self._identity(identity)}{join_pieces(pieces, texts)}"

    def _identity(self, identity: Any) -> str:
        name = identity.module
        if identity.method:
            name += f".{identity.method}"
        if identity.path:
            return f" \x1b[92m{name} {identity.path}\x1b[97m -{ANSI_RESET} "
        return f" \x1b[94m{name}\x1b[97m:{ANSI_RESET} "

    def _colorize(self, piece: Piece, level: Level) -> str:
        if piece.placeholder:
            codes = list(PLACEHOLDER_COLORS)
        else:
            codes = list(TOKEN_COLORS.get(piece.type, ()))
            if piece.sensitive:
                codes.append(UNDERLINE)
        if level.rank >= self.dim_threshold.rank and not any(_is_foreground(c) for c in codes):
            codes.append(37 if level.rank == self.dim_threshold.rank else 90)
        if not codes:
            return piece.text
        return f"\x1b[{';'.join(str(c) for c in codes)}m{piece.text}{ANSI_RESET}"


class JSONFormatter(BaseFormatter):
    """One JSON object per line.

    Keys: level, timestamp, module, method (if set), path (if set), message.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        """Initialize the JSON formatter.

        Args:
            clock: returns the current time (defaults to UTC now)
        """
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def assemble(
        self, identity: Any, level: Level, tokens: Sequence[Token], pieces: list[Piece]
    ) -> str:
        log_data: dict[str, Any] = {
            "level": level.name,
            "timestamp": self.clock().isoformat(),
            "module": identity.module,
        }
        if identity.method:
            log_data["method"] = identity.method
        if identity.path:
            log_data["path"] = identity.path
        log_data["message"] = join_pieces(pieces)
        return json.dumps(log_data, default=str)


def _is_foreground(code: int) -> bool:
    return 30 <= code <= 38 or 90 <= code <= 98


def default_formatters() -> dict[Format, BaseFormatter]:
    """One formatter instance per output format."""
    return {
        Format.TEXT: TextFormatter(),
        Format.ANSI_TEXT: AnsiTextFormatter(),
        Format.JSON: JSONFormatter(),
    }


_DEFAULT_FORMATTERS = default_formatters()


def render(
    identity: Any,
    level: Level | str | int,
    transport: Transport,
    tokens: Sequence[Token],
    reveal_sensitive: bool = False,
    formatters: dict[Format, BaseFormatter] | None = None,
    warn: bool = True,
) -> str | None:
    """Render a token stream for one transport.

    Args:
        identity: logger identity (module/method/path)
        level: severity of the message
        transport: a concrete (non-group) transport
        tokens: tokens from the tokenizer
        reveal_sensitive: the identity itself allows sensitive content
        formatters: formatter per format (defaults to shared instances)
        warn: report tokenizer warnings on the diagnostic logger

    Returns:
        The rendered line, or None if this transport suppresses the message
    """
    if transport.is_group or transport.format is None:
        raise ValueError(f'Transport "{transport.name}" must be expanded before rendering')

    level = get_level(level)
    if not transport.accepts(level.rank):
        return None

    if warn:
        report_warnings(tokens, identity)

    formatter = (formatters or _DEFAULT_FORMATTERS)[transport.format]
    return formatter.format(identity, level, tokens, transport.show_sensitive or reveal_sensitive)
