"""Logger factory and manager.

This module provides the main interface for creating loggers and for
installing configuration. Each logger is bound to a module/method/path
identity and caches the settings resolved for it; the manager refreshes
every logger when the configuration is replaced.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from typing import IO, Any, Mapping

from rich.console import Console

from .config import ConfigResolver, LoggingConfig
from .errors import InvalidLevel
from .formatters import BaseFormatter, default_formatters, render, report_warnings
from .levels import LEVELS, Level, get_level
from .sinks import ConsoleSink, FanOutSink, FileSink, Sink, as_sink
from .source import config_from_env, extract_logging_section
from .tokenizer import tokenize
from .transports import Format, Transport, TransportRegistry, TransportType

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoggerIdentity:
    """Immutable module/method/path triple identifying a logger.

    A path requires a method and a method requires a module. ``key`` is a
    stable, order-preserving serialization usable as a dictionary key.
    """

    module: str | None = None
    method: str | None = None
    path: str | None = None

    def __post_init__(self) -> None:
        for field_name in ("module", "method", "path"):
            value = getattr(self, field_name)
            if value == "":
                object.__setattr__(self, field_name, None)
            elif value is not None and not isinstance(value, str):
                raise TypeError(f"{field_name.capitalize()} must be a string")
        if self.path and not (self.method and self.module):
            raise ValueError("Path requires method and module")
        if self.method and not self.module:
            raise ValueError("Method requires module")

    @property
    def key(self) -> str:
        parts: dict[str, str] = {}
        if self.module:
            parts["module"] = self.module
            if self.method:
                parts["method"] = self.method
                if self.path:
                    parts["path"] = self.path
        return json.dumps(parts, separators=(",", ":"))

    @classmethod
    def parse(cls, key: str) -> LoggerIdentity:
        """Rebuild an identity from its ``key``."""
        data = json.loads(key)
        if not isinstance(data, dict):
            raise ValueError(f"Not a logger identity: {key!r}")
        return cls(data.get("module"), data.get("method"), data.get("path"))

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class LoggerState:
    """Settings resolved for one logger, swapped as a whole on reconfig."""

    ceiling: Level
    transports: tuple[str, ...]
    show_sensitive: bool
    registry: TransportRegistry


class LevelEmitter:
    """Callable bound to one level of one logger.

    ``logger.info("...")`` emits; ``logger.info.enabled`` tells whether a
    call would produce anything, without tokenizing.
    """

    __slots__ = ("_logger", "level")

    def __init__(self, logger: Logger, level: Level) -> None:
        self._logger = logger
        self.level = level

    @property
    def enabled(self) -> bool:
        """Whether a call at this level would currently emit."""
        state = self._logger.state
        return state is not None and state.ceiling.enables(self.level)

    def __call__(self, fmt: Any, *args: Any) -> None:
        self._logger.log(self.level, fmt, *args)

    def __repr__(self) -> str:
        return f"<LevelEmitter {self.level.name} enabled={self.enabled}>"


class Logger:
    """Logger bound to a module/method/path identity.

    Has one emitter attribute per level (``fault`` through ``trace``).
    Emission never raises into the caller.
    """

    fault: LevelEmitter
    error: LevelEmitter
    warn: LevelEmitter
    info: LevelEmitter
    verbose: LevelEmitter
    debug: LevelEmitter
    trace: LevelEmitter

    def __init__(self, manager: LoggerManager, identity: LoggerIdentity) -> None:
        self._manager = manager
        self._identity = identity
        self._state: LoggerState | None = None
        for level in LEVELS:
            setattr(self, level.name, LevelEmitter(self, level))
        self.reconfig()

    @property
    def identity(self) -> LoggerIdentity:
        """The module/method/path this logger is bound to."""
        return self._identity

    @property
    def module(self) -> str | None:
        return self._identity.module

    @property
    def method(self) -> str | None:
        return self._identity.method

    @property
    def path(self) -> str | None:
        return self._identity.path

    @property
    def state(self) -> LoggerState | None:
        """Settings resolved at the last reconfig, None if resolution failed."""
        return self._state

    @property
    def level(self) -> Level | None:
        """The level ceiling in effect."""
        return self._state.ceiling if self._state else None

    @property
    def transport(self) -> tuple[str, ...]:
        """Selected transport names, groups unexpanded."""
        return self._state.transports if self._state else ()

    def reconfig(self) -> None:
        """Pick up the manager's current configuration."""
        try:
            self._state = self._manager.resolve_state(self._identity)
        except Exception:
            _log.exception("Could not resolve logging settings for %s", self._identity)

    def is_enabled(self, level: Level | str | int) -> bool:
        """Check whether messages at a level would be emitted.

        Args:
            level: Level, level name or rank

        Returns:
            True if enabled; False for disabled or unknown levels
        """
        state = self._state
        try:
            return state is not None and state.ceiling.enables(get_level(level))
        except InvalidLevel:
            return False

    def log(self, level: Level | str | int, fmt: Any, *args: Any) -> None:
        """Emit a message at ``level`` if it is enabled."""
        state = self._state
        if state is None:
            return
        try:
            level = get_level(level)
            if not state.ceiling.enables(level):
                return
            self._manager.emit(self._identity, level, state, fmt, args)
        except Exception:
            _log.exception("Failed to emit log message from %s", self._identity)

    def __repr__(self) -> str:
        state = self._state
        if state is None:
            return f"<Logger {self._identity} unconfigured>"
        return (
            f"<Logger {self._identity} level={state.ceiling.name} "
            f"transport={','.join(state.transports)}>"
        )


class LoggerManager:
    """Owns the configuration, the loggers and the output bindings.

    Replacing the configuration validates it fully first; an invalid
    configuration raises InvalidConfig and leaves the previous one active.
    """

    def __init__(
        self,
        config: LoggingConfig | Mapping[str, Any] | None = None,
        console: Console | None = None,
        formatters: dict[Format, BaseFormatter] | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            config: initial configuration (defaults to info to the console)
            console: Rich Console used by console transports
            formatters: formatter per output format
        """
        self._lock = threading.RLock()
        self._loggers: dict[str, Logger] = {}
        self._streams: dict[str, FanOutSink] = {}
        self._file_sinks: dict[str, FileSink] = {}
        self._formatters = formatters or default_formatters()

        console = console or Console(soft_wrap=True, emoji=False)
        self._console_sinks = {
            True: ConsoleSink(console, ansi=True),
            False: ConsoleSink(console, ansi=False),
        }

        self._config = self._coerce(config) if config is not None else LoggingConfig.default()
        self._resolver = ConfigResolver(self._config)

    @property
    def config(self) -> LoggingConfig:
        """The active configuration."""
        return self._config

    @property
    def resolver(self) -> ConfigResolver:
        """Cascade resolver for the active configuration."""
        return self._resolver

    @property
    def loggers(self) -> list[Logger]:
        """Snapshot of every logger created so far."""
        with self._lock:
            return list(self._loggers.values())

    def configure(self, config: LoggingConfig | Mapping[str, Any]) -> None:
        """Validate and install a new configuration.

        Raises:
            InvalidConfig: the configuration is invalid; nothing changed
        """
        self.reconfig(config)

    def reconfig(self, config: LoggingConfig | Mapping[str, Any] | None = None) -> None:
        """Install ``config`` (if given) and refresh every logger."""
        new_config = self._coerce(config) if config is not None else None
        with self._lock:
            if new_config is not None:
                self._config = new_config
                self._resolver = ConfigResolver(new_config)
                self._file_sinks = {}
            for logger in self._loggers.values():
                logger.reconfig()
        _log.debug("Logging configuration applied to %d loggers", len(self._loggers))

    def get_logger(
        self,
        module: LoggerIdentity | str | None = None,
        method: str | None = None,
        path: str | None = None,
    ) -> Logger:
        """Get the logger for an identity, creating it on first use.

        ``module`` may also be a LoggerIdentity or an identity key.
        """
        identity = _as_identity(module, method, path)
        with self._lock:
            logger = self._loggers.get(identity.key)
            if logger is None:
                logger = Logger(self, identity)
                self._loggers[identity.key] = logger
            return logger

    def register_stream(self, name: str, stream: Sink | IO[str]) -> None:
        """Bind a stream transport name to a destination.

        Several destinations may be bound to one name; each receives every
        line. Bindings survive reconfiguration.
        """
        with self._lock:
            self._streams.setdefault(name, FanOutSink()).add(as_sink(stream))

    def unregister_stream(self, name: str) -> None:
        """Remove every destination bound to a stream transport name."""
        with self._lock:
            self._streams.pop(name, None)

    def resolve_state(self, identity: LoggerIdentity) -> LoggerState:
        """Resolve the settings a logger caches."""
        resolver = self._resolver
        return LoggerState(
            ceiling=resolver.effective_level(identity),
            transports=resolver.effective_transport_selection(identity),
            show_sensitive=resolver.effective_sensitivity(identity),
            registry=resolver.config.transports,
        )

    def sink_for(self, transport: Transport) -> Sink | None:
        """The destination for a concrete transport, None if unbound."""
        if transport.type is TransportType.CONSOLE:
            return self._console_sinks[transport.format is Format.ANSI_TEXT]
        if transport.type is TransportType.FILE:
            with self._lock:
                sink = self._file_sinks.get(transport.name)
                if sink is None:
                    sink = FileSink(transport.path or transport.name)
                    self._file_sinks[transport.name] = sink
                return sink
        if transport.type is TransportType.STREAM:
            return self._streams.get(transport.name)
        return None

    def emit(
        self,
        identity: LoggerIdentity,
        level: Level,
        state: LoggerState,
        fmt: Any,
        args: tuple[Any, ...],
    ) -> int:
        """Tokenize once and write to every transport of ``state``.

        Returns:
            Number of lines written
        """
        tokens = tokenize(fmt, *args)
        report_warnings(tokens, identity)

        written = 0
        for transport in state.registry.expand(state.transports):
            try:
                line = render(
                    identity,
                    level,
                    transport,
                    tokens,
                    reveal_sensitive=state.show_sensitive,
                    formatters=self._formatters,
                    warn=False,
                )
                if line is None:
                    continue
                sink = self.sink_for(transport)
                if sink is None:
                    _log.debug('No destination bound to transport "%s"', transport.name)
                    continue
                if sink.write(line):
                    written += 1
            except Exception:
                _log.exception('Transport "%s" failed to emit a log message', transport.name)
        return written

    @staticmethod
    def _coerce(config: LoggingConfig | Mapping[str, Any]) -> LoggingConfig:
        if isinstance(config, LoggingConfig):
            return config
        return LoggingConfig.from_dict(extract_logging_section(config))


def _as_identity(
    module: LoggerIdentity | str | None, method: str | None, path: str | None
) -> LoggerIdentity:
    if isinstance(module, LoggerIdentity):
        return module
    if isinstance(module, str) and module.startswith("{") and method is None and path is None:
        return LoggerIdentity.parse(module)
    return LoggerIdentity(module, method, path)


# Default manager instance
_manager: LoggerManager | None = None
_manager_lock = threading.Lock()


def get_manager() -> LoggerManager:
    """Get the default manager, configured from the environment on first use."""
    global _manager
    with _manager_lock:
        if _manager is None:
            _manager = LoggerManager(config_from_env())
        return _manager


def set_manager(manager: LoggerManager) -> None:
    """Replace the default manager."""
    global _manager
    with _manager_lock:
        _manager = manager


def reset_manager() -> None:
    """Drop the default manager; the next access builds a fresh one."""
    global _manager
    with _manager_lock:
        _manager = None


def get_logger(
    module: LoggerIdentity | str | None = None,
    method: str | None = None,
    path: str | None = None,
) -> Logger:
    """Get a logger from the default manager."""
    return get_manager().get_logger(module, method, path)


def configure(config: LoggingConfig | Mapping[str, Any]) -> None:
    """Install a configuration on the default manager."""
    get_manager().configure(config)


def configure_from_env(environ: Mapping[str, str] | None = None) -> None:
    """Install the configuration described by the environment."""
    get_manager().configure(config_from_env(environ))


def register_stream(name: str, stream: Sink | IO[str]) -> None:
    """Bind a stream transport on the default manager."""
    get_manager().register_stream(name, stream)
