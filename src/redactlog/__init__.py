"""redactlog - structured logging with redaction.

This package provides:
- printf-style messages with %< %> markers for sensitive regions
- per module/method/path levels and transports, cascading from defaults
- text, ANSI and JSON renderers that honor each transport's redaction policy
- grouped transports fanning out to several destinations

Usage:
    from redactlog import configure, get_logger

    configure({
        "defaults": {"level": "info", "transport": "console"},
        "transports": ["console"],
    })

    log = get_logger("billing", "charge")
    log.info("Charged card %<%s%> for %d cents", card_number, amount)
    if log.debug.enabled:
        log.debug("Full payload", payload)
"""

from .config import (
    DEFAULT_TREE,
    ConfigResolver,
    Defaults,
    LoggingConfig,
    MethodSpec,
    ModuleSpec,
    PathSpec,
    apply_env_overrides,
)
from .errors import ConfigError, ConfigIssue, InvalidConfig, InvalidLevel
from .formatters import AnsiTextFormatter, JSONFormatter, TextFormatter, render
from .levels import (
    DEBUG,
    ERROR,
    FAULT,
    INFO,
    LEVELS,
    TRACE,
    VERBOSE,
    WARN,
    Level,
    get_level,
    is_valid_level,
)
from .logger import (
    LevelEmitter,
    Logger,
    LoggerIdentity,
    LoggerManager,
    configure,
    configure_from_env,
    get_logger,
    get_manager,
    register_stream,
    reset_manager,
    set_manager,
)
from .sinks import BufferingSink, ConsoleSink, FileSink, Sink, StreamSink
from .source import config_from_env, extract_logging_section, load_config_file
from .tokenizer import Pragma, Token, TokenType, has_redactables, tokenize
from .transports import Format, Transport, TransportRegistry, TransportType

__version__ = "0.1.0"

__all__ = [
    # Core logger functions
    "get_logger",
    "configure",
    "configure_from_env",
    "register_stream",
    "get_manager",
    "set_manager",
    "reset_manager",
    "Logger",
    "LoggerManager",
    "LoggerIdentity",
    "LevelEmitter",
    # Levels
    "Level",
    "LEVELS",
    "FAULT",
    "ERROR",
    "WARN",
    "INFO",
    "VERBOSE",
    "DEBUG",
    "TRACE",
    "get_level",
    "is_valid_level",
    # Configuration
    "LoggingConfig",
    "ConfigResolver",
    "Defaults",
    "ModuleSpec",
    "MethodSpec",
    "PathSpec",
    "DEFAULT_TREE",
    "load_config_file",
    "extract_logging_section",
    "config_from_env",
    "apply_env_overrides",
    # Errors
    "ConfigError",
    "ConfigIssue",
    "InvalidConfig",
    "InvalidLevel",
    # Tokens
    "tokenize",
    "has_redactables",
    "Token",
    "TokenType",
    "Pragma",
    # Transports and rendering
    "Transport",
    "TransportRegistry",
    "TransportType",
    "Format",
    "render",
    "TextFormatter",
    "AnsiTextFormatter",
    "JSONFormatter",
    # Sinks
    "Sink",
    "ConsoleSink",
    "StreamSink",
    "FileSink",
    "BufferingSink",
]
