"""Transport definitions and registry.

A transport is a named destination with its own format, sensitivity
policy and level ceiling. Groups are named lists of other transports and
are expanded at emission time.

Transport spec keys (camelCase aliases accepted):
    name            unique, required
    type            console | file | stream | group
    format          text | ansi-text | json (not allowed on groups)
    show_sensitive  reveal redacted regions (default False, not on groups)
    level_limit     level name or rank; messages less severe are dropped
    path            file transports only
    members         group transports only; names defined earlier
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator

from .errors import ConfigError, ConfigIssue
from .levels import LEVEL_NAMES, LEVELS, get_level, is_valid_level


class TransportType(str, Enum):
    """Kinds of transport."""

    CONSOLE = "console"
    FILE = "file"
    STREAM = "stream"
    GROUP = "group"


class Format(str, Enum):
    """Output formats for non-group transports."""

    TEXT = "text"
    ANSI_TEXT = "ansi-text"
    JSON = "json"


VALID_TYPES = tuple(t.value for t in TransportType)
VALID_FORMATS = tuple(f.value for f in Format)

# Properties that only make sense on a concrete destination
GROUP_FORBIDDEN = ("format", "show_sensitive", "level_limit")

ALIASES = {
    "showSensitive": "show_sensitive",
    "levelLimit": "level_limit",
}

DEFAULT_TRANSPORTS: dict[str, dict[str, Any]] = {
    "console": {
        "name": "console",
        "type": "console",
        "format": "ansi-text",
        "show_sensitive": False,
        "level_limit": None,
    },
}


@dataclass(frozen=True)
class Transport:
    """A validated transport definition."""

    name: str
    type: TransportType
    format: Format | None = None
    show_sensitive: bool = False
    level_limit: int | None = None
    path: str | None = None
    members: tuple[str, ...] = ()

    @property
    def is_group(self) -> bool:
        return self.type is TransportType.GROUP

    def accepts(self, rank: int) -> bool:
        """Whether a message of the given rank passes the level limit."""
        return self.level_limit is None or rank <= self.level_limit


def normalize_spec(spec: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a spec with camelCase keys renamed."""
    return {ALIASES.get(key, key): value for key, value in spec.items()}


class TransportRegistry:
    """Builds, validates and stores transports in definition order."""

    def __init__(self) -> None:
        self._transports: dict[str, Transport] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._transports

    def __iter__(self) -> Iterator[Transport]:
        return iter(self._transports.values())

    def __len__(self) -> int:
        return len(self._transports)

    @property
    def names(self) -> list[str]:
        return list(self._transports)

    def lookup(self, name: str) -> Transport | None:
        """Find a transport by name."""
        return self._transports.get(name)

    def build(self, spec: Any) -> Transport:
        """Validate a transport spec and register it.

        Args:
            spec: mapping, or a bare default name such as ``"console"``

        Returns:
            The registered Transport

        Raises:
            ConfigError: with every issue found in the spec
        """
        transport, issues = self._validate(spec)
        if issues or transport is None:
            raise ConfigError(issues, message="Invalid transport")
        self._transports[transport.name] = transport
        return transport

    def build_all(self, specs: Iterable[Any]) -> list[Transport]:
        """Build specs in order, raising once with the issues of all of them."""
        built: list[Transport] = []
        issues: list[ConfigIssue] = []
        for spec in specs:
            try:
                built.append(self.build(spec))
            except ConfigError as e:
                issues.extend(e.issues)
        if issues:
            raise ConfigError(issues, message="Invalid transports")
        return built

    def expand(self, names: Iterable[str]) -> list[Transport]:
        """Resolve names to concrete transports, expanding groups breadth-first.

        A transport reached more than once is only returned the first time;
        unknown names are skipped.
        """
        queue = deque(names)
        seen: set[str] = set()
        result: list[Transport] = []
        while queue:
            name = queue.popleft()
            if name in seen:
                continue
            seen.add(name)
            transport = self._transports.get(name)
            if transport is None:
                continue
            if transport.is_group:
                queue.extend(transport.members)
            else:
                result.append(transport)
        return result

    def _validate(self, spec: Any) -> tuple[Transport | None, list[ConfigIssue]]:
        issues: list[ConfigIssue] = []

        if isinstance(spec, str):
            default = DEFAULT_TRANSPORTS.get(spec)
            if default is None:
                issues.append(
                    ConfigIssue(
                        "no-default-for-type",
                        f'There is no default config of type "{spec}"',
                        f"transport:{spec}",
                    )
                )
                return None, issues
            values = dict(default)
        elif isinstance(spec, dict):
            values = normalize_spec(spec)
        else:
            issues.append(
                ConfigIssue("invalid-spec", f"Transport spec must be a mapping, got {spec!r}")
            )
            return None, issues

        name = values.get("name")
        where = f"transport:{name}" if name else "transport:<unnamed>"
        if not name:
            issues.append(ConfigIssue("name-required", "Config missing name", where))
        elif not isinstance(name, str):
            issues.append(ConfigIssue("invalid-name", f"Name {name!r} must be a string", where))
        elif name in self._transports:
            issues.append(
                ConfigIssue(
                    "name-duplicated",
                    f'Config name "{name}" duplicated. Config names must be unique.',
                    where,
                )
            )

        raw_type = values.get("type")
        transport_type: TransportType | None = None
        if not raw_type:
            issues.append(
                ConfigIssue(
                    "type-required",
                    f"Config type required. Acceptable values: {', '.join(VALID_TYPES)}",
                    where,
                )
            )
        elif raw_type not in VALID_TYPES:
            issues.append(
                ConfigIssue(
                    "invalid-type",
                    f'Config type "{raw_type}" not valid. '
                    f"Acceptable values: {', '.join(VALID_TYPES)}",
                    where,
                )
            )
        else:
            transport_type = TransportType(raw_type)

        fmt: Format | None = None
        show_sensitive = False
        level_limit: int | None = None
        path: str | None = None
        members: tuple[str, ...] = ()

        if transport_type is TransportType.GROUP:
            for prop in GROUP_FORBIDDEN:
                if values.get(prop) is not None:
                    issues.append(
                        ConfigIssue(
                            "invalid-property",
                            f'Property "{prop}" not valid for group configs',
                            where,
                        )
                    )
            members, member_issues = self._validate_members(values.get("members"), where)
            issues.extend(member_issues)
        else:
            raw_format = values.get("format")
            if not raw_format:
                issues.append(
                    ConfigIssue(
                        "format-required",
                        f"Config format required. Acceptable values: {', '.join(VALID_FORMATS)}",
                        where,
                    )
                )
            elif raw_format not in VALID_FORMATS:
                issues.append(
                    ConfigIssue(
                        "invalid-format",
                        f'Format "{raw_format}" is not valid. '
                        f"Acceptable values: {', '.join(VALID_FORMATS)}",
                        where,
                    )
                )
            else:
                fmt = Format(raw_format)

            raw_sensitive = values.get("show_sensitive")
            if raw_sensitive is None:
                show_sensitive = False
            elif isinstance(raw_sensitive, bool):
                show_sensitive = raw_sensitive
            else:
                issues.append(
                    ConfigIssue(
                        "invalid-show-sensitive",
                        f"show_sensitive must be true or false, got {raw_sensitive!r}",
                        where,
                    )
                )

            raw_limit = values.get("level_limit")
            if raw_limit is not None:
                if isinstance(raw_limit, bool) or not is_valid_level(raw_limit):
                    issues.append(
                        ConfigIssue(
                            "invalid-level-limit",
                            f'Level limit "{raw_limit}" not valid. Acceptable values: '
                            f"{', '.join(LEVEL_NAMES)} or by numbers 0 through {len(LEVELS) - 1}",
                            where,
                        )
                    )
                else:
                    level_limit = get_level(raw_limit).rank

            if transport_type is TransportType.FILE:
                path = values.get("path")
                if not path or not isinstance(path, str):
                    issues.append(ConfigIssue("path-required", "Pathname required", where))

        if issues or transport_type is None:
            return None, issues

        return (
            Transport(
                name=name,
                type=transport_type,
                format=fmt,
                show_sensitive=show_sensitive,
                level_limit=level_limit,
                path=path,
                members=members,
            ),
            issues,
        )

    def _validate_members(
        self, members: Any, where: str
    ) -> tuple[tuple[str, ...], list[ConfigIssue]]:
        issues: list[ConfigIssue] = []
        if members is None:
            issues.append(
                ConfigIssue(
                    "invalid-members-list",
                    "Group needs members. Set to an empty list to suppress this error",
                    where,
                )
            )
            return (), issues
        if not isinstance(members, (list, tuple)):
            issues.append(
                ConfigIssue("invalid-members-list", "Group members must be a list", where)
            )
            return (), issues
        for member in members:
            if not isinstance(member, str) or member not in self._transports:
                issues.append(
                    ConfigIssue("unknown-member", f'Group member "{member}" does not exist', where)
                )
        return tuple(members), issues
