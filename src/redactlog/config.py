"""Logging configuration tree and cascade resolver.

A configuration looks like::

    defaults:
      level: info
      transport: console
    transports:
      - name: console
        type: console
        format: ansi-text
    modules:
      - name: billing
        level: warn
        methods:
          - name: GET
            paths:
              - name: /invoices
                level: debug
                transport: [console, audit]

Properties cascade from the most specific node to the least: path, then
method, then module, then defaults. The tree is validated as a whole and
replaced wholesale, never patched.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping

from .errors import ConfigError, ConfigIssue, InvalidConfig
from .levels import Level, get_level, is_valid_level
from .transports import ALIASES, TransportRegistry

# Properties a module/method/path node may set
NODE_PROPERTIES = ("level", "transport", "show_sensitive")

# Fallbacks for properties no node defines
PROPERTY_FALLBACKS: dict[str, Any] = {"show_sensitive": False}

# Default logging section used when nothing else is supplied
DEFAULT_TREE: dict[str, Any] = {
    "defaults": {"level": "info", "transport": "console"},
    "transports": ["console"],
}


@dataclass(frozen=True)
class PathSpec:
    """Settings for a single path under a method."""

    name: str
    level: str | None = None
    transport: tuple[str, ...] | None = None
    show_sensitive: bool | None = None


@dataclass(frozen=True)
class MethodSpec:
    """Settings for a method (or HTTP verb) under a module."""

    name: str
    level: str | None = None
    transport: tuple[str, ...] | None = None
    show_sensitive: bool | None = None
    paths: tuple[PathSpec, ...] = ()

    def find_path(self, name: str) -> PathSpec | None:
        return next((p for p in self.paths if p.name == name), None)


@dataclass(frozen=True)
class ModuleSpec:
    """Settings for a module."""

    name: str
    level: str | None = None
    transport: tuple[str, ...] | None = None
    show_sensitive: bool | None = None
    methods: tuple[MethodSpec, ...] = ()

    def find_method(self, name: str) -> MethodSpec | None:
        return next((m for m in self.methods if m.name == name), None)


@dataclass(frozen=True)
class Defaults:
    """Root settings. ``level`` and ``transport`` are mandatory."""

    level: str
    transport: tuple[str, ...]
    show_sensitive: bool | None = None


@dataclass(frozen=True)
class LoggingConfig:
    """A validated logging configuration."""

    defaults: Defaults
    transports: TransportRegistry = field(compare=False)
    modules: tuple[ModuleSpec, ...] = ()

    def find_module(self, name: str) -> ModuleSpec | None:
        return next((m for m in self.modules if m.name == name), None)

    @classmethod
    def from_dict(cls, tree: Mapping[str, Any]) -> LoggingConfig:
        """Validate a logging section and build a config.

        Args:
            tree: the logging section (defaults/transports/modules)

        Returns:
            The validated LoggingConfig

        Raises:
            InvalidConfig: with every issue found in the tree
        """
        return _ConfigBuilder(tree).build()

    @classmethod
    def default(cls) -> LoggingConfig:
        """The built-in configuration: info and above to the console."""
        return cls.from_dict(DEFAULT_TREE)


class _ConfigBuilder:
    """Walks a raw tree collecting issues instead of stopping at the first."""

    def __init__(self, tree: Mapping[str, Any]) -> None:
        self.tree = tree
        self.issues: list[ConfigIssue] = []
        self.registry = TransportRegistry()

    def build(self) -> LoggingConfig:
        if not isinstance(self.tree, Mapping):
            raise InvalidConfig(
                [ConfigIssue("invalid-spec", "Logging configuration must be a mapping")]
            )

        self._build_transports(self.tree.get("transports"))
        defaults = self._build_defaults(self.tree.get("defaults"))
        modules = self._build_children(
            self.tree.get("modules"), "module", "", self._build_module
        )

        if self.issues or defaults is None:
            raise InvalidConfig(self.issues)
        return LoggingConfig(defaults=defaults, transports=self.registry, modules=modules)

    def _build_transports(self, specs: Any) -> None:
        if specs is None:
            specs = DEFAULT_TREE["transports"]
        if not isinstance(specs, (list, tuple)):
            self.issues.append(
                ConfigIssue("invalid-spec", "Config transports must be a list", "transports")
            )
            return
        try:
            self.registry.build_all(specs)
        except ConfigError as e:
            self.issues.extend(e.issues)

    def _build_defaults(self, raw: Any) -> Defaults | None:
        where = "[defaults]"
        if not isinstance(raw, Mapping):
            self.issues.append(
                ConfigIssue("defaults-required", "Config must have a defaults section", where)
            )
            return None
        props = self._node_properties(raw, where)
        missing = False
        for prop in ("level", "transport"):
            if raw.get(prop) is None:
                self.issues.append(
                    ConfigIssue(f"{prop}-required", f"{where} requires {prop} config", where)
                )
                missing = True
        if missing or props["level"] is None or props["transport"] is None:
            return None
        return Defaults(
            level=props["level"],
            transport=props["transport"],
            show_sensitive=props["show_sensitive"],
        )

    def _build_module(self, raw: Mapping[str, Any], where: str) -> ModuleSpec:
        methods = self._build_children(raw.get("methods"), "method", where, self._build_method)
        return ModuleSpec(name=raw["name"], methods=methods, **self._node_properties(raw, where))

    def _build_method(self, raw: Mapping[str, Any], where: str) -> MethodSpec:
        paths = self._build_children(raw.get("paths"), "path", where, self._build_path)
        return MethodSpec(name=raw["name"], paths=paths, **self._node_properties(raw, where))

    def _build_path(self, raw: Mapping[str, Any], where: str) -> PathSpec:
        return PathSpec(name=raw["name"], **self._node_properties(raw, where))

    def _build_children(self, items: Any, kind: str, parent: str, build_one: Any) -> tuple:
        if items is None:
            return ()
        label = f"{parent}, {kind}s" if parent else f"{kind}s"
        if not isinstance(items, (list, tuple)):
            self.issues.append(
                ConfigIssue(f"invalid-{kind}s-list", f"Config {kind}s must be a list", label)
            )
            return ()

        built = []
        seen: set[str] = set()
        for item in items:
            if not isinstance(item, Mapping):
                self.issues.append(
                    ConfigIssue("invalid-spec", f"Each {kind} must be a mapping", label)
                )
                continue
            name = item.get("name")
            where = f"{parent}, {kind}:{name}" if parent else f"{kind}:{name}"
            if not name:
                self.issues.append(ConfigIssue("name-required", f"{kind} name not set", where))
                continue
            if not isinstance(name, str):
                self.issues.append(
                    ConfigIssue("invalid-name", f"{kind} name must be a string", where)
                )
                continue
            if name in seen:
                self.issues.append(
                    ConfigIssue("name-duplicated", f'{kind} "{name}" defined twice', where)
                )
                continue
            seen.add(name)
            built.append(build_one(item, where))
        return tuple(built)

    def _node_properties(self, raw: Mapping[str, Any], where: str) -> dict[str, Any]:
        raw = {ALIASES.get(key, key): value for key, value in raw.items()}
        result: dict[str, Any] = {"level": None, "transport": None, "show_sensitive": None}

        level = raw.get("level")
        if level is not None:
            if isinstance(level, str) and is_valid_level(level):
                result["level"] = level
            else:
                self.issues.append(
                    ConfigIssue("invalid-level", f'{where} level "{level}" invalid', where)
                )

        transport = raw.get("transport")
        if transport is not None:
            names = [transport] if isinstance(transport, str) else transport
            if not isinstance(names, (list, tuple)) or not names:
                self.issues.append(
                    ConfigIssue(
                        "invalid-transport",
                        f"{where} transport must be a name or a list of names",
                        where,
                    )
                )
            else:
                bad = [n for n in names if not isinstance(n, str) or n not in self.registry]
                for name in bad:
                    self.issues.append(
                        ConfigIssue(
                            "invalid-transport", f'{where} transport "{name}" invalid', where
                        )
                    )
                if not bad:
                    result["transport"] = tuple(names)

        show_sensitive = raw.get("show_sensitive")
        if show_sensitive is not None:
            if isinstance(show_sensitive, bool):
                result["show_sensitive"] = show_sensitive
            else:
                self.issues.append(
                    ConfigIssue(
                        "invalid-show-sensitive",
                        f"{where} show_sensitive must be true or false",
                        where,
                    )
                )
        return result


class ConfigResolver:
    """Answers cascade questions for a logger identity."""

    def __init__(self, config: LoggingConfig) -> None:
        self.config = config

    def chain(self, identity: Any) -> list[Any]:
        """Nodes that apply to an identity, most specific first."""
        nodes: list[Any] = []
        module = self.config.find_module(identity.module) if identity.module else None
        if module is not None:
            method = module.find_method(identity.method) if identity.method else None
            if method is not None:
                path = method.find_path(identity.path) if identity.path else None
                if path is not None:
                    nodes.append(path)
                nodes.append(method)
            nodes.append(module)
        nodes.append(self.config.defaults)
        return nodes

    def resolve_property(self, name: str, identity: Any) -> Any:
        """The first explicitly set value of a property, or its fallback."""
        for node in self.chain(identity):
            value = getattr(node, name, None)
            if value is not None:
                return value
        return PROPERTY_FALLBACKS.get(name)

    def effective_level(self, identity: Any) -> Level:
        """The level ceiling for an identity."""
        return get_level(self.resolve_property("level", identity))

    def effective_transport_selection(self, identity: Any) -> tuple[str, ...]:
        """Transport names (groups unexpanded) for an identity."""
        return tuple(self.resolve_property("transport", identity) or ())

    def effective_sensitivity(self, identity: Any) -> bool:
        """Whether sensitive content is revealed for an identity."""
        return bool(self.resolve_property("show_sensitive", identity))


def apply_env_overrides(
    tree: Mapping[str, Any], environ: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Overlay environment variables on a logging section.

    Environment variables:
        REDACTLOG_LEVEL: replaces defaults.level
        REDACTLOG_TRANSPORT: replaces defaults.transport (comma separated)

    Returns:
        A new tree; the input is not modified
    """
    env = os.environ if environ is None else environ
    result = dict(tree)
    defaults = dict(result.get("defaults") or {})

    if level := env.get("REDACTLOG_LEVEL"):
        defaults["level"] = level.strip().lower()

    if transport := env.get("REDACTLOG_TRANSPORT"):
        names = [n.strip() for n in transport.split(",") if n.strip()]
        defaults["transport"] = names[0] if len(names) == 1 else names

    if defaults:
        result["defaults"] = defaults
    return result
