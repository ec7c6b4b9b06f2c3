"""Tests for the logging configuration tree and resolver."""

import pytest

from redactlog import (
    ConfigResolver,
    InvalidConfig,
    LoggerIdentity,
    LoggingConfig,
    apply_env_overrides,
)


def codes_for(tree):
    with pytest.raises(InvalidConfig) as exc_info:
        LoggingConfig.from_dict(tree)
    return exc_info.value.codes


def ident(module=None, method=None, path=None):
    return LoggerIdentity(module, method, path)


class TestLoggingConfig:
    """Tests for building a validated configuration."""

    def test_default(self):
        """The built-in configuration should log info to the console."""
        config = LoggingConfig.default()
        assert config.defaults.level == "info"
        assert config.defaults.transport == ("console",)
        assert config.transports.names == ["console"]
        assert config.modules == ()

    def test_missing_transports_uses_console(self):
        """Without a transports list, the default console should be installed."""
        config = LoggingConfig.from_dict({"defaults": {"level": "warn", "transport": "console"}})
        assert "console" in config.transports

    def test_modules_methods_paths(self, base_config):
        """The tree should be converted into nested specs."""
        config = LoggingConfig.from_dict(base_config)
        billing = config.find_module("billing")
        assert billing.level == "warn"
        charge = billing.find_method("charge")
        assert charge.transport == ("both",)
        api = config.find_module("api")
        assert api.find_method("GET").find_path("/health").level == "error"
        assert config.find_module("unknown") is None

    def test_transport_list_kept(self, base_config):
        """A transport list should be stored as a tuple."""
        config = LoggingConfig.from_dict(base_config)
        assert config.find_module("audit").transport == ("plain", "errors")

    def test_camel_case_show_sensitive(self):
        """showSensitive should be accepted on nodes."""
        config = LoggingConfig.from_dict(
            {
                "defaults": {"level": "info", "transport": "console"},
                "modules": [{"name": "m", "showSensitive": True}],
            }
        )
        assert config.find_module("m").show_sensitive is True


class TestConfigValidation:
    """Tests for configuration issues."""

    def test_defaults_required(self):
        """A defaults section should be required."""
        assert codes_for({"transports": ["console"]}) == ["defaults-required"]

    def test_defaults_need_level_and_transport(self):
        """defaults should set both level and transport."""
        assert codes_for({"defaults": {}}) == ["level-required", "transport-required"]

    def test_invalid_level(self):
        """Unknown level names should be rejected."""
        assert codes_for({"defaults": {"level": "loud", "transport": "console"}}) == [
            "invalid-level"
        ]

    def test_unknown_transport_reference(self):
        """Nodes should only reference defined transports."""
        codes = codes_for(
            {
                "defaults": {"level": "info", "transport": "console"},
                "modules": [{"name": "m", "transport": ["console", "missing"]}],
            }
        )
        assert codes == ["invalid-transport"]

    def test_empty_transport_list(self):
        """An empty transport list should be rejected."""
        assert codes_for({"defaults": {"level": "info", "transport": []}}) == [
            "invalid-transport"
        ]

    def test_duplicate_module(self):
        """Sibling names should be unique."""
        codes = codes_for(
            {
                "defaults": {"level": "info", "transport": "console"},
                "modules": [{"name": "m"}, {"name": "m"}],
            }
        )
        assert codes == ["name-duplicated"]

    def test_same_method_name_in_different_modules(self):
        """Uniqueness should only apply among siblings."""
        config = LoggingConfig.from_dict(
            {
                "defaults": {"level": "info", "transport": "console"},
                "modules": [
                    {"name": "a", "methods": [{"name": "run"}]},
                    {"name": "b", "methods": [{"name": "run"}]},
                ],
            }
        )
        assert len(config.modules) == 2

    def test_child_name_required(self):
        """Modules, methods and paths need names."""
        codes = codes_for(
            {
                "defaults": {"level": "info", "transport": "console"},
                "modules": [{"name": "m", "methods": [{"level": "info"}]}],
            }
        )
        assert codes == ["name-required"]

    def test_children_must_be_lists(self):
        """modules/methods/paths must be lists."""
        codes = codes_for(
            {
                "defaults": {"level": "info", "transport": "console"},
                "modules": [{"name": "m", "methods": {"name": "x"}}],
            }
        )
        assert codes == ["invalid-methods-list"]

    def test_invalid_show_sensitive(self):
        """Node show_sensitive should be a boolean."""
        codes = codes_for(
            {
                "defaults": {"level": "info", "transport": "console"},
                "modules": [{"name": "m", "show_sensitive": "no"}],
            }
        )
        assert codes == ["invalid-show-sensitive"]

    def test_issues_collected_across_sections(self):
        """Transport and tree issues should be reported in one pass."""
        codes = codes_for(
            {
                "defaults": {"level": "loud", "transport": "console"},
                "transports": ["console", {"name": "s", "type": "stream"}],
                "modules": [{"name": "m", "level": "quiet"}, {"name": "m"}],
            }
        )
        assert codes == ["format-required", "invalid-level", "invalid-level", "name-duplicated"]

    def test_error_message_lists_issues(self):
        """The exception text should include every issue."""
        with pytest.raises(InvalidConfig) as exc_info:
            LoggingConfig.from_dict({"defaults": {}})
        text = str(exc_info.value)
        assert "level-required" in text
        assert "transport-required" in text
        assert exc_info.value.to_dict()["error"] == "InvalidConfig"


class TestConfigResolver:
    """Tests for cascade resolution."""

    @pytest.fixture
    def resolver(self, base_config):
        return ConfigResolver(LoggingConfig.from_dict(base_config))

    def test_module_level_inherited_by_method(self):
        """A method without a level should inherit its module's level."""
        config = LoggingConfig.from_dict(
            {
                "defaults": {"level": "info", "transport": "console"},
                "modules": [{"name": "m", "level": "warn", "methods": [{"name": "x"}]}],
            }
        )
        resolver = ConfigResolver(config)
        assert resolver.effective_level(ident("m", "x")).name == "warn"

    def test_method_overrides_module(self, resolver):
        """A method level should win over its module's."""
        assert resolver.effective_level(ident("billing")).name == "warn"
        assert resolver.effective_level(ident("billing", "charge")).name == "debug"

    def test_path_overrides_method(self, resolver):
        """A path level should win over its method and module."""
        assert resolver.effective_level(ident("api", "GET", "/health")).name == "error"
        assert resolver.effective_level(ident("api", "GET", "/other")).name == "info"

    def test_unknown_identity_uses_defaults(self, resolver):
        """Identities not in the tree should use the defaults."""
        assert resolver.effective_level(ident("nowhere", "x")).name == "info"
        assert resolver.effective_transport_selection(ident("nowhere")) == ("plain",)
        assert resolver.effective_level(ident()).name == "info"

    def test_transport_selection(self, resolver):
        """Transport selection should cascade like levels."""
        assert resolver.effective_transport_selection(ident("billing", "charge")) == ("both",)
        assert resolver.effective_transport_selection(ident("billing", "refund")) == ("plain",)

    def test_chain_order(self, resolver):
        """The chain should run from path to defaults."""
        chain = resolver.chain(ident("api", "GET", "/health"))
        assert [getattr(node, "name", "defaults") for node in chain] == [
            "/health",
            "GET",
            "api",
            "defaults",
        ]

    def test_sensitivity_fallback(self, resolver):
        """show_sensitive should fall back to False when unset everywhere."""
        assert resolver.effective_sensitivity(ident("billing")) is False

    def test_sensitivity_cascade(self):
        """A module show_sensitive should apply to its methods."""
        config = LoggingConfig.from_dict(
            {
                "defaults": {"level": "info", "transport": "console"},
                "modules": [
                    {
                        "name": "m",
                        "show_sensitive": True,
                        "methods": [{"name": "x"}, {"name": "y", "show_sensitive": False}],
                    }
                ],
            }
        )
        resolver = ConfigResolver(config)
        assert resolver.effective_sensitivity(ident("m", "x")) is True
        assert resolver.effective_sensitivity(ident("m", "y")) is False


class TestEnvOverrides:
    """Tests for environment overrides of defaults."""

    def test_level_override(self):
        """REDACTLOG_LEVEL should replace the default level."""
        tree = {"defaults": {"level": "info", "transport": "console"}}
        result = apply_env_overrides(tree, {"REDACTLOG_LEVEL": " DEBUG "})
        assert result["defaults"]["level"] == "debug"
        assert tree["defaults"]["level"] == "info"

    def test_transport_override(self):
        """REDACTLOG_TRANSPORT should accept a comma-separated list."""
        tree = {"defaults": {"level": "info", "transport": "console"}}
        assert apply_env_overrides(tree, {"REDACTLOG_TRANSPORT": "a, b"})["defaults"][
            "transport"
        ] == ["a", "b"]
        assert (
            apply_env_overrides(tree, {"REDACTLOG_TRANSPORT": "a"})["defaults"]["transport"]
            == "a"
        )

    def test_no_overrides(self):
        """Without variables the tree should be returned unchanged."""
        tree = {"defaults": {"level": "info", "transport": "console"}}
        assert apply_env_overrides(tree, {}) == tree
