"""Tests for the command registry and its permission gating."""

import asyncio

import pytest

from brains_core.commands import Command, CommandRegistry, Resource, Tool
from brains_core.errors import CommandNotFoundError, PermissionDeniedError
from brains_core.permissions import PermissionConfig, PermissionLevel, PermissionService


def make_registry() -> CommandRegistry:
    config = PermissionConfig(anchors=["cli:admin"], trusted=["cli:helper"])
    return CommandRegistry(PermissionService(config))


def command(name, visibility=None, handler=None, **kwargs) -> Command:
    kwargs.setdefault("description", f"{name} command")
    return Command(
        name=name,
        visibility=visibility,
        handler=handler or (lambda args: name),
        **kwargs,
    )


class TestRegistration:
    """Tests for keyed registration and removal."""

    def test_register_sets_plugin_id(self):
        """Stored capabilities carry the contributing plugin's id."""
        registry = make_registry()
        original = command("help", PermissionLevel.PUBLIC)
        assert registry.register_command("core", original) is True

        stored = registry.get_all_commands()[0]
        assert stored.plugin_id == "core"
        assert original.plugin_id == ""

    def test_duplicate_key_keeps_first(self):
        """Re-registering the same plugin:name is ignored."""
        registry = make_registry()
        registry.register_command("core", command("help", description="first"))
        assert registry.register_command("core", command("help", description="second")) is False

        commands = registry.get_all_commands()
        assert len(commands) == 1
        assert commands[0].description == "first"

    def test_same_name_from_two_plugins(self):
        """Different plugins may contribute the same display name."""
        registry = make_registry()
        assert registry.register_command("a", command("sync", PermissionLevel.PUBLIC))
        assert registry.register_command("b", command("sync", PermissionLevel.PUBLIC))
        assert registry.get_stats()["commands_by_plugin"] == {"a": 1, "b": 1}

    def test_unregister_plugin_removes_everything(self):
        """All commands, tools and resources of a plugin go at once."""
        registry = make_registry()
        registry.register_command("a", command("one"))
        registry.register_tool("a", Tool(name="search", handler=lambda args: None))
        registry.register_resource("a", Resource(name="notes", uri="notes://all", handler=lambda args: None))
        registry.register_command("b", command("two"))

        assert registry.unregister_plugin("a") == 3
        assert [c.name for c in registry.get_all_commands()] == ["two"]
        assert registry.get_all_tools() == []
        assert registry.get_stats()["total_resources"] == 0

    def test_get_stats(self):
        """Stats count every table."""
        registry = make_registry()
        registry.register_command("a", command("one"))
        registry.register_command("a", command("two"))
        registry.register_tool("b", Tool(name="t", handler=lambda args: None))

        stats = registry.get_stats()
        assert stats["total_commands"] == 2
        assert stats["total_tools"] == 1
        assert stats["commands_by_plugin"] == {"a": 2}


class TestVisibility:
    """Tests for permission-aware lookups."""

    @pytest.fixture
    def registry(self):
        registry = make_registry()
        registry.register_command("core", command("help", PermissionLevel.PUBLIC))
        registry.register_command("core", command("status", PermissionLevel.TRUSTED))
        registry.register_command("core", command("shutdown", PermissionLevel.ANCHOR))
        registry.register_command("core", command("secret"))
        return registry

    def test_public_caller(self, registry):
        """Public callers see public commands only."""
        names = [c.name for c in registry.list_commands("cli", "stranger")]
        assert names == ["help"]

    def test_trusted_caller(self, registry):
        """Trusted callers see public and trusted commands."""
        names = [c.name for c in registry.list_commands("cli", "helper")]
        assert names == ["help", "status"]

    def test_anchor_caller_sees_all(self, registry):
        """Anchors see every command, including untagged ones."""
        names = [c.name for c in registry.list_commands("cli", "admin")]
        assert names == ["help", "status", "shutdown", "secret"]

    def test_unset_visibility_is_anchor_only(self, registry):
        """A command without visibility is hidden from non-anchors."""
        assert registry.find_command("secret", "cli", "stranger") is None
        assert registry.find_command("secret", "cli", "helper") is None
        assert registry.find_command("secret", "cli", "admin").name == "secret"

    def test_find_unknown(self, registry):
        """Unknown names return None."""
        assert registry.find_command("nope", "cli", "admin") is None

    def test_find_skips_invisible_duplicate(self):
        """The first command the caller may use is returned."""
        registry = make_registry()
        registry.register_command("a", command("sync", PermissionLevel.ANCHOR))
        registry.register_command("b", command("sync", PermissionLevel.PUBLIC))

        found = registry.find_command("sync", "cli", "stranger")
        assert found.plugin_id == "b"
        assert registry.find_command("sync", "cli", "admin").plugin_id == "a"

    def test_tools_and_resources_follow_same_rules(self):
        """Tool and resource lookups are gated like commands."""
        registry = make_registry()
        registry.register_tool("a", Tool(name="open", visibility=PermissionLevel.PUBLIC, handler=lambda x: x))
        registry.register_tool("a", Tool(name="closed", handler=lambda x: x))
        registry.register_resource(
            "a", Resource(name="r", uri="r://1", visibility=PermissionLevel.TRUSTED, handler=lambda x: x)
        )

        assert [t.name for t in registry.list_tools("cli", "stranger")] == ["open"]
        assert registry.find_tool("closed", "cli", "stranger") is None
        assert registry.find_tool("closed", "cli", "admin").name == "closed"
        assert registry.list_resources("cli", "stranger") == []
        assert [r.uri for r in registry.list_resources("cli", "helper")] == ["r://1"]

    def test_to_dict_reports_effective_visibility(self):
        """Serialized commands show 'anchor' for untagged entries."""
        registry = make_registry()
        registry.register_command("core", command("secret", usage="secret <arg>"))
        info = registry.get_all_commands()[0].to_dict()
        assert info == {
            "name": "secret",
            "plugin_id": "core",
            "description": "secret command",
            "visibility": "anchor",
            "usage": "secret <arg>",
        }


class TestDisabledPlugins:
    """Tests for hiding a plugin's capabilities."""

    def test_disable_hides_and_enable_restores(self):
        """Disabled plugins contribute nothing to lookups."""
        registry = make_registry()
        registry.register_command("a", command("help", PermissionLevel.PUBLIC))

        registry.disable_plugin("a")
        assert registry.find_command("help", "cli", "admin") is None
        assert registry.list_commands("cli", "admin") == []
        assert len(registry.get_all_commands()) == 1

        registry.enable_plugin("a")
        assert registry.find_command("help", "cli", "stranger") is not None


class TestExecution:
    """Tests for running commands and tools."""

    def test_execute_sync_handler(self):
        """Arguments reach the handler and its result is returned."""
        registry = make_registry()
        registry.register_command(
            "core", command("echo", PermissionLevel.PUBLIC, handler=lambda args: " ".join(args))
        )
        result = asyncio.run(registry.execute_command("echo", ["a", "b"], "cli", "stranger"))
        assert result == "a b"

    def test_execute_async_tool(self):
        """Coroutine handlers are awaited."""
        registry = make_registry()

        async def add(arguments):
            return arguments["x"] + arguments["y"]

        registry.register_tool("math", Tool(name="add", visibility=PermissionLevel.TRUSTED, handler=add))
        result = asyncio.run(registry.execute_tool("add", {"x": 1, "y": 2}, "cli", "helper"))
        assert result == 3

    def test_execute_unknown_raises(self):
        """Unknown commands raise CommandNotFoundError."""
        registry = make_registry()
        with pytest.raises(CommandNotFoundError):
            asyncio.run(registry.execute_command("nope", [], "cli", "admin"))

    def test_execute_without_permission_raises(self):
        """Insufficient level raises PermissionDeniedError and skips the handler."""
        registry = make_registry()
        calls = []
        registry.register_command(
            "core", command("shutdown", PermissionLevel.ANCHOR, handler=calls.append)
        )

        with pytest.raises(PermissionDeniedError) as exc_info:
            asyncio.run(registry.execute_command("shutdown", [], "cli", "helper"))

        assert exc_info.value.level == "trusted"
        assert exc_info.value.required == "anchor"
        assert calls == []

    def test_execute_disabled_plugin_is_not_found(self):
        """Commands of a disabled plugin cannot be run."""
        registry = make_registry()
        registry.register_command("a", command("help", PermissionLevel.PUBLIC))
        registry.disable_plugin("a")
        with pytest.raises(CommandNotFoundError):
            asyncio.run(registry.execute_command("help", [], "cli", "admin"))
