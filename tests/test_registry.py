"""Tests for registry.py — merge policy, lookups and discovery."""
import asyncio
import logging

import pytest

from conftest import FakeBackend, make_tool
from mcp_proxy.registry import RegistryEntry, ToolRegistry, discover_backends


class TestToolRegistry:
    def test_register_and_lookup(self, read_file_tool):
        reg = ToolRegistry()
        reg.register("files", read_file_tool)

        entry = reg.lookup("read_file")
        assert entry.backend_name == "files"
        assert entry.descriptor is read_file_tool
        assert "read_file" in reg
        assert len(reg) == 1

    def test_lookup_missing(self):
        assert ToolRegistry().lookup("nope") is None

    def test_last_write_wins(self):
        reg = ToolRegistry()
        reg.register("alpha", make_tool("x", "from alpha"))
        reg.register("beta", make_tool("x", "from beta"))

        assert len(reg) == 1
        entry = reg.lookup("x")
        assert entry.backend_name == "beta"
        assert entry.descriptor.description == "from beta"

    def test_list_all_keeps_insertion_order(self):
        reg = ToolRegistry()
        for name in ["b", "a", "c"]:
            reg.register("s", make_tool(name))
        assert [e.tool_name for e in reg.list_all()] == ["b", "a", "c"]
        assert reg.tool_names() == ["b", "a", "c"]

    def test_custom_merge_policy(self):
        def first_wins(existing, incoming):
            return existing or incoming

        reg = ToolRegistry(merge_policy=first_wins)
        reg.register("alpha", make_tool("x"))
        reg.register("beta", make_tool("x"))
        assert reg.lookup("x").backend_name == "alpha"

    def test_backend_binding(self, files_backend):
        reg = ToolRegistry()
        reg.bind_backend("files", files_backend)
        assert reg.get_backend("files") is files_backend
        assert reg.get_backend("other") is None
        assert reg.backend_names() == ["files"]

    @pytest.mark.asyncio
    async def test_add_backend(self, files_backend):
        reg = ToolRegistry()
        count = await reg.add_backend("files", files_backend, files_backend.tools)
        assert count == 2
        assert reg.get_backend("files") is files_backend
        assert reg.tool_names() == ["read_file", "list_files"]

    def test_log_summary(self, registry, caplog):
        with caplog.at_level(logging.INFO, logger="mcp_proxy.registry"):
            registry.log_summary()
        text = caplog.text
        assert "Server: files (2 tools)" in text
        assert "path (string) *required" in text
        assert "limit (integer)" in text
        assert "SUMMARY: 2 tools across 1 connected servers" in text

    def test_log_summary_empty(self, caplog):
        with caplog.at_level(logging.WARNING, logger="mcp_proxy.registry"):
            ToolRegistry().log_summary()
        assert "No tools available" in caplog.text

    def test_log_summary_boolean_property_schema(self, caplog):
        reg = ToolRegistry()
        reg.register("odd", make_tool("flagged", flag=True))
        with caplog.at_level(logging.INFO, logger="mcp_proxy.registry"):
            reg.log_summary()
        assert "flag (any)" in caplog.text


class TestDiscovery:
    @pytest.mark.asyncio
    async def test_union_of_backends(self):
        alpha = FakeBackend([make_tool("a1"), make_tool("a2")])
        beta = FakeBackend([make_tool("b1")])

        reg = await discover_backends({"alpha": alpha, "beta": beta})

        assert reg.tool_names() == ["a1", "a2", "b1"]
        assert reg.backend_names() == ["alpha", "beta"]
        assert alpha.connected and beta.connected

    @pytest.mark.asyncio
    async def test_failed_backend_is_skipped(self):
        alpha = FakeBackend([make_tool("a1")])
        broken = FakeBackend([make_tool("z")], fail_connect=True)
        gamma = FakeBackend([make_tool("g1")])

        reg = await discover_backends({"alpha": alpha, "broken": broken, "gamma": gamma})

        assert reg.tool_names() == ["a1", "g1"]
        assert "broken" not in reg.backend_names()
        assert reg.lookup("z") is None

    @pytest.mark.asyncio
    async def test_collision_resolved_in_configuration_order(self):
        first = FakeBackend([make_tool("x", "first")])
        second = FakeBackend([make_tool("x", "second")])

        reg = await discover_backends({"first": first, "second": second})

        assert len(reg) == 1
        assert reg.lookup("x") == RegistryEntry("x", "second", second.tools[0])

    @pytest.mark.asyncio
    async def test_fills_given_registry(self):
        reg = ToolRegistry()
        result = await discover_backends({"a": FakeBackend([make_tool("t")])}, registry=reg)
        assert result is reg
        assert "t" in reg

    @pytest.mark.asyncio
    async def test_no_backends(self):
        reg = await discover_backends({})
        assert len(reg) == 0


class SlowBackend(FakeBackend):
    """Lists its tools only once `release` is set."""

    def __init__(self, tools, release: asyncio.Event):
        super().__init__(tools)
        self.release = release

    async def list_tools(self):
        await self.release.wait()
        return await super().list_tools()


class ReleasingBackend(FakeBackend):
    """Sets `release` while connecting, so it finishes before a SlowBackend."""

    def __init__(self, tools, release: asyncio.Event):
        super().__init__(tools)
        self.release = release

    async def connect(self):
        await super().connect()
        self.release.set()


class TestConcurrentDiscovery:
    @pytest.mark.asyncio
    async def test_backends_discovered_concurrently(self):
        # the first backend can only finish once the second one has connected
        release = asyncio.Event()
        first = SlowBackend([make_tool("x", "first")], release)
        second = ReleasingBackend([make_tool("x", "second")], release)

        reg = await asyncio.wait_for(
            discover_backends({"first": first, "second": second}), timeout=5
        )

        assert reg.backend_names() == ["first", "second"]
        assert reg.lookup("x").backend_name == "second"

    @pytest.mark.asyncio
    async def test_configured_last_wins_even_when_finishing_first(self):
        release = asyncio.Event()
        slow_first = SlowBackend([make_tool("x", "slow")], release)
        fast_last = ReleasingBackend([make_tool("x", "fast")], release)

        reg = await asyncio.wait_for(
            discover_backends({"slow": slow_first, "fast": fast_last}), timeout=5
        )

        assert reg.lookup("x").descriptor.description == "fast"
