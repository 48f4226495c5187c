"""Tests for PluginManager discovery and registration."""

from __future__ import annotations

from pathlib import Path

from orgtree.plugins.hookspecs import hookimpl
from orgtree.plugins.manager import PluginManager


class _Plugin:
    @hookimpl
    def post_create_group(self, group_id: str, name: str, parent_id: str | None) -> None:
        pass


_LOCAL_PLUGIN = '''
from orgtree.plugins.hookspecs import hookimpl

SEEN = []


class AuditPlugin:
    @hookimpl
    def post_create_group(self, group_id, name, parent_id):
        SEEN.append(group_id)


class NotAPlugin:
    pass
'''


class TestRegistration:
    def test_register_and_list(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_Plugin(), name="demo")
        assert "demo" in pm.list_plugin_names()

    def test_registering_same_instance_twice_is_noop(self) -> None:
        pm = PluginManager()
        plugin = _Plugin()
        pm.register_plugin(plugin, name="a")
        pm.register_plugin(plugin, name="b")
        assert pm.get_plugins().count(plugin) == 1

    def test_unregister(self) -> None:
        pm = PluginManager()
        plugin = _Plugin()
        pm.register_plugin(plugin)
        pm.unregister(plugin)
        assert plugin not in pm.get_plugins()

    def test_has_hook_impls(self) -> None:
        assert PluginManager._has_hook_impls(_Plugin)
        assert not PluginManager._has_hook_impls(object)


class TestLocalDiscovery:
    def test_loads_single_file_plugins(self, tmp_path: Path) -> None:
        (tmp_path / "audit.py").write_text(_LOCAL_PLUGIN, encoding="utf-8")
        (tmp_path / "_private.py").write_text("raise RuntimeError", encoding="utf-8")

        pm = PluginManager()
        names = pm.discover_and_load(local_dir=tmp_path)

        assert pm.is_loaded
        assert "orgtree_local_plugin_audit.AuditPlugin" in names
        pm.hook.post_create_group(group_id="g1", name="Eng", parent_id=None)
        plugin = next(p for p in pm.get_plugins() if type(p).__name__ == "AuditPlugin")
        assert plugin.post_create_group.__self__ is plugin

    def test_broken_file_skipped(self, tmp_path: Path) -> None:
        (tmp_path / "broken.py").write_text("this is not python", encoding="utf-8")
        pm = PluginManager()
        pm.discover_and_load(local_dir=tmp_path)
        assert pm.is_loaded

    def test_missing_dir(self, tmp_path: Path) -> None:
        pm = PluginManager()
        pm.discover_and_load(local_dir=tmp_path / "absent")
        assert pm.is_loaded
