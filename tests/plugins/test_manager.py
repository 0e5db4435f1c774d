"""Tests for the plugin manager and the serialization hooks."""

import pytest

from mrdi import load_document
from mrdi import save_document
from mrdi.exceptions import NamespaceError
from mrdi.plugins import register_hooks
from mrdi.plugins import register_plugins_entry_points
from mrdi.plugins import unregister_hooks
from mrdi.plugins.manager import _create_plugin_manager
from mrdi.plugins.manager import _get_global_plugin_manager
from mrdi.registry import default_registry
from tests.examples.domain import Point
from tests.examples.plugins import ForeignDocumentPlugin
from tests.examples.plugins import RecordingPlugin
from tests.examples.plugins import TypeContributorPlugin


@pytest.fixture
def registered():
    """Register plugins for one test and remove them afterwards."""
    plugins = []

    def register(*hooks):
        plugins.extend(hooks)
        register_hooks(*hooks)

    yield register
    unregister_hooks(*plugins)


class Contributed:
    pass


class TestRegistration:
    """Tests for register_hooks and unregister_hooks."""

    def test_class_instead_of_instance(self):
        """Registering a class rather than an instance is an error."""
        with pytest.raises(TypeError, match="instances"):
            register_hooks(RecordingPlugin)

    def test_register_twice_is_noop(self, registered):
        """Registering the same instance twice keeps one registration."""
        plugin = RecordingPlugin()
        registered(plugin, plugin)
        save_document(Point(1, 2))
        assert len(plugin.saved) == 1

    def test_unregister(self):
        """Unregistered plugins are no longer called."""
        plugin = RecordingPlugin()
        register_hooks(plugin)
        unregister_hooks(plugin)
        save_document(Point(1, 2))
        assert plugin.saved == []

    def test_entry_points_without_plugins(self):
        """Loading entry points with none installed loads nothing."""
        assert register_plugins_entry_points(_create_plugin_manager()) == 0

    def test_global_manager_has_specs(self):
        """The global manager knows every hook."""
        hook = _get_global_plugin_manager().hook
        for name in ("register_serialization_types", "load_foreign_document"):
            assert hasattr(hook, name)
        for name in ("before_save", "after_load"):
            assert hasattr(hook, name)


class TestHooks:
    """Tests for the hooks fired by save and load."""

    def test_before_save_and_after_load(self, registered):
        """Lifecycle hooks receive the root object and the document."""
        plugin = RecordingPlugin()
        registered(plugin)

        document = save_document(Point(1, 2))
        loaded = load_document(document)

        assert plugin.saved == [Point(1, 2)]
        assert plugin.loaded == [(loaded, document)]

    def test_foreign_document(self, registered):
        """A plugin can decode documents from another producer."""
        registered(ForeignDocumentPlugin())
        document = {"_ns": {"legacy-tool": ["", "3.0"]}, "payload": [1, 2]}
        assert load_document(document) == ("foreign", [1, 2])

    def test_foreign_document_unhandled(self, registered):
        """Producers no plugin understands are still refused."""
        registered(ForeignDocumentPlugin())
        with pytest.raises(NamespaceError):
            load_document({"_ns": {"elsewhere": ["", "1.0"]}, "payload": 1})

    def test_register_types_is_historic(self, registered):
        """Late plugins still get to register their types with the default registry."""
        plugin = TypeContributorPlugin(Contributed, "Contributed")
        try:
            registered(plugin)
            assert plugin.registries == [default_registry]
            assert default_registry.resolve_type("Contributed") is Contributed
        finally:
            default_registry.unregister(Contributed)
