"""
Reusable test plugins for mrdi tests.

Each plugin records the hook calls it receives so tests can assert on them.
"""

from typing import Any

from mrdi.plugins import hook_impl


class RecordingPlugin:
    """Records every save/load lifecycle call."""

    def __init__(self):
        self.saved: list[Any] = []
        self.loaded: list[tuple[Any, dict]] = []

    @hook_impl
    def before_save(self, obj: Any) -> None:
        self.saved.append(obj)

    @hook_impl
    def after_load(self, obj: Any, document: dict) -> None:
        self.loaded.append((obj, document))


class ForeignDocumentPlugin:
    """Decodes documents whose namespace names the ``legacy-tool`` producer."""

    def __init__(self, producer: str = "legacy-tool"):
        self.producer = producer

    @hook_impl
    def load_foreign_document(self, namespace: dict, document: dict) -> Any:
        if self.producer not in namespace:
            return None
        return ("foreign", document["payload"])


class TypeContributorPlugin:
    """Registers a type with whatever registry it is handed."""

    def __init__(self, type_: type, tag: str):
        self.type_ = type_
        self.tag = tag
        self.registries: list[Any] = []

    @hook_impl
    def register_serialization_types(self, registry: Any) -> None:
        self.registries.append(registry)
        registry.register(self.type_, self.tag, fields=())
