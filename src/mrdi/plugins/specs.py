"""Hook specifications for mrdi serialization events."""

from typing import Any

from mrdi.plugins.markers import hook_spec
from mrdi.registry import TypeRegistry


class RegistrySpec:
    """Hook specifications for contributing types to the registry."""

    @hook_spec(historic=True)
    def register_serialization_types(self, registry: TypeRegistry) -> None:
        """
        Called once with the default registry so plugins can register their types.

        The hook is historic: plugins registered after initialization are called immediately.

        Args:
            registry: The registry to add types to.
        """


class DocumentSpec:
    """Hook specifications for the save and load lifecycle."""

    @hook_spec(firstresult=True)
    def load_foreign_document(self, namespace: dict[str, Any], document: dict[str, Any]) -> Any:
        """
        Called when a document's namespace header names another producer.

        The first non-None result is returned from ``load`` as the decoded object.

        Args:
            namespace: The document's ``_ns`` header.
            document: The raw document.
        """

    @hook_spec
    def before_save(self, obj: Any) -> None:
        """
        Called before an object is encoded.

        Args:
            obj: The root object about to be saved.
        """

    @hook_spec
    def after_load(self, obj: Any, document: dict[str, Any]) -> None:
        """
        Called after a document has been decoded successfully.

        Args:
            obj: The decoded root object.
            document: The (upgraded) document it was decoded from.
        """
