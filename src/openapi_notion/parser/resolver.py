"""Schema reference resolution and shape classification."""

from enum import Enum

from openapi_notion.errors import UnresolvedReferenceError

from .base import SchemaNode


class ShapeVariant(Enum):
    OBJECT = "object"
    MAP = "map"
    ARRAY = "array"
    SCALAR = "scalar"
    REFERENCE = "reference"


def ref_name(ref: str) -> str:
    """``#/components/schemas/Pet`` -> ``Pet``."""
    return ref.rsplit("/", 1)[-1]


class SchemaResolver:
    """Resolves ``$ref`` schemas against the component table of one document.

    Also tracks which definitions were inlined into the page body (the
    consumed set) so the schema appendix can leave them out. One resolver
    lives for exactly one render pass.
    """

    def __init__(self, schemas: dict[str, SchemaNode]):
        self.schemas = schemas
        self._consumed: set[str] = set()

    def resolve(self, ref: str) -> SchemaNode:
        return self.schemas[self._definition_name(ref)]

    def record_consumed(self, ref: str) -> None:
        """Mark the definition *ref* resolves to as inlined."""
        self._consumed.add(self._definition_name(ref))

    @property
    def consumed(self) -> frozenset[str]:
        return frozenset(self._consumed)

    def unconsumed(self) -> dict[str, SchemaNode]:
        """Definitions not inlined so far, in declaration order."""
        return {name: schema for name, schema in self.schemas.items() if name not in self._consumed}

    def classify(self, node: SchemaNode, resolve: bool = True) -> ShapeVariant:
        if node.ref and not resolve:
            return ShapeVariant.REFERENCE
        seen = set()
        while node.ref:
            if node.ref in seen:
                raise UnresolvedReferenceError(node.ref)
            seen.add(node.ref)
            node = self.resolve(node.ref)

        if node.additional_properties is not None and node.additional_properties is not False:
            return ShapeVariant.MAP
        if node.properties or node.type_token == "object":
            return ShapeVariant.OBJECT
        if node.items is not None or node.type_token == "array":
            return ShapeVariant.ARRAY
        return ShapeVariant.SCALAR

    def _definition_name(self, ref: str) -> str:
        if ref in self.schemas:
            return ref
        name = ref_name(ref)
        if name in self.schemas:
            return name
        raise UnresolvedReferenceError(ref)
