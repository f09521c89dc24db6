"""Property tables: flatten a schema into one row per (nested) property."""

import json
from dataclasses import dataclass
from typing import Any, Iterator

from openapi_notion.errors import UnresolvedReferenceError
from openapi_notion.notion.builder import BlocksBuilder, RowsBuilder, Span, text
from openapi_notion.parser.base import ExternalDocs, SchemaNode
from openapi_notion.parser.resolver import SchemaResolver, ShapeVariant, ref_name

# Examples shorter than this (together with the description) stay on the
# description line.
ONELINER_LENGTH = 70

MAP_ENTRY = "<*>"
ARRAY_MARKER = "[]"


def format_value(value: Any) -> str:
    """Render an example or default value the way it appears in the document."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


@dataclass
class PropertyRow:
    """One line of a property table."""

    path: str
    type_name: str
    required: bool
    default: str | None = None
    description: str = ""
    example: str | None = None
    external_docs: ExternalDocs | None = None
    recursive: bool = False

    @property
    def parent_path(self) -> str:
        """``a.b.c`` -> ``a.b.``"""
        head, dot, _ = self.path.rpartition(".")
        return head + dot

    @property
    def name(self) -> str:
        return self.path.rpartition(".")[2]

    @property
    def oneliner(self) -> bool:
        return (
            self.example is None
            or not self.description.strip()
            or len(self.description) + len(self.example) < ONELINER_LENGTH
        )


class PropertyWalker:
    """Walks a schema depth-first and yields its property rows in declaration order.

    When ``flatten`` is off, properties pointing to a component schema get a
    single summary row typed with the component name, and the component is
    documented once in the schemas appendix instead.
    """

    def __init__(self, resolver: SchemaResolver, flatten: bool = False):
        self.resolver = resolver
        self.flatten = flatten

    def rows(self, path: str, schema: SchemaNode, expanding: frozenset[str] = frozenset()) -> Iterator[PropertyRow]:
        if schema.ref:
            if ref_name(schema.ref) in expanding:
                # a chain of bare references that never reaches a schema
                raise UnresolvedReferenceError(schema.ref)
            resolved = self.resolver.resolve(schema.ref)
            self.resolver.record_consumed(schema.ref)
            yield from self.rows(path, resolved, expanding | {ref_name(schema.ref)})
            return

        shape = self.resolver.classify(schema)
        if shape is ShapeVariant.OBJECT:
            for prop, value in schema.properties.items():
                yield from self._row_item(path, prop, value, schema, expanding)
        elif shape is ShapeVariant.MAP:
            for prop, value in schema.properties.items():
                yield from self._row_item(path, prop, value, schema, expanding)
            if isinstance(schema.additional_properties, SchemaNode):
                yield from self._row_item(path, MAP_ENTRY, schema.additional_properties, None, expanding)
        else:
            yield from self._row_item(path, "", schema, None, expanding)

    def _row_item(
        self,
        path: str,
        prop: str,
        value: SchemaNode,
        parent: SchemaNode | None,
        expanding: frozenset[str],
    ) -> Iterator[PropertyRow]:
        row_path = f"{path}.{prop}".removeprefix(".").removesuffix(".")
        target = value.ref or (value.items.ref if value.items is not None else None)
        component = None
        if target:
            # fail on dangling references even when they are not expanded
            self.resolver.resolve(target)
            component = ref_name(target)
            if not value.ref:
                component = f"array<{component}>"
        recursive = target is not None and ref_name(target) in expanding

        yield PropertyRow(
            path=row_path,
            type_name=component or value.type_token,
            required=parent is not None and prop in parent.required,
            default=format_value(value.default) if value.default is not None else None,
            description=value.description or "",
            example=_example(value),
            external_docs=value.external_docs,
            recursive=recursive,
        )

        if (not self.flatten and component is not None) or recursive:
            return

        shape = self.resolver.classify(value)
        if shape in (ShapeVariant.OBJECT, ShapeVariant.MAP):
            yield from self.rows(row_path, value, expanding)
        elif shape is ShapeVariant.ARRAY:
            while value.ref:
                self.resolver.record_consumed(value.ref)
                expanding = expanding | {ref_name(value.ref)}
                value = self.resolver.resolve(value.ref)
            if value.items is not None:
                yield from self.rows(row_path + ARRAY_MARKER, value.items, expanding)


def _example(value: SchemaNode) -> str | None:
    if value.example is None:
        return None
    return format_value(value.example).strip() or None


def _default_label(row: PropertyRow) -> str:
    return f" (default: {row.default})" if row.default and row.default.strip() else ""


def _docs_spans(docs: ExternalDocs | None) -> list[Span]:
    if docs is None:
        return []
    return [text("Documentation: ", bold=True), text(docs.description or docs.url, link=docs.url or None)]


def _description_spans(row: PropertyRow) -> list[Span]:
    spans = []
    if row.description:
        spans.append(text(row.description))
    if row.example is not None:
        separator = " " if row.oneliner else "\n"
        spans.append(text(separator + "Example: " if row.description else "Example: ", bold=True))
        spans.append(text(row.example, code=True, color="blue"))
    if row.recursive:
        spans.append(text(f" Recursive reference to {row.type_name}, see above.", italic=True))
    docs = _docs_spans(row.external_docs)
    if docs:
        if spans:
            spans.append(text("\n"))
        spans.extend(docs)
    return spans


def _required_span(row: PropertyRow) -> Span:
    if row.required:
        return text("Required", code=True, color="red")
    return text("Optional" + _default_label(row), code=True, color="green")


def property_table(builder: BlocksBuilder, rows: Iterator[PropertyRow]) -> None:
    """Render *rows* as a Name / Type / Description table."""
    with builder.table(3, has_column_header=True) as table:
        table.row("Name", "Type", "Description")
        for row in rows:
            _table_row(table, row)


def _table_row(table: RowsBuilder, row: PropertyRow) -> None:
    table.row(
        [
            text(row.parent_path, code=True, color="default") if row.parent_path else None,
            text(row.name, code=True, color="default", bold=True),
        ],
        [text(row.type_name, code=True, color="pink"), text("  "), _required_span(row)],
        _description_spans(row),
    )


def property_list(builder: BlocksBuilder, rows: Iterator[PropertyRow]) -> None:
    """Render *rows* as a sequence of paragraphs separated by dividers."""
    for row in rows:
        builder.divider()
        builder.paragraph(
            text(row.path, code=True, color="default"),
            text("  "),
            text(row.type_name, code=True, color="pink"),
            text("  "),
            _required_span(row),
        )

        if row.example is not None and not row.oneliner:
            builder.paragraph(text(row.description))
            builder.paragraph(text("Example: ", bold=True), text(row.example, code=True, color="blue"))
        elif row.example is not None:
            builder.paragraph(
                text(f"{row.description}. " if row.description else ""),
                text(" Example: ", bold=True),
                text(row.example, code=True, color="blue"),
            )
        elif row.description.strip():
            builder.paragraph(text(row.description))

        if row.recursive:
            builder.paragraph(text(f"Recursive reference to {row.type_name}, see above.", italic=True))
        docs = _docs_spans(row.external_docs)
        if docs:
            builder.paragraph(*docs)


LAYOUTS = {
    "table": property_table,
    "list": property_list,
}
