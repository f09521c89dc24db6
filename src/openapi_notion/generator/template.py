"""Page layout: turns an :class:`ApiDocument` into the Notion blocks of one page."""

from openapi_notion.notion.builder import Block, BlocksBuilder, text
from openapi_notion.parser.base import ApiDocument, Operation, Response, SchemaNode, security_names
from openapi_notion.parser.resolver import SchemaResolver, ref_name

from .components import example_item, page_header, server_url
from .properties import LAYOUTS, PropertyWalker


class NotionTemplate:
    """Renders one API document.

    Every top-level section is wrapped in an empty paragraph so that clearing
    the page later takes one delete call per section instead of one per block.
    """

    def __init__(
        self,
        document: ApiDocument,
        file_name: str,
        flatten: bool = False,
        show_header: bool = True,
        layout: str = "table",
    ):
        if layout not in LAYOUTS:
            raise ValueError(f"Unknown layout {layout!r}, expected one of {sorted(LAYOUTS)}")
        self.document = document
        self.file_name = file_name
        self.flatten = flatten
        self.show_header = show_header
        self.resolver = SchemaResolver(document.schemas)
        self.walker = PropertyWalker(self.resolver, flatten=flatten)
        self._render_properties = LAYOUTS[layout]

    def render(self) -> list[Block]:
        b = BlocksBuilder()

        with b.section(""):
            page_header(b, self.file_name, self.show_header)

        with b.section(""):
            self._summary_section(b)

        for operation in self.document.operations:
            self._operation_section(b, operation)

        # computed before the appendix renders and consumes schemas itself
        components = self.resolver.unconsumed()
        if not self.flatten and components:
            with b.section(""):
                self._components_section(b, components)

        with b.section(""):
            self._authentication_section(b)

        return b.build()

    def _properties(self, b: BlocksBuilder, schema: SchemaNode | None) -> None:
        if schema is not None:
            self._render_properties(b, self.walker.rows("", schema))

    # -- sections -------------------------------------------------------------

    def _summary_section(self, b: BlocksBuilder) -> None:
        b.heading1("Summary")
        server_url(b, self.document.servers)

        with b.table(4, has_column_header=True) as table:
            table.row("Method", "Endpoint", "Authentication", "Description")
            for operation in self.document.operations:
                security = self.document.operation_security(operation)
                table.row(
                    text(operation.method, code=True, color="green"),
                    text(operation.path, code=True, color="default"),
                    ", ".join(security_names(security)),
                    operation.summary or operation.description or "",
                )

    def _operation_section(self, b: BlocksBuilder, operation: Operation) -> None:
        with b.section(""):
            b.heading1(operation.summary or "[please add summary]")
            b.paragraph(
                text(f" {operation.method} ", code=True, bold=True, color="green"),
                text(f" {operation.path}", code=True, color="default"),
            )
            b.paragraph(operation.description or "")

        with b.section(""):
            self._operation_auth(b, operation)
            self._operation_params(b, operation)
            self._operation_request(b, operation)

        with b.section(""):
            self._operation_responses(b, operation)

    def _operation_auth(self, b: BlocksBuilder, operation: Operation) -> None:
        security = self.document.operation_security(operation)
        if security is None:
            return
        b.heading3("Authentication")
        for name in security_names(security):
            b.bullet(name)

    def _operation_params(self, b: BlocksBuilder, operation: Operation) -> None:
        if not operation.parameters:
            return
        b.heading3("Parameters")
        b.quote("Bold parameters are required", color="gray")
        with b.table(4, has_column_header=True, has_row_header=True) as table:
            table.row("Name", "Type", "Location", "Description")
            for parameter in operation.parameters:
                table.row(
                    text(parameter.name, bold=parameter.required, code=True, color="default"),
                    self._parameter_type(parameter.schema_),
                    parameter.location,
                    parameter.description,
                )

    def _parameter_type(self, schema: SchemaNode | None) -> str:
        if schema is None:
            return ""
        if schema.ref:
            self.resolver.resolve(schema.ref)
            return ref_name(schema.ref)
        return schema.type_token

    def _operation_request(self, b: BlocksBuilder, operation: Operation) -> None:
        request = operation.request_body
        if request is None:
            return
        b.heading3("Request")
        if request.description:
            b.paragraph(request.description)
        for content_type, content in request.content.items():
            b.paragraph(text("Content-Type: "), text(content_type, code=True, color="default"))
            docs = content.schema_.external_docs if content.schema_ is not None else None
            if docs is not None:
                b.paragraph(
                    text("Documentation: ", bold=True),
                    text(docs.description or docs.url, link=docs.url or None),
                )
            self._properties(b, content.schema_)
            b.divider()
            example_item(b, content)

    def _operation_responses(self, b: BlocksBuilder, operation: Operation) -> None:
        if not operation.responses:
            return
        b.heading3("Response")
        for code, response in operation.responses.items():
            self._response_body(b, code, response)

    def _response_body(self, b: BlocksBuilder, code: str, response: Response) -> None:
        if not response.content:
            self._response_header(b, code, response, None)
        for content_type, content in response.content.items():
            self._response_header(b, code, response, content_type)
            self._properties(b, content.schema_)
            b.divider()
            example_item(b, content)
        b.paragraph(" ")

    def _response_header(self, b: BlocksBuilder, code: str, response: Response, content_type: str | None) -> None:
        color = "green" if code.startswith("2") else "orange"
        b.quote(
            text(f"{code} {response.description}", code=True, bold=True, color=color),
            text("  Content-Type: " if content_type else "  No Content", color="default"),
            text(content_type, code=True, color="default") if content_type else None,
            color=color,
        )

    def _components_section(self, b: BlocksBuilder, schemas: dict[str, SchemaNode]) -> None:
        b.heading1("Schemas")
        for name, schema in schemas.items():
            b.heading3(name)
            if schema.description:
                b.paragraph(schema.description)
            self._properties(b, schema)

    def _authentication_section(self, b: BlocksBuilder) -> None:
        b.heading1("Authentication")
        for name, scheme in self.document.security_schemes.items():
            b.heading2(name)
            if scheme.description:
                b.paragraph(scheme.description)

            # OAuth2 flows are not rendered
            with b.table(2, has_row_header=True) as table:
                table.row("Type", scheme.type)
                if scheme.location:
                    table.row("In", scheme.location)
                    table.row("Name", scheme.name or "")
                if scheme.open_id_connect_url:
                    table.row("Connect URL", scheme.open_id_connect_url)
                if scheme.scheme:
                    table.row("Scheme", scheme.scheme)
