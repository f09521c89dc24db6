"""Data models for parsed OpenAPI documents.

The loader in :mod:`openapi_notion.parser.openapi` converts raw YAML into
these models; the templates only ever see this representation.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

SecurityRequirement = dict[str, list[str]]


class ExternalDocs(BaseModel):
    """Link to documentation living outside the API document."""

    url: str = ""
    description: str | None = None


class SchemaNode(BaseModel):
    """A JSON schema node.

    Keywords that are not modelled explicitly (format, enum, minimum, ...)
    are kept as extra fields so the node can be dumped back unchanged.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    ref: str | None = Field(default=None, alias="$ref")
    type: str | list[str] | None = None  # 3.1 allows a list of types
    title: str | None = None
    description: str | None = None
    properties: dict[str, "SchemaNode"] = {}
    required: list[str] = []
    items: "SchemaNode | None" = None
    additional_properties: "SchemaNode | bool | None" = Field(default=None, alias="additionalProperties")
    example: Any = None
    default: Any = None
    external_docs: ExternalDocs | None = Field(default=None, alias="externalDocs")

    @field_validator("required", mode="before")
    @classmethod
    def _required_names(cls, value: Any) -> Any:
        # `required: true` on a property is a common Swagger 2 leftover
        return value if isinstance(value, list) else []

    @property
    def type_token(self) -> str:
        """The declared type, using the first non-null entry of a type list."""
        if isinstance(self.type, list):
            return next((t for t in self.type if t != "null"), "")
        return self.type or ""


class Parameter(BaseModel):
    """A single operation parameter (query, path, header or cookie)."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    location: str = Field(default="query", alias="in")
    required: bool = False
    schema_: SchemaNode | None = Field(default=None, alias="schema")
    description: str = ""


class Example(BaseModel):
    """A named example of a media type."""

    summary: str | None = None
    description: str | None = None
    value: Any = None


class MediaContent(BaseModel):
    """Schema and examples for one content type."""

    model_config = ConfigDict(populate_by_name=True)

    schema_: SchemaNode | None = Field(default=None, alias="schema")
    example: Any = None
    examples: dict[str, Example] = {}


class RequestBody(BaseModel):
    description: str | None = None
    required: bool = False
    content: dict[str, MediaContent] = {}


class Response(BaseModel):
    description: str = ""
    content: dict[str, MediaContent] = {}


class Operation(BaseModel):
    """A single HTTP operation with all its metadata."""

    model_config = ConfigDict(populate_by_name=True)

    method: str  # GET / POST / PUT / DELETE / PATCH / ...
    path: str  # /pets/{petId}
    summary: str | None = None
    description: str | None = None
    operation_id: str | None = Field(default=None, alias="operationId")
    parameters: list[Parameter] = []
    request_body: RequestBody | None = Field(default=None, alias="requestBody")
    responses: dict[str, Response] = {}
    security: list[SecurityRequirement] | None = None  # None: use the document default
    tags: list[str] = []

    @field_validator("responses", mode="before")
    @classmethod
    def _status_codes_as_strings(cls, value: Any) -> Any:
        # unquoted YAML status codes load as integers
        if isinstance(value, dict):
            return {str(code): response for code, response in value.items()}
        return value


class SecurityScheme(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str
    description: str | None = None
    location: str | None = Field(default=None, alias="in")
    name: str | None = None
    scheme: str | None = None
    bearer_format: str | None = Field(default=None, alias="bearerFormat")
    open_id_connect_url: str | None = Field(default=None, alias="openIdConnectUrl")
    flows: dict[str, Any] | None = None


class Server(BaseModel):
    url: str
    description: str | None = None


class ApiInfo(BaseModel):
    """The info section, including the per-page rendering flags."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title: str | None = None
    version: str | None = None
    description: str | None = None
    flatten: bool = Field(default=False, alias="x-notion-flatten")
    show_header: bool = Field(default=True, alias="x-notion-header")

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_string(cls, value: Any) -> Any:
        # `version: 1.0` or `version: 2024-01-01` load as numbers and dates
        return value if value is None or isinstance(value, str) else str(value)


class ApiDocument(BaseModel):
    """A parsed OpenAPI document."""

    info: ApiInfo | None = None
    servers: list[Server] = []
    operations: list[Operation] = []
    schemas: dict[str, SchemaNode] = {}
    security_schemes: dict[str, SecurityScheme] = {}
    security: list[SecurityRequirement] | None = None

    def operation_security(self, operation: Operation) -> list[SecurityRequirement] | None:
        """Security of *operation*, falling back to the document default."""
        return operation.security if operation.security is not None else self.security


def security_names(requirements: list[SecurityRequirement] | None) -> list[str]:
    """Flatten security requirements into the list of scheme names."""
    return [name for requirement in requirements or [] for name in requirement]
