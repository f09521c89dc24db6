"""OpenAPI document loader.

Parses OpenAPI 3.x YAML documents into :class:`ApiDocument` models.
Problems are reported as diagnostic messages instead of being raised, so the
caller decides whether a document is skipped or aborts the run.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError

from openapi_notion.errors import UnresolvedReferenceError

from .base import ApiDocument, Operation, Parameter

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

# Diagnostics starting with this marker mean the document must not be used.
INVALID_CONTENT_MARKER = "Exception safe-checking yaml content"

SCHEMA_REF_PREFIX = "#/components/schemas/"


class ParseResult(BaseModel):
    """Outcome of loading one file: a document, its raw mapping and diagnostics."""

    document: ApiDocument | None = None
    raw: dict[str, Any] = {}
    messages: list[str] = []

    @property
    def invalid(self) -> bool:
        return any(m.startswith(INVALID_CONTENT_MARKER) for m in self.messages)


def load_document(file_path: Path) -> ParseResult:
    """Load an OpenAPI file into a :class:`ParseResult`."""
    text = file_path.read_text(encoding="utf-8")
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        return ParseResult(messages=[f"{INVALID_CONTENT_MARKER}: {e}"])

    if not isinstance(raw, dict):
        return ParseResult(messages=[f"{INVALID_CONTENT_MARKER}: top level is not a mapping"])

    try:
        document = parse_document(raw)
    except ValidationError as e:
        return ParseResult(raw=raw, messages=[f"{INVALID_CONTENT_MARKER}: {e}"])
    return ParseResult(document=document, raw=raw)


def parse_document(raw: dict[str, Any]) -> ApiDocument:
    """Build an :class:`ApiDocument` from an already loaded mapping.

    Parameter, request body, response and example references are resolved
    here; schema references are left in place for the renderer.
    """
    components = raw.get("components") or {}
    operations = []

    for path, path_item in (raw.get("paths") or {}).items():
        path_item = deref(raw, path_item) or {}
        shared_params = path_item.get("parameters") or []
        for method, operation in path_item.items():
            if method.lower() not in HTTP_METHODS:
                continue
            operations.append(_parse_operation(raw, path, method, operation, shared_params))

    schemes = components.get("securitySchemes") or {}
    return ApiDocument(
        info=raw.get("info"),
        servers=raw.get("servers") or [],
        operations=operations,
        schemas=components.get("schemas") or {},
        security_schemes={name: deref(raw, scheme) for name, scheme in schemes.items()},
        security=raw.get("security"),
    )


def deref(raw: dict[str, Any], value: Any) -> Any:
    """Follow local ``#/components/...`` references other than schemas."""
    seen = set()
    while isinstance(value, dict) and isinstance(value.get("$ref"), str):
        ref = value["$ref"]
        if not ref.startswith("#/") or ref.startswith(SCHEMA_REF_PREFIX):
            return value
        if ref in seen:
            raise UnresolvedReferenceError(ref)
        seen.add(ref)
        value = _lookup_pointer(raw, ref)
    return value


def _lookup_pointer(raw: dict[str, Any], ref: str) -> Any:
    node: Any = raw
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        if not isinstance(node, dict) or part not in node:
            raise UnresolvedReferenceError(ref)
        node = node[part]
    return node


def _parse_operation(
    raw: dict[str, Any],
    path: str,
    method: str,
    operation: dict[str, Any],
    shared_params: list[dict],
) -> Operation:
    responses = operation.get("responses") or {}
    return Operation(
        method=method.upper(),
        path=path,
        summary=operation.get("summary"),
        description=operation.get("description"),
        operation_id=operation.get("operationId"),
        parameters=_parse_parameters(raw, shared_params, operation.get("parameters") or []),
        request_body=_parse_request_body(raw, operation.get("requestBody")),
        responses={code: _parse_response(raw, resp) for code, resp in responses.items()},
        security=operation.get("security"),
        tags=operation.get("tags") or [],
    )


def _parse_parameters(raw: dict[str, Any], shared: list[dict], own: list[dict]) -> list[Parameter]:
    """Merge path-level and operation-level parameters; the operation wins."""
    merged: dict[tuple[str, str], dict] = {}
    for p in [deref(raw, p) for p in shared] + [deref(raw, p) for p in own]:
        merged[(p.get("name", ""), p.get("in", "query"))] = p
    return [Parameter.model_validate(p) for p in merged.values()]


def _parse_request_body(raw: dict[str, Any], body: dict | None) -> dict | None:
    if not body:
        return None
    body = dict(deref(raw, body))
    body["content"] = _parse_content(raw, body.get("content"))
    return body


def _parse_response(raw: dict[str, Any], response: dict | None) -> dict:
    response = dict(deref(raw, response) or {})
    response["content"] = _parse_content(raw, response.get("content"))
    return response


def _parse_content(raw: dict[str, Any], content: dict | None) -> dict:
    result = {}
    for content_type, media in (content or {}).items():
        media = dict(media or {})
        examples = media.get("examples") or {}
        media["examples"] = {name: deref(raw, example) for name, example in examples.items()}
        result[content_type] = media
    return result
