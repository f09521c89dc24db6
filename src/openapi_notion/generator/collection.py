"""Merge every OpenAPI document into one YAML file.

The merged document is meant for API clients (Postman, Bruno, ...) rather
than for Notion: references are inlined so each path item stands alone.
"""

import copy
import logging
from pathlib import Path
from typing import Any

import yaml

from openapi_notion.errors import ParseValidationError
from openapi_notion.parser.detect import find_api_files
from openapi_notion.parser.openapi import HTTP_METHODS, SCHEMA_REF_PREFIX, deref, load_document
from openapi_notion.parser.resolver import SchemaResolver, ref_name

logger = logging.getLogger(__name__)

COLLECTION_SERVER = "{{base_url}}"


def generate_collection(folders: list[Path], out_path: Path) -> dict[str, Any]:
    """Merge the documents found in *folders* and write them to *out_path*."""
    logger.info("Generating collection")
    collection = create_collection(folders)
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(dump_yaml(collection), encoding="utf-8")
    logger.info("Collection written to %s", out_path)
    return collection


def create_collection(folders: list[Path]) -> dict[str, Any]:
    collection: dict[str, Any] = {
        "openapi": "3.1.0",
        "info": {
            "version": "1.0.0",
            "title": "Collection",
            "description": "Collection of all the OpenAPI specifications",
        },
        "servers": [{"url": COLLECTION_SERVER}],
        "paths": {},
        "components": {"securitySchemes": {}},
    }
    for folder in folders:
        for file_path in find_api_files(folder):
            merge_document(collection, file_path)
    return collection


def merge_document(collection: dict[str, Any], file_path: Path) -> None:
    """Add the paths and security schemes of *file_path* to *collection*.

    Later documents overwrite earlier ones on path or scheme name collisions.
    """
    result = load_document(file_path)
    if result.invalid:
        raise ParseValidationError(file_path, result.messages, fatal=True)
    if result.document is None or result.document.info is None:
        logger.warning("Skipping %s: does not have an info section", file_path.name)
        return

    raw = result.raw
    inliner = _Inliner(raw, SchemaResolver(result.document.schemas))
    servers = [s for s in raw.get("servers") or [] if s.get("url") != "/"]
    security = raw.get("security")

    for path, path_item in (raw.get("paths") or {}).items():
        item = copy.deepcopy(deref(raw, path_item) or {})
        if servers:
            item["servers"] = copy.deepcopy(servers)
        else:
            item.pop("servers", None)
        for method in HTTP_METHODS:
            operation = item.get(method)
            if isinstance(operation, dict) and operation.get("security") is None and security is not None:
                operation["security"] = copy.deepcopy(security)
        collection["paths"][path] = inliner.inline(item)

    schemes = (raw.get("components") or {}).get("securitySchemes") or {}
    collection["components"]["securitySchemes"].update(inliner.inline(schemes))


def dump_yaml(document: dict[str, Any]) -> str:
    """Serialize without a document start marker and with minimal quoting.

    PyYAML quotes strings that would otherwise load as numbers or booleans.
    """
    return yaml.safe_dump(document, sort_keys=False, allow_unicode=True, default_flow_style=False)


class _Inliner:
    """Replaces local references with copies of their targets."""

    def __init__(self, raw: dict[str, Any], resolver: SchemaResolver):
        self.raw = raw
        self.resolver = resolver

    def inline(self, value: Any, stack: tuple[str, ...] = ()) -> Any:
        if isinstance(value, list):
            return [self.inline(v, stack) for v in value]
        if not isinstance(value, dict):
            return value

        ref = value.get("$ref")
        if isinstance(ref, str) and ref.startswith("#/"):
            if ref in stack:
                return {"type": "object", "description": f"Recursive reference to {ref_name(ref)}"}
            if ref.startswith(SCHEMA_REF_PREFIX):
                target = self.resolver.resolve(ref).model_dump(by_alias=True, exclude_none=True, exclude_defaults=True)
            else:
                target = deref(self.raw, value)
            return self.inline(target, stack + (ref,))

        result = {}
        for key, item in value.items():
            if key == "responses" and isinstance(item, dict):
                item = {str(code): response for code, response in item.items()}
            result[key] = self.inline(item, stack)

        # improves compatibility with tools that only understand a single type
        types = result.get("type")
        if isinstance(types, list) and types:
            result["type"] = next((t for t in types if t != "null"), types[0])
        return result
