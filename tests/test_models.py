from openapi_notion.parser.base import (
    ApiDocument,
    ApiInfo,
    Operation,
    Parameter,
    SchemaNode,
    security_names,
)


class TestSchemaNode:
    def test_ref_alias(self):
        node = SchemaNode.model_validate({"$ref": "#/components/schemas/Pet"})
        assert node.ref == "#/components/schemas/Pet"

    def test_nested_properties(self):
        node = SchemaNode.model_validate({
            "type": "object",
            "required": ["id"],
            "properties": {
                "id": {"type": "integer"},
                "tags": {"type": "array", "items": {"type": "string"}},
            },
        })
        assert node.required == ["id"]
        assert node.properties["tags"].items.type == "string"

    def test_boolean_required_is_ignored(self):
        node = SchemaNode.model_validate({"type": "string", "required": True})
        assert node.required == []

    def test_type_token_skips_null(self):
        node = SchemaNode.model_validate({"type": ["null", "string"]})
        assert node.type_token == "string"

    def test_type_token_missing(self):
        assert SchemaNode().type_token == ""

    def test_additional_properties_schema_or_bool(self):
        as_schema = SchemaNode.model_validate({"additionalProperties": {"type": "integer"}})
        as_bool = SchemaNode.model_validate({"additionalProperties": False})
        assert as_schema.additional_properties.type == "integer"
        assert as_bool.additional_properties is False

    def test_unknown_keywords_are_kept(self):
        node = SchemaNode.model_validate({"type": "string", "format": "uuid"})
        assert node.model_dump(by_alias=True, exclude_none=True)["format"] == "uuid"


class TestOperation:
    def test_integer_status_codes_become_strings(self):
        op = Operation(method="GET", path="/pets", responses={200: {"description": "ok"}})
        assert list(op.responses) == ["200"]

    def test_parameter_aliases(self):
        p = Parameter.model_validate({"name": "petId", "in": "path", "required": True, "schema": {"type": "string"}})
        assert p.location == "path"
        assert p.schema_.type == "string"
        assert p.description == ""


class TestApiInfo:
    def test_rendering_flags_default(self):
        info = ApiInfo(title="Pets")
        assert info.flatten is False
        assert info.show_header is True

    def test_rendering_flags_from_extensions(self):
        info = ApiInfo.model_validate({"title": "Pets", "x-notion-flatten": True, "x-notion-header": False})
        assert info.flatten is True
        assert info.show_header is False

    def test_numeric_version_is_stringified(self):
        assert ApiInfo.model_validate({"version": 1.0}).version == "1.0"


class TestApiDocument:
    def test_operation_security_falls_back_to_document(self):
        doc = ApiDocument(security=[{"api_key": []}])
        assert doc.operation_security(Operation(method="GET", path="/")) == [{"api_key": []}]

    def test_operation_security_override(self):
        doc = ApiDocument(security=[{"api_key": []}])
        op = Operation(method="GET", path="/", security=[])
        assert doc.operation_security(op) == []

    def test_security_names(self):
        assert security_names([{"a": []}, {"b": ["read"], "c": []}]) == ["a", "b", "c"]
        assert security_names(None) == []
