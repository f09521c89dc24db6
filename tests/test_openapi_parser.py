from pathlib import Path

import pytest

from openapi_notion.errors import UnresolvedReferenceError
from openapi_notion.parser.openapi import INVALID_CONTENT_MARKER, deref, load_document, parse_document

FIXTURES = Path(__file__).parent / "fixtures"


class TestLoadDocument:
    def test_parse_operations(self):
        result = load_document(FIXTURES / "petstore.yaml")
        assert not result.invalid
        ops = result.document.operations
        assert [(op.method, op.path) for op in ops] == [
            ("GET", "/pets"),
            ("POST", "/pets"),
            ("GET", "/pets/{petId}"),
        ]

    def test_parse_info(self):
        doc = load_document(FIXTURES / "petstore.yaml").document
        assert doc.info.title == "Swagger Petstore"
        assert doc.info.version == "1.0.0"
        assert doc.servers[0].url == "https://petstore.example.com/v1"

    def test_parameter_reference_is_resolved(self):
        doc = load_document(FIXTURES / "petstore.yaml").document
        param = doc.operations[2].parameters[0]
        assert param.name == "petId"
        assert param.location == "path"
        assert param.required is True

    def test_schema_references_are_kept(self):
        doc = load_document(FIXTURES / "petstore.yaml").document
        body = doc.operations[1].request_body
        assert body.required is True
        assert body.content["application/json"].schema_.ref == "#/components/schemas/NewPet"

    def test_unquoted_status_code(self):
        doc = load_document(FIXTURES / "petstore.yaml").document
        assert list(doc.operations[0].responses) == ["200", "default"]

    def test_named_examples(self):
        doc = load_document(FIXTURES / "petstore.yaml").document
        examples = doc.operations[2].responses["200"].content["application/json"].examples
        assert examples["fido"].summary == "A dog"
        assert examples["fido"].value == {"id": 1, "name": "Fido"}

    def test_security(self):
        doc = load_document(FIXTURES / "petstore.yaml").document
        assert doc.operations[0].security is None
        assert doc.operations[1].security == [{"api_key": []}]
        assert doc.security_schemes["bearer"].scheme == "bearer"
        assert doc.security_schemes["api_key"].location == "header"

    def test_schemas_in_declaration_order(self):
        doc = load_document(FIXTURES / "petstore.yaml").document
        assert list(doc.schemas) == ["Pet", "Owner", "NewPet", "Pets", "Error", "Labels"]

    def test_invalid_yaml(self):
        result = load_document(FIXTURES / "invalid.yaml")
        assert result.invalid
        assert result.document is None
        assert result.messages[0].startswith(INVALID_CONTENT_MARKER)

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        assert load_document(path).invalid

    def test_missing_info_is_not_invalid(self):
        result = load_document(FIXTURES / "no_info.yaml")
        assert not result.invalid
        assert result.document.info is None


class TestParseDocument:
    def test_path_level_parameters_are_merged(self):
        raw = {
            "paths": {
                "/pets/{id}": {
                    "parameters": [
                        {"name": "id", "in": "path", "required": True, "description": "shared"},
                        {"name": "trace", "in": "header"},
                    ],
                    "get": {
                        "parameters": [{"name": "id", "in": "path", "required": True, "description": "own"}],
                        "responses": {},
                    },
                }
            }
        }
        op = parse_document(raw).operations[0]
        assert [(p.name, p.description) for p in op.parameters] == [("id", "own"), ("trace", "")]

    def test_non_operation_keys_are_skipped(self):
        raw = {"paths": {"/a": {"summary": "A", "servers": [], "delete": {"responses": {}}}}}
        ops = parse_document(raw).operations
        assert [op.method for op in ops] == ["DELETE"]

    def test_response_reference(self):
        raw = {
            "paths": {"/a": {"get": {"responses": {"404": {"$ref": "#/components/responses/NotFound"}}}}},
            "components": {"responses": {"NotFound": {"description": "Not found"}}},
        }
        op = parse_document(raw).operations[0]
        assert op.responses["404"].description == "Not found"


class TestDeref:
    RAW = {
        "components": {
            "parameters": {"A": {"$ref": "#/components/parameters/B"}, "B": {"name": "b"}},
            "responses": {"Loop": {"$ref": "#/components/responses/Loop"}},
        }
    }

    def test_follows_chain(self):
        assert deref(self.RAW, {"$ref": "#/components/parameters/A"}) == {"name": "b"}

    def test_schema_refs_untouched(self):
        value = {"$ref": "#/components/schemas/Pet"}
        assert deref(self.RAW, value) is value

    def test_missing_target(self):
        with pytest.raises(UnresolvedReferenceError):
            deref(self.RAW, {"$ref": "#/components/parameters/Nope"})

    def test_reference_loop(self):
        with pytest.raises(UnresolvedReferenceError):
            deref(self.RAW, {"$ref": "#/components/responses/Loop"})
