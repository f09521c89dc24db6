import shutil
from pathlib import Path

import pytest
import yaml

from openapi_notion.errors import ParseValidationError, UnresolvedReferenceError
from openapi_notion.generator.collection import (
    COLLECTION_SERVER,
    create_collection,
    dump_yaml,
    generate_collection,
    merge_document,
)

FIXTURES = Path(__file__).parent / "fixtures"


def _folder(tmp_path: Path, *fixtures: str) -> Path:
    folder = tmp_path / "api"
    folder.mkdir(exist_ok=True)
    for name in fixtures:
        shutil.copy(FIXTURES / name, folder / Path(name).name)
    return folder


def _empty() -> dict:
    return {"paths": {}, "components": {"securitySchemes": {}}}


class TestCreateCollection:
    def test_skeleton(self, tmp_path):
        collection = create_collection([_folder(tmp_path)])
        assert collection["openapi"] == "3.1.0"
        assert collection["info"]["title"] == "Collection"
        assert collection["servers"] == [{"url": COLLECTION_SERVER}]
        assert collection["paths"] == {}

    def test_merges_all_documents(self, tmp_path):
        folder = _folder(tmp_path, "petstore.yaml", "recursive.yaml")
        collection = create_collection([folder])
        assert list(collection["paths"]) == ["/pets", "/pets/{petId}", "/tree"]
        assert set(collection["components"]["securitySchemes"]) == {"api_key", "bearer"}

    def test_later_documents_win(self, tmp_path):
        folder = _folder(tmp_path, "petstore.yaml")
        (folder / "z_override.yaml").write_text(
            "openapi: 3.0.3\n"
            "info: {title: Override, version: '2'}\n"
            "paths:\n"
            "  /pets:\n"
            "    get:\n"
            "      summary: Overridden\n"
            "      responses: {}\n"
        )
        collection = create_collection([folder])
        assert collection["paths"]["/pets"]["get"]["summary"] == "Overridden"
        assert "post" not in collection["paths"]["/pets"]

    def test_document_without_info_is_skipped(self, tmp_path):
        folder = _folder(tmp_path, "no_info.yaml", "recursive.yaml")
        assert list(create_collection([folder])["paths"]) == ["/tree"]

    def test_invalid_document_aborts(self, tmp_path):
        folder = _folder(tmp_path, "invalid.yaml")
        with pytest.raises(ParseValidationError) as exc_info:
            create_collection([folder])
        assert exc_info.value.fatal is True


class TestMergeDocument:
    def test_references_are_inlined(self):
        collection = _empty()
        merge_document(collection, FIXTURES / "petstore.yaml")
        get = collection["paths"]["/pets/{petId}"]["get"]
        assert get["parameters"][0]["name"] == "petId"
        schema = get["responses"]["200"]["content"]["application/json"]["schema"]
        assert schema["required"] == ["id", "name"]
        assert schema["properties"]["owner"]["properties"]["address"]["properties"]["city"] == {"type": "string"}
        assert "$ref" not in dump_yaml(collection)

    def test_integer_status_codes_become_strings(self):
        collection = _empty()
        merge_document(collection, FIXTURES / "petstore.yaml")
        assert list(collection["paths"]["/pets"]["get"]["responses"]) == ["200", "default"]

    def test_servers_copied_to_path_items(self):
        collection = _empty()
        merge_document(collection, FIXTURES / "petstore.yaml")
        assert collection["paths"]["/pets"]["servers"] == [{"url": "https://petstore.example.com/v1"}]

    def test_root_server_is_dropped(self):
        collection = _empty()
        merge_document(collection, FIXTURES / "pet_store" / "pet_store.yaml")
        assert "servers" not in collection["paths"]["/pets"]

    def test_document_security_is_copied(self):
        collection = _empty()
        merge_document(collection, FIXTURES / "pet_store" / "pet_store.yaml")
        assert collection["paths"]["/pets"]["get"]["security"] == [{"api_key": []}]

    def test_operation_security_is_kept(self, tmp_path):
        path = tmp_path / "api.yaml"
        path.write_text(
            "openapi: 3.0.3\n"
            "info: {title: Secured}\n"
            "security: [{api_key: []}]\n"
            "paths:\n"
            "  /open:\n"
            "    get:\n"
            "      security: []\n"
            "      responses: {}\n"
        )
        collection = _empty()
        merge_document(collection, path)
        assert collection["paths"]["/open"]["get"]["security"] == []

    def test_recursive_schema_is_cut(self):
        collection = _empty()
        merge_document(collection, FIXTURES / "recursive.yaml")
        schema = collection["paths"]["/tree"]["get"]["responses"]["200"]["content"]["application/json"]["schema"]
        assert schema["properties"]["label"]["type"] == "string"
        assert schema["properties"]["parent"] == {"type": "object", "description": "Recursive reference to Node"}
        assert schema["properties"]["children"]["items"]["description"] == "Recursive reference to Node"

    def test_dangling_reference(self):
        with pytest.raises(UnresolvedReferenceError):
            merge_document(_empty(), FIXTURES / "dangling.yaml")


class TestGenerateCollection:
    def test_writes_yaml(self, tmp_path):
        folder = _folder(tmp_path, "petstore.yaml")
        out = tmp_path / "build" / "collection.yaml"
        generate_collection([folder], out)
        text = out.read_text(encoding="utf-8")
        assert not text.startswith("---")
        assert "url: '{{base_url}}'" in text
        loaded = yaml.safe_load(text)
        assert loaded["info"]["description"] == "Collection of all the OpenAPI specifications"
        assert list(loaded["paths"]) == ["/pets", "/pets/{petId}"]

    def test_ambiguous_scalars_stay_strings(self):
        text = dump_yaml({"version": "1.0", "code": "200", "flag": "yes"})
        assert yaml.safe_load(text) == {"version": "1.0", "code": "200", "flag": "yes"}
