import json
from pathlib import Path

import pytest

from api_test_runner.errors import ParseError
from api_test_runner.parser.swagger import (
    expected_status,
    extract_body_variables,
    extract_path_variables,
    extract_test_cases,
    get_schema_info,
    parse_schema,
)

FIXTURES = Path(__file__).parent / "fixtures"


def _load(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


def _case(cases, method, path):
    return next(c for c in cases if c.method == method and c.path == path)


class TestParseSchema:
    def test_parse_openapi(self):
        doc = parse_schema(_load("petstore.json"))
        assert doc.version == "openapi"
        assert doc.spec_version == "3.0.3"
        assert doc.title == "Petstore"
        assert set(doc.schemas) == {"Pet", "NewPet", "PetUpdate", "Node"}

    def test_parse_swagger(self):
        doc = parse_schema(_load("swagger2.json"))
        assert doc.version == "swagger"
        assert doc.spec_version == "2.0"
        assert "User" in doc.schemas

    def test_components_win_over_definitions(self):
        text = json.dumps({
            "openapi": "3.0.0",
            "paths": {},
            "definitions": {"A": {"type": "string"}, "B": {"type": "boolean"}},
            "components": {"schemas": {"A": {"type": "integer"}}},
        })
        doc = parse_schema(text)
        assert doc.schemas["A"] == {"type": "integer"}
        assert doc.schemas["B"] == {"type": "boolean"}

    def test_invalid_json_raises(self):
        with pytest.raises(ParseError, match="Failed to parse OpenAPI schema"):
            parse_schema("{not json")

    def test_non_object_raises(self):
        with pytest.raises(ParseError):
            parse_schema("[1, 2]")


class TestSchemaInfo:
    def test_counts(self):
        info = get_schema_info(_load("petstore.json"))
        assert info.title == "Petstore"
        assert info.version == "1.0.0"
        assert info.description == "A sample pet store"
        assert info.path_count == 4
        # every key under a path object counts, path-level "parameters" included
        assert info.method_count == 8

    def test_defaults(self):
        info = get_schema_info("{}")
        assert info.title == "Unknown API"
        assert info.version == "Unknown"
        assert info.path_count == 0

    def test_invalid_json_raises(self):
        with pytest.raises(ParseError):
            get_schema_info("nope")


class TestExtractPathVariables:
    def test_order_and_dedup(self):
        assert extract_path_variables("/a/{x}/b/{y}/{x}") == ["x", "y"]

    def test_no_variables(self):
        assert extract_path_variables("/plain") == []


class TestExtractTestCases:
    def test_petstore_case_count(self):
        cases = extract_test_cases(parse_schema(_load("petstore.json")))
        assert len(cases) == 7
        assert all(c.method in ("GET", "POST", "PUT", "DELETE", "PATCH") for c in cases)

    def test_get_pets(self):
        cases = extract_test_cases(parse_schema(_load("petstore.json")))
        get_pets = _case(cases, "GET", "/pets")
        assert get_pets.name == "GET /pets"
        assert get_pets.description == "List all pets"
        assert get_pets.tags == ["pets"]
        assert get_pets.expected_status == 200
        limit = get_pets.parameters[0]
        assert limit.name == "limit"
        assert limit.location == "query"
        assert limit.param_type == "integer"
        assert limit.example == 10

    def test_post_body_variables_through_ref(self):
        cases = extract_test_cases(parse_schema(_load("petstore.json")))
        post = _case(cases, "POST", "/pets")
        assert post.expected_status == 201
        assert post.content_type == "application/json"
        assert post.body_variables == {"name": "doggie", "tag": "string"}
        assert post.request_body == {"$ref": "#/components/schemas/NewPet"}

    def test_path_level_parameters_are_merged(self):
        cases = extract_test_cases(parse_schema(_load("petstore.json")))
        get_pet = _case(cases, "GET", "/pets/{petId}")
        assert get_pet.path_variables == ["petId"]
        assert [p.name for p in get_pet.parameters] == ["petId"]
        assert get_pet.expected_status == 200

    def test_operation_parameter_overrides_path_level(self):
        cases = extract_test_cases(parse_schema(_load("petstore.json")))
        delete = _case(cases, "DELETE", "/pets/{petId}")
        assert len(delete.parameters) == 1
        assert delete.parameters[0].description == "Pet to delete"
        assert delete.expected_status == 204

    def test_generic_body_has_no_variables(self):
        cases = extract_test_cases(parse_schema(_load("petstore.json")))
        put = _case(cases, "PUT", "/pets/{petId}")
        assert put.body_variables == {}
        assert put.request_body["additionalProperties"] == {"type": "string"}
        assert put.description == "Update a pet with arbitrary fields"

    def test_description_fallback(self):
        cases = extract_test_cases(parse_schema(_load("petstore.json")))
        health = _case(cases, "GET", "/health")
        assert health.description == "Test GET /health"
        assert health.expected_status == 200

    def test_swagger_parameters_folded_into_schema(self):
        cases = extract_test_cases(parse_schema(_load("swagger2.json")))
        page = _case(cases, "GET", "/users").parameters[0]
        assert page.param_schema == {"type": "integer", "default": 1}
        assert page.param_type == "integer"

    def test_swagger_body_parameter(self):
        cases = extract_test_cases(parse_schema(_load("swagger2.json")))
        post = _case(cases, "POST", "/users")
        assert post.request_body == {"$ref": "#/definitions/User"}
        assert post.body_variables == {"id": 0, "name": "string", "email": "user@example.com"}
        assert post.parameters[0].location == "body"
        assert post.parameters[0].param_type == "object"

    def test_first_media_type_wins(self):
        text = json.dumps({
            "openapi": "3.0.0",
            "paths": {
                "/form": {
                    "post": {
                        "requestBody": {
                            "content": {
                                "application/x-www-form-urlencoded": {
                                    "schema": {"type": "object", "properties": {"a": {"type": "string"}}}
                                },
                                "application/json": {
                                    "schema": {"type": "object", "properties": {"b": {"type": "string"}}}
                                },
                            }
                        },
                        "responses": {"200": {}},
                    }
                }
            },
        })
        case = extract_test_cases(parse_schema(text))[0]
        assert case.content_type == "application/x-www-form-urlencoded"
        assert case.body_variables == {"a": "string"}

    def test_unsupported_methods_ignored(self):
        text = json.dumps({
            "openapi": "3.0.0",
            "paths": {"/a": {"head": {}, "options": {}, "get": {"responses": {}}}},
        })
        cases = extract_test_cases(parse_schema(text))
        assert [c.method for c in cases] == ["GET"]


class TestExtractBodyVariables:
    def test_unresolved_ref_yields_nothing(self):
        doc = parse_schema(_load("petstore.json"))
        assert extract_body_variables({"$ref": "#/components/schemas/Missing"}, doc) == {}

    def test_inline_properties(self):
        doc = parse_schema(_load("petstore.json"))
        schema = {"type": "object", "properties": {"flag": {"type": "boolean"}}}
        assert extract_body_variables(schema, doc) == {"flag": True}


class TestExpectedStatus:
    def test_first_2xx(self):
        assert expected_status({"400": {}, "201": {}, "200": {}}) == 201

    def test_first_declared_without_2xx(self):
        assert expected_status({"404": {}, "500": {}}) == 404

    def test_default_200(self):
        assert expected_status({}) == 200
        assert expected_status(None) == 200
        assert expected_status({"default": {}}) == 200


class TestLooselyTypedDocuments:
    def _cases(self, operation, path_item=None):
        item = dict(path_item or {})
        item["get"] = operation
        return extract_test_cases(parse_schema(json.dumps({"openapi": "3.1.0", "paths": {"/items": item}})))

    def test_type_array_parameter(self):
        case = self._cases({
            "parameters": [{"name": "q", "in": "query", "schema": {"type": ["string", "null"]}}],
            "responses": {"200": {}},
        })[0]
        assert case.parameters[0].param_type == "string"
        assert case.parameters[0].param_schema == {"type": ["string", "null"]}

    def test_null_tags(self):
        case = self._cases({"tags": None, "responses": {"200": {}}})[0]
        assert case.tags == []

    def test_mixed_tags_keep_strings(self):
        case = self._cases({"tags": ["a", 1, None, "b"]})[0]
        assert case.tags == ["a", "b"]

    def test_odd_parameter_values(self):
        case = self._cases({
            "summary": 42,
            "parameters": [
                {"name": 7, "in": None, "description": 3.5, "required": "yes"},
                "not a parameter",
            ],
        })[0]
        param = case.parameters[0]
        assert param.name == "7"
        assert param.location == "query"
        assert param.description == "3.5"
        assert param.required is False
        assert case.description == "42"

    def test_non_list_parameters_ignored(self):
        case = self._cases({"parameters": {"name": "q"}})[0]
        assert case.parameters == []


class TestNonStringInfo:
    DOC = json.dumps({"openapi": "3.0.0", "info": {"title": 2024, "version": 1, "description": 5}, "paths": {}})

    def test_schema_info(self):
        info = get_schema_info(self.DOC)
        assert info.title == "2024"
        assert info.version == "1"
        assert info.description == "5"

    def test_parse_schema(self):
        doc = parse_schema(self.DOC)
        assert doc.title == "2024"
        assert doc.info_version == "1"
        assert doc.description == "5"

    def test_missing_values_fall_back(self):
        info = get_schema_info(json.dumps({"info": {"title": None, "description": None}}))
        assert info.title == "Unknown API"
        assert info.description is None
