from api_test_runner.models import Parameter, TestCase, VariableLayer, VariablePools
from api_test_runner.runner.variables import (
    format_query_value,
    query_default,
    random_token,
    resolve_body_variables,
    resolve_path_variables,
    resolve_query_parameters,
)


def _path_case():
    return TestCase(path="/users/{id}/posts/{postId}", method="GET", name="GET posts", path_variables=["id", "postId"])


def _body_case():
    return TestCase(path="/users", method="POST", name="POST /users", body_variables={"name": "string", "age": 0})


class TestResolvePathVariables:
    def test_override_beats_combination_and_shared(self):
        pools = VariablePools(path=VariableLayer(
            shared={"id": ["1", "2"]},
            overrides={"GET-/users/{id}/posts/{postId}": {"id": "42"}},
        ))
        resolved = resolve_path_variables(_path_case(), pools, combination={"id": "2"})
        assert resolved["id"] == "42"

    def test_combination_beats_shared(self):
        pools = VariablePools(path=VariableLayer(shared={"id": ["1", "2"]}))
        resolved = resolve_path_variables(_path_case(), pools, combination={"id": "2"})
        assert resolved["id"] == "2"

    def test_first_non_empty_shared(self):
        pools = VariablePools(path=VariableLayer(shared={"id": ["", "7", "8"]}))
        assert resolve_path_variables(_path_case(), pools)["id"] == "7"

    def test_empty_override_falls_through(self):
        pools = VariablePools(path=VariableLayer(
            shared={"id": "5"},
            overrides={"GET-/users/{id}/posts/{postId}": {"id": "  "}},
        ))
        assert resolve_path_variables(_path_case(), pools)["id"] == "5"

    def test_missing_value_stays_empty(self):
        resolved = resolve_path_variables(_path_case(), VariablePools())
        assert resolved == {"id": "", "postId": ""}

    def test_random_values_fill_empty(self):
        pools = VariablePools(path=VariableLayer(shared={"id": "1"}))
        resolved = resolve_path_variables(_path_case(), pools, use_random_values=True)
        assert resolved["id"] == "1"
        assert len(resolved["postId"]) == 8
        assert resolved["postId"].isalnum()

    def test_non_string_values_are_stringified(self):
        pools = VariablePools(path=VariableLayer(shared={"id": [3]}))
        assert resolve_path_variables(_path_case(), pools)["id"] == "3"


class TestResolveBodyVariables:
    def test_schema_default(self):
        assert resolve_body_variables(_body_case(), VariablePools()) == {"name": "string", "age": 0}

    def test_layers(self):
        pools = VariablePools(body=VariableLayer(
            shared={"name": ["alice", "bob"], "age": 30},
            overrides={"POST-/users": {"age": 99}},
        ))
        assert resolve_body_variables(_body_case(), pools) == {"name": "alice", "age": 99}
        assert resolve_body_variables(_body_case(), pools, {"name": "bob"}) == {"name": "bob", "age": 99}

    def test_list_value_must_be_wrapped(self):
        pools = VariablePools(body=VariableLayer(shared={"name": [["a", "b"]]}))
        assert resolve_body_variables(_body_case(), pools)["name"] == ["a", "b"]


class TestResolveQueryParameters:
    def _case(self, *params):
        return TestCase(path="/items", method="GET", name="GET /items", parameters=list(params))

    def test_defaults_from_example_and_schema(self):
        case = self._case(
            Parameter(name="limit", location="query", example=10),
            Parameter(name="page", location="query", schema={"type": "integer", "default": 1}),
            Parameter(name="sort", location="query", schema={"example": "name"}),
        )
        assert resolve_query_parameters(case, VariablePools()) == {"limit": "10", "page": "1", "sort": "name"}

    def test_optional_empty_omitted_required_kept(self):
        case = self._case(
            Parameter(name="q", location="query"),
            Parameter(name="token", location="query", required=True),
        )
        assert resolve_query_parameters(case, VariablePools()) == {"token": ""}

    def test_pools_and_explicit_values(self):
        case = self._case(Parameter(name="limit", location="query", example=10))
        pools = VariablePools(query=VariableLayer(shared={"limit": 5}))
        params = resolve_query_parameters(case, pools, {"extra": "x", "limit": "", "flag": True})
        assert params == {"limit": "5", "extra": "x", "flag": "true"}

    def test_non_query_parameters_ignored(self):
        case = self._case(Parameter(name="X-Trace", location="header", example="abc"))
        assert resolve_query_parameters(case, VariablePools()) == {}


class TestHelpers:
    def test_query_default_order(self):
        assert query_default(Parameter(name="a", location="query", example="e", schema={"default": "d"})) == "e"
        assert query_default(Parameter(name="a", location="query", schema={"example": "x", "default": "d"})) == "x"
        assert query_default(Parameter(name="a", location="query")) == ""

    def test_format_query_value(self):
        assert format_query_value(False) == "false"
        assert format_query_value([1, "b", True]) == "1,b,true"
        assert format_query_value({"a": 1}) == '{"a": 1}'
        assert format_query_value(2.5) == "2.5"

    def test_random_token(self):
        token = random_token()
        assert len(token) == 8 and token.isalnum()
        assert len(random_token(12)) == 12
