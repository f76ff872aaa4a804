"""Tests for the fixtures module."""

import ast
import datetime

import pytest

from sdkgen.endpoints import extract_endpoints
from sdkgen.fixtures import (
    build_mock_responses,
    canonical_json,
    dummy_value,
    render_call,
    render_mock_table,
    render_test,
    render_tests,
)
from sdkgen.ir import Field, MockResponse
from sdkgen.loader import ordered_routes
from sdkgen.pruning import prune_models
from sdkgen.schema_parser import build_models


def _pipeline(spec):
    endpoints = extract_endpoints(spec, ordered_routes(spec))
    return prune_models(build_models(spec), endpoints), endpoints


def _by_name(endpoints):
    return {e.name: e for e in endpoints}


class TestCanonicalJson:
    """Test fixture content serialization."""

    def test_sorted_compact(self):
        assert canonical_json({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'

    def test_null(self):
        assert canonical_json(None) == "null"

    def test_yaml_timestamps(self):
        value = {"at": datetime.datetime(2022, 11, 30, 19, 9, 48)}
        assert canonical_json(value) == '{"at":"2022-11-30T19:09:48Z"}'

    def test_non_ascii_kept(self):
        assert canonical_json({"name": "café"}) == '{"name":"café"}'


class TestBuildMockResponses:
    """Test the route -> method -> response table."""

    def test_keys(self, spec):
        _, endpoints = _pipeline(spec)
        table = build_mock_responses(endpoints)
        assert set(table) == set(ordered_routes(spec))
        assert set(table["/projects"]) == {"GET", "POST"}

    def test_example_content(self, spec):
        _, endpoints = _pipeline(spec)
        response = build_mock_responses(endpoints)["/projects"]["GET"]
        assert response.code == 200
        assert response.content == (
            '{"projects":[{"created_at":"2022-11-30T19:09:48Z",'
            '"id":"shiny-wind-028834","name":"main","state":"ready"}]}'
        )

    def test_created_code(self, spec):
        _, endpoints = _pipeline(spec)
        assert build_mock_responses(endpoints)["/projects"]["POST"].code == 201

    def test_no_example(self, spec):
        _, endpoints = _pipeline(spec)
        route = "/projects/{project_id}/branches/{branch_id}"
        assert build_mock_responses(endpoints)[route]["DELETE"] == MockResponse(200, "null")

    def test_override_wins(self, spec):
        _, endpoints = _pipeline(spec)
        overrides = {"/projects": {"GET": MockResponse(200, '{"projects":[]}')}}
        table = build_mock_responses(endpoints, overrides)
        assert table["/projects"]["GET"].content == '{"projects":[]}'
        assert table["/projects"]["POST"].code == 201

    def test_skip_routes(self, spec):
        _, endpoints = _pipeline(spec)
        table = build_mock_responses(endpoints, skip_routes=frozenset({"/projects"}))
        assert "/projects" not in table

    def test_table_literal(self, spec):
        _, endpoints = _pipeline(spec)
        table = build_mock_responses(endpoints)
        source = render_mock_table(table)
        tree = ast.parse(source)
        assert isinstance(tree.body[0], ast.AnnAssign)
        assert "code=201," in source


class TestDummyValues:
    """Test placeholder arguments of the generated tests."""

    @pytest.mark.parametrize(
        ("field", "expected"),
        [
            (Field(key="a", v="string"), '"foo"'),
            (Field(key="a", v="ProjectState"), '"foo"'),
            (Field(key="a", v="integer", format="int64"), "1"),
            (Field(key="a", v="number"), "1"),
            (Field(key="a", v="boolean"), "True"),
            (Field(key="a", v="string", format="date-time"), "datetime.datetime(1, 1, 1)"),
            (Field(key="a", v="string", format="date"), "datetime.date(1, 1, 1)"),
            (Field(key="a", v="[]integer"), "[1]"),
            (Field(key="a", v="[][]string"), '[["foo"]]'),
        ],
    )
    def test_dummy(self, field, expected):
        assert dummy_value(field) == expected


class TestRenderTests:
    """Test the generated pytest blocks."""

    def test_call_with_path_and_query(self, spec):
        graph, endpoints = _pipeline(spec)
        call = render_call(_by_name(endpoints)["ListProjectOperations"], graph)
        assert call == 'client.list_project_operations("foo", since=datetime.datetime(1, 1, 1))'

    def test_call_with_required_body(self, spec):
        graph, endpoints = _pipeline(spec)
        call = render_call(_by_name(endpoints)["CreateProject"], graph)
        assert call == "client.create_project(cfg=models.ProjectCreateRequest.model_construct())"

    def test_call_with_optional_query(self, spec):
        graph, endpoints = _pipeline(spec)
        call = render_call(_by_name(endpoints)["ListProjects"], graph)
        assert call == 'client.list_projects(cursor="foo", limit=1)'

    def test_happy_and_unhappy(self, spec):
        graph, endpoints = _pipeline(spec)
        source = render_test(_by_name(endpoints)["ListProjects"], graph)
        ast.parse(source)
        assert "def test_client_list_projects(api_key, want, want_err):" in source
        assert 'id="happy path"' in source
        assert 'id="unhappy path"' in source
        assert '"invalidApiKey",' in source
        assert 'decode(models.ProjectsResponse, ENDPOINT_RESPONSE_EXAMPLES["/projects"]["GET"].content)' in source
        assert "models.ProjectsResponse.model_construct()," in source

    def test_no_response_expects_none(self, spec):
        graph, endpoints = _pipeline(spec)
        source = render_test(_by_name(endpoints)["DeleteProjectBranch"], graph)
        assert "decode(" not in source
        assert source.count("            None,") == 2

    def test_skipped_routes(self, spec):
        graph, endpoints = _pipeline(spec)
        tests = render_tests(endpoints, graph, frozenset({"/projects"}))
        assert len(tests) == 3
