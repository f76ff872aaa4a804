"""Mock transport fixtures and example-driven tests for the generated client."""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any, Optional

from .emitter import (
    INDENT,
    method_name,
    parameter_names,
    py_literal,
    py_type,
    response_sentinel,
)
from .ir import Endpoint, Field, MockResponse, ModelGraph, element_type, is_array_type

logger = logging.getLogger(__name__)

DEFAULT_STATUS_CODE = 200

HAPPY_API_KEY = "foo"
UNHAPPY_API_KEY = "invalidApiKey"

MockTable = dict[str, dict[str, MockResponse]]


def _json_default(value: Any) -> str:
    # YAML documents parse unquoted timestamps into datetime objects
    if isinstance(value, datetime.datetime) and value.tzinfo is None:
        return value.isoformat() + "Z"
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat().replace("+00:00", "Z")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def canonical_json(value: Any) -> str:
    """Serialize a value with sorted keys and compact separators."""
    return json.dumps(
        value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=_json_default
    )


def is_skipped(endpoint: Endpoint, skip_routes: frozenset[str]) -> bool:
    return endpoint.route in skip_routes


def mock_response(endpoint: Endpoint) -> MockResponse:
    """Canned response of an endpoint built from its captured example."""
    code = int(endpoint.status_code) if endpoint.status_code else DEFAULT_STATUS_CODE
    return MockResponse(code=code, content=canonical_json(endpoint.example_response))


def build_mock_responses(
    endpoints: list[Endpoint],
    overrides: Optional[MockTable] = None,
    skip_routes: frozenset[str] = frozenset(),
) -> MockTable:
    """Fixture table keyed by route then method; override entries win."""
    table: MockTable = {}
    for endpoint in endpoints:
        if is_skipped(endpoint, skip_routes):
            logger.debug("Skipping fixtures of %s %s", endpoint.method, endpoint.route)
            continue
        table.setdefault(endpoint.route, {})[endpoint.method] = mock_response(endpoint)

    for route, responses in (overrides or {}).items():
        for method, response in responses.items():
            if route not in table or method not in table[route]:
                logger.warning("Mock override for %s %s matches no endpoint", method, route)
            table.setdefault(route, {})[method] = response
    return table


def render_mock_table(table: MockTable) -> str:
    """Python literal of the fixture table, for the generated mock module."""
    lines = ["ENDPOINT_RESPONSE_EXAMPLES: dict[str, dict[str, MockResponse]] = {"]
    for route, responses in table.items():
        lines.append(f"{INDENT}{py_literal(route)}: {{")
        for method, response in responses.items():
            lines.append(f"{INDENT * 2}{py_literal(method)}: MockResponse(")
            lines.append(f"{INDENT * 3}code={response.code},")
            lines.append(f"{INDENT * 3}content={py_literal(response.content)},")
            lines.append(f"{INDENT * 2}),")
        lines.append(f"{INDENT}}},")
    lines.append("}")
    return "\n".join(lines)


def dummy_value(field: Field) -> str:
    """Placeholder argument for a parameter in a generated test."""
    if is_array_type(field.v):
        element = Field(key=field.key, v=element_type(field.v), format=field.format)
        return f"[{dummy_value(element)}]"
    if field.format == "date-time":
        return "datetime.datetime(1, 1, 1)"
    if field.format == "date":
        return "datetime.date(1, 1, 1)"
    if field.v in ("integer", "number") or field.format in ("int32", "int64", "double", "float"):
        return "1"
    if field.v == "boolean":
        return "True"
    return py_literal("foo")


def _body_dummy(endpoint: Endpoint, graph: ModelGraph) -> str:
    if not endpoint.request_required:
        return "None"
    name = endpoint.request_model.name
    if is_array_type(name):
        return "[]"
    model = graph.get(name)
    if model is not None and model.is_class:
        return f"models.{name}.model_construct()"
    if model is not None and model.primitive is not None:
        return dummy_value(Field(key=name, v=model.primitive.type, format=model.primitive.format))
    return "{}"


def render_call(endpoint: Endpoint, graph: ModelGraph) -> str:
    """Call expression of the endpoint method with dummy arguments."""
    names = parameter_names(endpoint)
    args = [dummy_value(p) for p in endpoint.path_params]
    path_count = len(endpoint.path_params)
    args.extend(
        f"{name}={dummy_value(p)}"
        for p, name in zip(endpoint.query_params, names[path_count:])
    )
    if endpoint.request_model is not None:
        args.append(f"cfg={_body_dummy(endpoint, graph)}")
    return f"client.{method_name(endpoint)}({', '.join(args)})"


def render_test(endpoint: Endpoint, graph: ModelGraph) -> str:
    """Parametrized test of one endpoint against the mock transport."""
    if endpoint.response_model is None:
        want = "None"
    else:
        fixture = (
            f"ENDPOINT_RESPONSE_EXAMPLES[{py_literal(endpoint.route)}]"
            f"[{py_literal(endpoint.method)}].content"
        )
        want = f"decode({py_type(endpoint.response_model.name, qualifier='models.')}, {fixture})"
    sentinel = response_sentinel(endpoint, graph)
    call = render_call(endpoint, graph)

    return "\n".join([
        "@pytest.mark.parametrize(",
        f'{INDENT}("api_key", "want", "want_err"),',
        f"{INDENT}[",
        f"{INDENT * 2}pytest.param(",
        f"{INDENT * 3}{py_literal(HAPPY_API_KEY)},",
        f"{INDENT * 3}{want},",
        f"{INDENT * 3}False,",
        f'{INDENT * 3}id="happy path",',
        f"{INDENT * 2}),",
        f"{INDENT * 2}pytest.param(",
        f"{INDENT * 3}{py_literal(UNHAPPY_API_KEY)},",
        f"{INDENT * 3}{sentinel},",
        f"{INDENT * 3}True,",
        f'{INDENT * 3}id="unhappy path",',
        f"{INDENT * 2}),",
        f"{INDENT}],",
        ")",
        f"def test_client_{method_name(endpoint).rstrip('_')}(api_key, want, want_err):",
        f"{INDENT}client = new_client(api_key)",
        f"{INDENT}if want_err:",
        f"{INDENT * 2}with pytest.raises(Error) as excinfo:",
        f"{INDENT * 3}{call}",
        f"{INDENT * 2}assert excinfo.value.result == want",
        f"{INDENT}else:",
        f"{INDENT * 2}assert {call} == want",
    ])


def render_tests(
    endpoints: list[Endpoint], graph: ModelGraph, skip_routes: frozenset[str] = frozenset()
) -> list[str]:
    """One test block per endpoint that is not on the deny-list."""
    return [render_test(e, graph) for e in endpoints if not is_skipped(e, skip_routes)]
