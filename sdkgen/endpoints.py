"""Extract the endpoint IR from the paths of an OpenAPI document.

One Endpoint per operation, in the order of the route list supplied by
the caller and then in a fixed method order, so the output does not
depend on how the parser stores the paths.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from .ir import ARRAY_MARKER, Endpoint, Field, Model, ModelGraph, array_prefix, base_type
from .loader import get_paths, model_name_from_ref, resolve_ref
from .naming import canonicalize_export, implementation_name
from .schema_parser import innermost_format, models_from_schema, resolve_schema_ref

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "post", "put", "patch", "delete")

# Success status codes, in priority order
_SUCCESS_CODES = ("200", "201")

SUFFIX_RESPONSE_OBJECT = "RespObj"
SUFFIX_REQUEST_OBJECT = "ReqObj"

_PLACEHOLDER = re.compile(r"{([^{}]+)}")


def route_placeholders(route: str) -> list[str]:
    """Return the {name} placeholders of a route template, in order."""
    return _PLACEHOLDER.findall(route)


def extract_endpoints(spec: dict[str, Any], routes: list[str]) -> list[Endpoint]:
    """Build the endpoint list for the given routes, in that order."""
    paths = get_paths(spec)
    endpoints: list[Endpoint] = []

    for route in routes:
        path_item = paths.get(route)
        if path_item is None:
            logger.warning("Route %s is not declared in the document, skipping", route)
            continue

        for method in HTTP_METHODS:
            if method not in path_item:
                continue
            endpoints.append(
                extract_endpoint(spec, route, method, path_item, path_item[method])
            )

    logger.debug("Extracted %d endpoints", len(endpoints))
    return endpoints


def _endpoint_name(route: str, method: str, operation: dict[str, Any]) -> str:
    operation_id = operation.get("operationId", "")
    if operation_id:
        return implementation_name(operation_id)
    name = canonicalize_export(f"{method} {route}")
    logger.warning("Operation %s %s has no operationId; using %s", method.upper(), route, name)
    return name


def extract_endpoint(
    spec: dict[str, Any],
    route: str,
    method: str,
    path_item: dict[str, Any],
    operation: dict[str, Any],
) -> Endpoint:
    """Build one Endpoint from an operation object."""
    endpoint = Endpoint(
        name=_endpoint_name(route, method, operation),
        method=method.upper(),
        route=route,
        description=operation.get("description", ""),
    )

    # path-level parameters first, then the operation's own; no de-duplication
    params = list(path_item.get("parameters") or [])
    params.extend(operation.get("parameters") or [])

    for param in extract_parameters(spec, params):
        if param.is_in_path:
            endpoint.path_params.append(param)
        elif param.is_in_query:
            endpoint.query_params.append(param)

    placeholders = route_placeholders(route)
    endpoint.path_params.sort(
        key=lambda p: placeholders.index(p.key) if p.key in placeholders else len(placeholders)
    )
    for name in placeholders:
        if name not in {p.key for p in endpoint.path_params}:
            logger.warning("Route %s has no parameter for placeholder {%s}", route, name)

    _extract_response(spec, endpoint, operation.get("responses") or {})
    _extract_request_body(spec, endpoint, operation.get("requestBody"))
    return endpoint


def extract_parameters(spec: dict[str, Any], params: list[dict[str, Any]]) -> list[Field]:
    """Convert parameter objects to fields, keeping their order."""
    fields = []
    for param in params:
        if "$ref" in param:
            param = resolve_ref(spec, param["$ref"])

        schema = param.get("schema") or {}
        location = param.get("in", "query")
        fields.append(
            Field(
                key=param["name"],
                v=_parameter_type(schema),
                format=innermost_format(schema),
                description=param.get("description", ""),
                required=location == "path" or bool(param.get("required", False)),
                is_in_path=location == "path",
                is_in_query=location == "query",
            )
        )
    return fields


def _parameter_type(schema: dict[str, Any]) -> str:
    if "$ref" in schema:
        return model_name_from_ref(schema["$ref"])
    if schema.get("type") == "array":
        return ARRAY_MARKER + _parameter_type(schema.get("items") or {})
    return schema.get("type", "")


def _synthesize(endpoint: Endpoint, schema: dict[str, Any], surrogate: str) -> Model:
    """Resolve a request/response schema, naming it ``surrogate`` if it is anonymous.

    Models built for anonymous schemas are recorded in ``endpoint.synthesized``.
    """
    ref = resolve_schema_ref(schema)
    if base_type(ref.name):
        return ref

    if ref.generated:
        endpoint.synthesized[surrogate] = Model(
            name=surrogate, children=set(ref.children), generated=True
        )
    else:
        # inline object or scalar: resolve it like a component schema of its own
        local: ModelGraph = {surrogate: Model(name=surrogate)}
        models_from_schema(local, surrogate, schema)
        for model in local.values():
            model.generated = True
        endpoint.synthesized.update(local)

    return Model(name=array_prefix(ref.name) + surrogate, children=ref.children, generated=True)


def _json_media(content: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    return (content or {}).get("application/json")


def _extract_response(spec: dict[str, Any], endpoint: Endpoint, responses: dict[str, Any]) -> None:
    for code in _SUCCESS_CODES:
        response = responses.get(code)
        if response is None:
            continue

        endpoint.status_code = code
        if "$ref" in response:
            endpoint.response_model = Model(name=model_name_from_ref(response["$ref"]))
            media = _json_media(resolve_ref(spec, response["$ref"]).get("content"))
            if media is not None:
                endpoint.example_response = _example(media)
            return

        media = _json_media(response.get("content"))
        if media is not None:
            endpoint.response_model = _synthesize(
                endpoint, media.get("schema") or {}, endpoint.name + SUFFIX_RESPONSE_OBJECT
            )
            endpoint.example_response = _example(media)
        return


def _example(media: dict[str, Any]) -> Any:
    if media.get("example") is not None:
        return media["example"]
    return (media.get("schema") or {}).get("example")


def _extract_request_body(
    spec: dict[str, Any], endpoint: Endpoint, body: Optional[dict[str, Any]]
) -> None:
    if body is None:
        return

    if "$ref" in body:
        body = resolve_ref(spec, body["$ref"])

    media = _json_media(body.get("content"))
    if media is not None:
        endpoint.request_model = _synthesize(
            endpoint, media.get("schema") or {}, endpoint.name + SUFFIX_REQUEST_OBJECT
        )
    endpoint.request_required = bool(body.get("required", False))
