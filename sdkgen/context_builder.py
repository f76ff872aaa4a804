"""Build the Jinja2 template context from a parsed OpenAPI document.

Sequences one generation run: resolve the model graph, extract the
endpoints in route order, prune the graph to what they reach, then render
declarations, methods, fixtures and tests as text for the templates.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .config import GeneratorConfig
from .emitter import model_classes, render_interface_method, render_method, render_types
from .endpoints import extract_endpoints
from .fixtures import build_mock_responses, render_mock_table, render_tests
from .loader import get_server_url, ordered_routes
from .pruning import prune_models
from .schema_parser import build_models

logger = logging.getLogger(__name__)


def build_context(
    spec: dict[str, Any],
    routes: Optional[list[str]] = None,
    config: Optional[GeneratorConfig] = None,
) -> dict[str, Any]:
    """Build the full template context from the OpenAPI spec.

    ``routes`` fixes the endpoint order; it defaults to the declaration
    order of the document's paths.

    Raises:
        SpecParseError: If the document declares no server.
    """
    config = config or GeneratorConfig()
    server_url = get_server_url(spec)
    if routes is None:
        routes = ordered_routes(spec)

    graph = build_models(spec)
    endpoints = extract_endpoints(spec, routes)
    pruned = prune_models(graph, endpoints)

    mock_responses = build_mock_responses(
        endpoints, config.mock_overrides, config.skip_routes
    )
    info = spec.get("info") or {}

    logger.info(
        "Generating %d endpoints and %d of %d models", len(endpoints), len(pruned), len(graph)
    )
    return {
        "title": info.get("title", "API"),
        "info": info,
        "server_url": server_url,
        "package_name": config.package_name,
        "api_key_env": config.api_key_env,
        "types": render_types(pruned),
        "model_classes": model_classes(pruned),
        "interface": [render_interface_method(e) for e in endpoints],
        "methods": [render_method(e, pruned) for e in endpoints],
        "tests": render_tests(endpoints, pruned, config.skip_routes),
        "mock_responses": mock_responses,
        "mock_table": render_mock_table(mock_responses),
        "endpoint_count": len(endpoints),
        "model_count": len(pruned),
    }
