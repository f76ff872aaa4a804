"""Load and parse an OpenAPI document.

Reads a JSON or YAML document from disk or over http(s) and exposes
accessors for the parts the generator consumes: paths, component
schemas, component responses, servers.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx
import yaml

from .exceptions import SpecParseError
from .naming import type_name

logger = logging.getLogger(__name__)

SPEC_PATH = Path("spec") / "openapi.json"


def load_spec(source: str | Path | None = None) -> dict[str, Any]:
    """Load the OpenAPI document from a file path or an http(s) URL.

    Raises:
        SpecParseError: If the document cannot be read or parsed.
    """
    source = str(source or SPEC_PATH)
    if source.startswith(("http://", "https://")):
        try:
            response = httpx.get(source, timeout=30.0, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SpecParseError(
                f"HTTP {exc.response.status_code} fetching spec from {source}"
            ) from exc
        except httpx.RequestError as exc:
            raise SpecParseError(f"Failed to fetch spec from {source}: {exc}") from exc
        content = response.text
    else:
        try:
            content = Path(source).read_text(encoding="utf-8")
        except OSError as exc:
            raise SpecParseError(f"cannot read OpenAPI spec {source}: {exc}") from exc

    spec = parse_spec(content, hint=source)
    logger.debug("Loaded spec from %s", source)
    return spec


def parse_spec(content: str, hint: str = "") -> dict[str, Any]:
    """Parse document text as JSON, falling back to YAML.

    Key order of the document is preserved by both parsers, which is what
    :func:`ordered_routes` relies on.
    """
    if hint.endswith((".yaml", ".yml")):
        parsers = (_parse_yaml, _parse_json)
    else:
        parsers = (_parse_json, _parse_yaml)

    errors = []
    for parse in parsers:
        try:
            spec = parse(content)
        except ValueError as exc:
            errors.append(str(exc))
            continue
        if not isinstance(spec, dict):
            raise SpecParseError(f"cannot parse OpenAPI spec {hint}: top level is not an object")
        return spec

    raise SpecParseError(f"cannot parse OpenAPI spec {hint}: {'; '.join(errors)}")


def _parse_json(content: str) -> Any:
    return json.loads(content)


def _parse_yaml(content: str) -> Any:
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ValueError(f"invalid YAML: {exc}") from exc


def get_paths(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract paths from the document."""
    return spec.get("paths") or {}


def get_schemas(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract component schemas from the document."""
    return (spec.get("components") or {}).get("schemas") or {}


def get_responses(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract component responses from the document."""
    return (spec.get("components") or {}).get("responses") or {}


def get_server_url(spec: dict[str, Any]) -> str:
    """Return the first declared server URL.

    Raises:
        SpecParseError: If the document declares no server.
    """
    servers = spec.get("servers") or []
    if not servers or not servers[0].get("url"):
        raise SpecParseError("no server spec found")
    return servers[0]["url"]


def ordered_routes(spec: dict[str, Any]) -> list[str]:
    """Return the routes in the order they are declared in the document."""
    return list(get_paths(spec))


def model_name_from_ref(ref: str) -> str:
    """Return the type name a $ref points to: '#/components/schemas/Foo' -> 'Foo'."""
    return type_name(ref.split("/")[-1])


def resolve_ref(spec: dict[str, Any], ref: str) -> dict[str, Any]:
    """Resolve an in-document $ref pointer."""
    parts = ref.lstrip("#/").split("/")
    node = spec
    for part in parts:
        node = node[part]
    return node
