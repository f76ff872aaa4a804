"""Derive canonical identifiers from OpenAPI document text.

Pattern: lowerCamelCase for values, UpperCamelCase for exported types,
with the acronyms id/uri/url rendered fully upper-cased.

Examples:
  project_id          -> projectID
  api_key_id          -> apiKeyID
  connection_uri      -> connectionURI   (export: ConnectionURI)
  connection_uris     -> connectionUris  (export: ConnectionUris)
  project_ids         -> projectIDs
  QUERY PLAN          -> queryPlan       (export: QueryPlan)
  pg-settings.max     -> pgSettingsMax
  projectID           -> projectID       (already canonical)
"""

from __future__ import annotations

import keyword
import re

from .exceptions import NamingError

# Tokens rendered as acronyms. Only the plural of "id" is an acronym plural;
# "uris" and "urls" stay regular words.
_ACRONYMS: dict[str, str] = {
    "id": "ID",
    "ids": "IDs",
    "uri": "URI",
    "url": "URL",
}


def _camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()


def _tokens(text: str) -> list[str]:
    """Split document text into lower-case word tokens."""
    # "IDs" is one token; any other acronym run ends before a capitalized word
    name = re.sub(r"IDs(?![a-z])", "_ids_", text)
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name)
    name = re.sub(r"[\-. ]", "_", name)
    name = re.sub(r"[^A-Za-z0-9_]", "", name)
    return [t for t in name.lower().split("_") if t]


def canonicalize(text: str) -> str:
    """Return the lowerCamelCase identifier for a piece of document text.

    Raises:
        NamingError: If the text has no identifier characters at all.
    """
    tokens = _tokens(text)
    if not tokens:
        raise NamingError(f"cannot derive an identifier from {text!r}")

    parts = []
    for i, token in enumerate(tokens):
        if token in _ACRONYMS:
            parts.append(_ACRONYMS[token])
        elif i > 0:
            parts.append(token[:1].upper() + token[1:])
        else:
            parts.append(token)
    return "".join(parts)


def canonicalize_export(text: str) -> str:
    """Return the UpperCamelCase identifier for a piece of document text."""
    name = canonicalize(text)
    return name[:1].upper() + name[1:]


def implementation_name(operation_id: str) -> str:
    """Build an endpoint name from its operationId by upper-casing the first character."""
    return operation_id[:1].upper() + operation_id[1:]


def snake_case(name: str) -> str:
    """Convert an endpoint name to a Python method name."""
    return _camel_to_snake(name)


def safe_identifier(name: str) -> str:
    """Make a canonical name usable as a Python identifier."""
    if name[:1].isdigit():
        name = "n" + name
    if keyword.iskeyword(name):
        name += "_"
    return name


def type_name(component: str) -> str:
    """Python type name for a component key such as ``v1.Project`` or ``pg-settings``.

    Keys that are already usable identifiers are kept as they are.
    """
    if not component or (component.isidentifier() and not keyword.iskeyword(component)):
        return component
    try:
        return safe_identifier(canonicalize_export(component))
    except NamingError:
        return "T" + re.sub(r"\W", "_", component)
