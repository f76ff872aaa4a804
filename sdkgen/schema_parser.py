"""Build the model graph from the component schemas of an OpenAPI document.

Handles:
- primitive aliases and enums of literals
- objects: one field per property, required list
- bare $ref properties (recorded as a field and as a composed child)
- nested anonymous objects, hoisted into <Parent><Property> models
- allOf composition (struct embedding)
- arrays, nested arrays, arrays of anonymous compositions
"""

from __future__ import annotations

import logging
from typing import Any

from .exceptions import NamingError
from .ir import ARRAY_MARKER, SHAPE_COMPOSITION, Field, Model, ModelGraph, Primitive, array_prefix
from .loader import get_responses, get_schemas, model_name_from_ref
from .naming import canonicalize_export, type_name

logger = logging.getLogger(__name__)

_PRIMITIVE_TYPES = {"string", "integer", "number", "boolean"}


def resolve_schema_ref(schema: dict[str, Any]) -> Model:
    """Resolve a property, response, or request schema to a type reference.

    Returns a model whose name is the referenced type, wrapped in one array
    marker per level of array nesting. A composition without a name of its
    own comes back as a ``generated`` model with a blank (or marker-only)
    name; the caller assigns its surrogate name.
    """
    if "$ref" in schema:
        return Model(name=model_name_from_ref(schema["$ref"]))

    if schema.get("type") == "array":
        items = schema.get("items") or {}
        if "$ref" in items:
            return Model(name=ARRAY_MARKER + model_name_from_ref(items["$ref"]))
        if items.get("type") == "array" or items.get("allOf"):
            inner = resolve_schema_ref(items)
            return Model(
                name=ARRAY_MARKER + inner.name,
                children=inner.children,
                generated=inner.generated,
            )
        return Model(name=ARRAY_MARKER + (items.get("type") or "object"))

    if schema.get("allOf"):
        return Model(children=_composed_children(schema["allOf"]), generated=True)

    return Model()


def innermost_format(schema: dict[str, Any]) -> str:
    """Return the format of the innermost item of a (possibly nested) array schema."""
    while schema.get("type") == "array":
        schema = schema.get("items") or {}
    return schema.get("format", "")


def _composed_children(members: list[dict[str, Any]]) -> set[str]:
    children = set()
    for member in members:
        name = model_name_from_ref(member.get("$ref", ""))
        if not name:
            logger.warning("Skipping allOf member without a reference: %r", member)
            continue
        children.add(name)
    return children


def build_models(spec: dict[str, Any]) -> ModelGraph:
    """Build the full model graph from components.responses and components.schemas."""
    graph: ModelGraph = {}

    for key, response in sorted(get_responses(spec).items()):
        name = _component_name(graph, key, "response")
        _add(graph, name)
        content = (response.get("content") or {}).get("application/json") or {}
        if "schema" in content:
            models_from_schema(graph, name, content["schema"])
        if response.get("description") and not graph[name].description:
            graph[name].description = response["description"]

    for key, schema in sorted(get_schemas(spec).items()):
        name = _component_name(graph, key, "schema")
        _add(graph, name)
        models_from_schema(graph, name, schema)

    _alias_scalar_references(graph)
    logger.debug("Resolved %d models", len(graph))
    return graph


def _alias_scalar_references(graph: ModelGraph) -> None:
    """Turn a reference to a single non-class model into an alias of it."""
    changed = True
    while changed:
        changed = False
        for name in sorted(graph):
            model = graph[name]
            if model.shape != SHAPE_COMPOSITION or len(model.children) != 1:
                continue
            (child,) = model.children
            if child == name or child not in graph or graph[child].is_class:
                continue
            logger.debug("Model %s is an alias of %s", name, child)
            model.primitive = Primitive(type=child)
            model.children.clear()
            changed = True


def _component_name(graph: ModelGraph, key: str, kind: str) -> str:
    name = type_name(key)
    if name != key:
        logger.debug("Component %s %r is declared as %s", kind, key, name)
        if name in graph:
            logger.warning("Component %s %r collides with %s; merging them", kind, key, name)
    return name


def _add(graph: ModelGraph, name: str) -> Model:
    if name not in graph:
        graph[name] = Model(name=name)
    return graph[name]


def models_from_schema(graph: ModelGraph, name: str, schema: dict[str, Any]) -> None:
    """Populate model ``name`` from its schema, adding hoisted models to the graph."""
    model = graph[name]
    if "$ref" in schema:
        child = model_name_from_ref(schema["$ref"])
        if not child:
            logger.warning("Model %s has a blank reference", name)
        model.children.add(child)
        return

    model.description = schema.get("description", "")
    schema_type = schema.get("type", "")

    if schema_type == "object" or (not schema_type and "properties" in schema):
        _add_object(graph, model, schema)
    elif not schema_type and schema.get("allOf"):
        _add_composition(graph, model, schema["allOf"])
    elif schema_type == "array":
        _add_array_alias(graph, model, schema)
    elif schema_type in _PRIMITIVE_TYPES:
        model.primitive = Primitive(type=schema_type, format=schema.get("format", ""))
        if "enum" in schema:
            model.is_enum = True
            model.children.update(str(v) for v in schema["enum"] if v is not None)
    # anything else stays an empty model and renders as an untyped map


def _add_composition(graph: ModelGraph, model: Model, members: list[dict[str, Any]]) -> None:
    for i, member in enumerate(members):
        if "$ref" in member:
            model.children.add(model_name_from_ref(member["$ref"]))
            continue
        # inline member: hoist it so the composition keeps embedding only named types
        hoisted = f"{model.name}AllOf{i}"
        _add(graph, hoisted).generated = True
        models_from_schema(graph, hoisted, member)
        model.children.add(hoisted)


def _add_array_alias(graph: ModelGraph, model: Model, schema: dict[str, Any]) -> None:
    ref = resolve_schema_ref(schema)
    type_name = ref.name
    if ref.generated:
        item = f"{model.name}Item"
        hoisted = _add(graph, item)
        hoisted.children.update(ref.children)
        hoisted.generated = True
        type_name = array_prefix(ref.name) + item
    model.primitive = Primitive(type=type_name, format=innermost_format(schema))


def _add_object(graph: ModelGraph, model: Model, schema: dict[str, Any]) -> None:
    properties = schema.get("properties") or {}
    for prop_name in sorted(properties):
        prop = properties[prop_name] or {}
        model.fields[prop_name] = _field_from_property(graph, model, prop_name, prop)

    for key in schema.get("required") or []:
        # the document may list required names that are not declared as properties
        if key in model.fields:
            model.fields[key].required = True


def _hoisted_name(parent: Model, prop_name: str) -> str:
    try:
        return parent.name + canonicalize_export(prop_name)
    except NamingError as exc:
        degraded = f"{parent.name}Field{len(parent.fields)}"
        logger.warning("%s; using %s", exc, degraded)
        return degraded


def _field_from_property(
    graph: ModelGraph, parent: Model, prop_name: str, prop: dict[str, Any]
) -> Field:
    ref = resolve_schema_ref(prop)
    field = Field(key=prop_name, v=ref.name)

    if "$ref" in prop:
        # bare reference: typed field and embedded child at the same time
        if not field.v:
            logger.warning("Property %s.%s has a blank reference", parent.name, prop_name)
        parent.children.add(field.v)
        return field

    field.description = prop.get("description", "")

    if ref.generated:
        suffix = "Item" if array_prefix(ref.name) else ""
        hoisted = _hoisted_name(parent, prop_name) + suffix
        model = _add(graph, hoisted)
        model.children.update(ref.children)
        model.generated = True
        parent.children.add(hoisted)
        field.v = array_prefix(ref.name) + hoisted
    elif field.v:
        field.format = innermost_format(prop)
    elif prop.get("type") == "object" or "properties" in prop:
        hoisted = _hoisted_name(parent, prop_name)
        _add(graph, hoisted)
        parent.children.add(hoisted)
        models_from_schema(graph, hoisted, prop)
        field.v = hoisted
    else:
        field.v = prop.get("type", "")
        field.format = prop.get("format", "")

    return field
