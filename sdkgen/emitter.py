"""Render the pruned model graph and the endpoints to Python source text.

One render function per model shape (primitive alias, enum, struct,
composition, untyped map) and per endpoint artefact (signature, route,
query, method body). The functions return plain text blocks; the Jinja2
templates only assemble them into files.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from .endpoints import route_placeholders
from .exceptions import NamingError
from .ir import (
    SHAPE_COMPOSITION,
    SHAPE_ENUM,
    SHAPE_MAP,
    SHAPE_PRIMITIVE,
    Endpoint,
    Field,
    Model,
    ModelGraph,
    base_type,
    element_type,
    is_array_type,
)
from .naming import canonicalize, canonicalize_export, safe_identifier, snake_case

logger = logging.getLogger(__name__)

INDENT = "    "
MAX_LINE = 88

# Names the generated modules use themselves; attributes and arguments get a "_" suffix.
_RESERVED_NAMES = {
    "self", "cfg", "query", "query_elements", "payload", "err",
    "models", "datetime", "pydantic", "typing",
    "list", "dict", "str", "int", "float", "bool",
    "model_config", "model_fields", "json", "copy", "schema", "validate", "construct",
}

_SCALAR_TYPES = {
    "integer": "int",
    "number": "float",
    "boolean": "bool",
    "string": "str",
    "object": "dict[str, Any]",
    "": "Any",
}

_INTEGER_FORMATS = {"int64", "int32"}
_FLOAT_FORMATS = {"double", "float"}
_TIME_FORMATS = {"date-time", "date"}


def py_type(token: str, fmt: str = "", qualifier: str = "") -> str:
    """Map a type token to a Python annotation.

    Model names are prefixed with ``qualifier`` (``"models."`` outside the
    models module).
    """
    if is_array_type(token):
        return f"list[{py_type(element_type(token), fmt, qualifier)}]"
    if token in ("string", "") and fmt == "date-time":
        return "datetime.datetime"
    if token in ("string", "") and fmt == "date":
        return "datetime.date"
    if token in _SCALAR_TYPES:
        return _SCALAR_TYPES[token]
    return qualifier + token


def py_literal(value: Any) -> str:
    """Render a JSON-like scalar as a Python literal."""
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    return repr(value)


def doc_comment(description: str, indent: str = "") -> str:
    """Render a description as ``#:`` comment lines, one per line of text."""
    if not description.strip():
        return ""
    lines = description.rstrip().split("\n")
    return "".join(f"{indent}#: {line}".rstrip() + "\n" for line in lines)


def docstring(description: str, indent: str = "") -> str:
    """Render a description as a docstring block ending with a newline."""
    text = description.strip().replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if not text:
        return ""
    if text.endswith('"'):
        text = text[:-1] + '\\"'
    lines = [line.rstrip() for line in text.split("\n")]
    if len(lines) == 1:
        return f'{indent}"""{lines[0]}"""\n'
    body = "".join(f"{indent}{line}\n" if line else "\n" for line in lines[1:])
    return f'{indent}"""{lines[0]}\n{body}{indent}"""\n'


def unique_names(candidates: list[str]) -> list[str]:
    """Suffix repeated names with a counter so every name is distinct."""
    seen: dict[str, int] = {}
    names = []
    for name in candidates:
        if name in seen:
            seen[name] += 1
            logger.warning("Name %s is used more than once; renaming to %s%d", name, name, seen[name])
            name = f"{name}{seen[name]}"
        else:
            seen[name] = 1
        names.append(name)
    return names


def identifier(key: str, fallback: str) -> str:
    """Canonical, keyword-safe identifier for a field or parameter key.

    Keys that yield no identifier are logged and replaced by ``fallback``.
    """
    try:
        name = safe_identifier(canonicalize(key))
    except NamingError as exc:
        logger.warning("%s; using %s", exc, fallback)
        return fallback
    if name in _RESERVED_NAMES:
        name += "_"
    return name


# --- models ---


def render_primitive(model: Model) -> str:
    primitive = model.primitive
    return (
        doc_comment(model.description)
        + f"{model.name} = {py_type(primitive.type, primitive.format)}"
    )


def _enum_literal(model: Model, value: str) -> str:
    kind = model.primitive.type if model.primitive else "string"
    try:
        if kind == "integer":
            return repr(int(value))
        if kind == "number":
            return repr(float(value))
    except ValueError:
        logger.warning("Enum %s has a non-numeric literal %r", model.name, value)
    if kind == "boolean":
        return repr(value.lower() == "true")
    return py_literal(value)


def render_enum(model: Model) -> str:
    """Alias declaration plus one constant per literal, literals sorted."""
    lines = [doc_comment(model.description) + f"{model.name} = {py_type(model.primitive.type)}"]
    prefix = model.name[:1].upper() + model.name[1:]
    values = sorted(model.children)
    constants = []
    for i, value in enumerate(values):
        try:
            constant = prefix + canonicalize_export(value)
        except NamingError as exc:
            constant = f"{prefix}Value{i}"
            logger.warning("%s; using %s", exc, constant)
        constants.append(safe_identifier(constant))
    for constant, value in zip(unique_names(constants), values):
        lines.append(f"{constant}: {model.name} = {_enum_literal(model, value)}")
    return "\n".join(lines)


def render_field(field: Field, attribute: str) -> str:
    annotation = py_type(field.v, field.format)
    alias = py_literal(field.key)
    if field.required:
        declaration = f"{attribute}: {annotation} = pydantic.Field(alias={alias})"
    else:
        declaration = (
            f"{attribute}: Optional[{annotation}] = pydantic.Field(default=None, alias={alias})"
        )
    return doc_comment(field.description, INDENT) + INDENT + declaration


def render_struct(model: Model) -> str:
    """A pydantic model with one attribute per field, fields sorted by key."""
    keys = sorted(model.fields)
    attributes = unique_names(
        [identifier(key, f"field{i}") for i, key in enumerate(keys)]
    )
    body = [
        INDENT + "model_config = pydantic.ConfigDict(populate_by_name=True)",
        "",
    ]
    body.extend(render_field(model.fields[k], a) for k, a in zip(keys, attributes))
    return (
        f"class {model.name}(pydantic.BaseModel):\n"
        + docstring(model.description or model.name, INDENT)
        + "\n"
        + "\n".join(body)
    )


def _ancestors(name: str, graph: ModelGraph, seen: Optional[set[str]] = None) -> set[str]:
    seen = set() if seen is None else seen
    model = graph.get(name)
    if model is None or model.shape != SHAPE_COMPOSITION:
        return seen
    for child in model.children:
        if child not in seen:
            seen.add(child)
            _ancestors(child, graph, seen)
    return seen


def render_composition(model: Model, graph: ModelGraph) -> str:
    """A class embedding its children as base classes, children sorted."""
    bases = []
    for child in sorted(model.children):
        if child in graph and graph[child].is_class:
            bases.append(child)
        else:
            logger.warning("Model %s cannot embed %r; skipping it", model.name, child)
    # a base already inherited through another base would break the MRO
    inherited = set().union(*(_ancestors(b, graph) for b in bases)) if bases else set()
    bases = [b for b in bases if b not in inherited and b != model.name]
    if not bases:
        bases = ["pydantic.BaseModel"]
    return (
        f"class {model.name}({', '.join(bases)}):\n"
        + docstring(model.description or model.name, INDENT)
    ).rstrip("\n")


def render_map(model: Model) -> str:
    return doc_comment(model.description) + f"{model.name} = dict[str, Any]"


def render_model(model: Model, graph: ModelGraph) -> str:
    """Render one model according to its shape."""
    shape = model.shape
    if shape == SHAPE_ENUM:
        return render_enum(model)
    if shape == SHAPE_PRIMITIVE:
        return render_primitive(model)
    if shape == SHAPE_COMPOSITION:
        return render_composition(model, graph)
    if shape == SHAPE_MAP:
        return render_map(model)
    return render_struct(model)


def _runtime_dependencies(model: Model, graph: ModelGraph) -> list[str]:
    """Names that must already be defined when the model's declaration executes.

    Class bases and alias right-hand sides run at import time; field
    annotations are postponed and resolved by ``model_rebuild``.
    """
    if model.shape == SHAPE_COMPOSITION:
        names = sorted(model.children)
    elif model.shape == SHAPE_PRIMITIVE:
        names = [base_type(model.primitive.type)]
    else:
        names = []
    return [n for n in names if n in graph and n != model.name]


def ordered_models(graph: ModelGraph) -> list[Model]:
    """Models sorted by name, moving each model after the ones it needs at import time."""
    ordered: list[Model] = []
    done: set[str] = set()

    def visit(name: str, stack: set[str]) -> None:
        if name in done or name in stack:
            return
        stack.add(name)
        for dependency in _runtime_dependencies(graph[name], graph):
            visit(dependency, stack)
        done.add(name)
        ordered.append(graph[name])

    for name in sorted(graph):
        visit(name, set())
    return ordered


def render_types(graph: ModelGraph) -> list[str]:
    """Render every model of the graph, one text block each."""
    return [render_model(model, graph) for model in ordered_models(graph)]


def model_classes(graph: ModelGraph) -> list[str]:
    """Names of the models rendered as classes, in declaration order."""
    return [m.name for m in ordered_models(graph) if m.is_class]


# --- endpoints ---


def method_name(endpoint: Endpoint) -> str:
    """snake_case method name of the endpoint: ListProjects -> list_projects."""
    try:
        name = canonicalize_export(endpoint.name)
    except NamingError as exc:
        name = endpoint.method.capitalize() + "Endpoint"
        logger.warning("%s; using %s", exc, name)
    return safe_identifier(snake_case(name))


def parameter_names(endpoint: Endpoint) -> list[str]:
    """Argument names of the endpoint's path and query parameters, in order."""
    return unique_names(
        [identifier(p.key, f"param{i}") for i, p in enumerate(endpoint.parameters)]
    )


def serialize_expression(field: Field, name: str) -> str:
    """Expression converting argument ``name`` to its wire string."""
    if field.is_array:
        element = Field(key=field.key, v=element_type(field.v), format=field.format)
        if element.v == "string" and element.format not in _TIME_FORMATS:
            return f'",".join({name})'
        return f'",".join({serialize_expression(element, "v")} for v in {name})'

    if field.format in _INTEGER_FORMATS or field.v == "integer":
        return f"str({name})"
    if field.format in _FLOAT_FORMATS or field.v == "number":
        return f"_format_float({name})"
    if field.format in _TIME_FORMATS:
        return f"_format_time({name})"
    if field.v == "boolean":
        return f'("true" if {name} else "false")'
    if field.v in ("string", ""):
        return name
    return f"str({name})"


def render_route(endpoint: Endpoint, names: Optional[list[str]] = None) -> str:
    """Expression building the request path from the route template."""
    names = names if names is not None else parameter_names(endpoint)
    path_names = dict(zip((p.key for p in endpoint.path_params), names))
    params = {p.key: p for p in endpoint.path_params}

    pieces = []
    literal = ""
    rest = endpoint.route
    for placeholder in route_placeholders(endpoint.route):
        token = "{" + placeholder + "}"
        head, rest = rest.split(token, 1)
        literal += head
        if placeholder not in params:
            literal += token
            continue
        if literal:
            pieces.append(py_literal(literal))
            literal = ""
        pieces.append(serialize_expression(params[placeholder], path_names[placeholder]))
    literal += rest
    if literal or not pieces:
        pieces.append(py_literal(literal))
    return " + ".join(pieces)


def render_query(endpoint: Endpoint, names: Optional[list[str]] = None, indent: str = INDENT * 2) -> str:
    """Statements building ``query`` from the query parameters; empty if there are none."""
    if not endpoint.query_params:
        return ""
    names = names if names is not None else parameter_names(endpoint)
    query_names = names[len(endpoint.path_params):]

    lines = ["query_elements: list[str] = []"]
    for param, name in zip(endpoint.query_params, query_names):
        if param.required:
            lines.append(f"query_elements.append({_query_element(param, name)})")
    for param, name in zip(endpoint.query_params, query_names):
        if param.required:
            continue
        condition = f"if {name}:" if param.is_array else f"if {name} is not None:"
        lines.append(condition)
        lines.append(f"{INDENT}query_elements.append({_query_element(param, name)})")
    lines.extend([
        'query = ""',
        "if query_elements:",
        f'{INDENT}query = "?" + "&".join(query_elements)',
    ])
    return "".join(f"{indent}{line}\n" for line in lines)


def _query_element(param: Field, name: str) -> str:
    return f"{py_literal(param.key + '=')} + {serialize_expression(param, name)}"


def _arguments(endpoint: Endpoint, names: list[str]) -> list[str]:
    args = ["self"]
    path_count = len(endpoint.path_params)
    for param, name in zip(endpoint.path_params, names):
        args.append(f"{name}: {py_type(param.v, param.format, 'models.')}")

    keyword_args = []
    for param, name in zip(endpoint.query_params, names[path_count:]):
        annotation = py_type(param.v, param.format, "models.")
        if param.required:
            keyword_args.append(f"{name}: {annotation}")
        else:
            keyword_args.append(f"{name}: Optional[{annotation}] = None")

    if endpoint.request_model is not None:
        annotation = py_type(endpoint.request_model.name, qualifier="models.")
        if endpoint.request_required:
            keyword_args.append(f"cfg: {annotation}")
        else:
            keyword_args.append(f"cfg: Optional[{annotation}] = None")

    if keyword_args:
        args.append("*")
    return args + keyword_args


def return_type(endpoint: Endpoint) -> str:
    if endpoint.response_model is None:
        return "None"
    return py_type(endpoint.response_model.name, qualifier="models.")


def render_signature(endpoint: Endpoint, names: Optional[list[str]] = None) -> str:
    """The ``def`` line(s) of the endpoint method, wrapped when too long."""
    names = names if names is not None else parameter_names(endpoint)
    args = _arguments(endpoint, names)
    head = f"{INDENT}def {method_name(endpoint)}("
    tail = f") -> {return_type(endpoint)}:"
    line = head + ", ".join(args) + tail
    if len(line) <= MAX_LINE:
        return line
    inner = "".join(f"{INDENT * 2}{arg},\n" for arg in args)
    return f"{head}\n{inner}{INDENT}{tail}"


def _method_docstring(endpoint: Endpoint) -> str:
    description = endpoint.description or f"{endpoint.method} {endpoint.route}"
    return docstring(description, INDENT * 2)


def render_interface_method(endpoint: Endpoint) -> str:
    """Signature-only form of the endpoint method, for the SDK protocol."""
    return render_signature(endpoint) + "\n" + _method_docstring(endpoint) + INDENT * 2 + "..."


def response_sentinel(endpoint: Endpoint, graph: ModelGraph) -> str:
    """Value carried by the error when the call fails.

    An empty instance for object-shaped responses, None for lists,
    aliases, and endpoints without a response.
    """
    model = endpoint.response_model
    if model is None or is_array_type(model.name):
        return "None"
    if model.name in graph and graph[model.name].is_class:
        return f"models.{model.name}.model_construct()"
    return "None"


def render_method(endpoint: Endpoint, graph: ModelGraph) -> str:
    """Full method implementation of the endpoint on the generated Client."""
    names = parameter_names(endpoint)
    body = render_query(endpoint, names)
    query = " + query" if endpoint.query_params else ""
    cfg = "cfg" if endpoint.request_model is not None else "None"
    call = (
        f"self._request({render_route(endpoint, names)}{query}, "
        f"{py_literal(endpoint.method)}, {cfg})"
    )

    indent = INDENT * 2
    if endpoint.response_model is None:
        body += f"{indent}{call}\n"
    else:
        sentinel = response_sentinel(endpoint, graph)
        if sentinel == "None":
            body += f"{indent}payload = {call}\n"
        else:
            body += (
                f"{indent}try:\n"
                f"{indent}{INDENT}payload = {call}\n"
                f"{indent}except Error as err:\n"
                f"{indent}{INDENT}err.result = {sentinel}\n"
                f"{indent}{INDENT}raise\n"
            )
        body += f"{indent}return _decode({return_type(endpoint)}, payload)\n"

    return render_signature(endpoint, names) + "\n" + _method_docstring(endpoint) + body.rstrip("\n")
