"""Intermediate representation shared by the generator stages.

The schema parser and the endpoint extractor produce these objects, the
pruner selects a subset of them, and the emitter renders them to text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

# Prefix marking one level of array nesting in a type token: "[]Foo", "[][]string".
ARRAY_MARKER = "[]"

SHAPE_PRIMITIVE = "primitive"
SHAPE_ENUM = "enum"
SHAPE_STRUCT = "struct"
SHAPE_COMPOSITION = "composition"
SHAPE_MAP = "map"


def is_array_type(token: str) -> bool:
    """Return True if the type token is wrapped in at least one array marker."""
    return token.startswith(ARRAY_MARKER)


def element_type(token: str) -> str:
    """Strip one level of array marker from a type token."""
    if is_array_type(token):
        return token[len(ARRAY_MARKER):]
    return token


def base_type(token: str) -> str:
    """Strip every array marker from a type token."""
    while is_array_type(token):
        token = token[len(ARRAY_MARKER):]
    return token


def array_prefix(token: str) -> str:
    """Return the run of array markers at the start of the token."""
    return token[: len(token) - len(base_type(token))]


@dataclass(frozen=True)
class Primitive:
    """Underlying scalar type of a primitive alias."""

    type: str
    format: str = ""


@dataclass
class Field:
    """A struct field, or a path/query parameter of an endpoint."""

    key: str
    v: str = ""
    format: str = ""
    description: str = ""
    required: bool = False
    is_in_path: bool = False
    is_in_query: bool = False

    @property
    def is_array(self) -> bool:
        return is_array_type(self.v)


@dataclass
class Model:
    """A named type of the model graph.

    ``name`` carries array markers when the model is used as a reference
    to a list type (e.g. an endpoint response of ``[]Project``).
    """

    name: str = ""
    fields: dict[str, Field] = field(default_factory=dict)
    children: set[str] = field(default_factory=set)
    primitive: Optional[Primitive] = None
    description: str = ""
    generated: bool = False
    is_enum: bool = False

    @property
    def shape(self) -> str:
        if self.is_enum:
            return SHAPE_ENUM
        if self.primitive is not None:
            return SHAPE_PRIMITIVE
        if self.fields:
            return SHAPE_STRUCT
        if self.children:
            return SHAPE_COMPOSITION
        return SHAPE_MAP

    @property
    def is_class(self) -> bool:
        """True when the model renders as a class rather than an alias."""
        return self.shape in (SHAPE_STRUCT, SHAPE_COMPOSITION)


@dataclass
class Endpoint:
    """One API operation."""

    name: str
    method: str
    route: str
    description: str = ""
    request_model: Optional[Model] = None
    request_required: bool = False
    response_model: Optional[Model] = None
    path_params: list[Field] = field(default_factory=list)
    query_params: list[Field] = field(default_factory=list)
    example_response: Any = None
    status_code: str = ""
    # models synthesized for anonymous request/response schemas, by surrogate name
    synthesized: dict[str, Model] = field(default_factory=dict)

    @property
    def parameters(self) -> list[Field]:
        """Path parameters followed by query parameters."""
        return self.path_params + self.query_params


@dataclass(frozen=True)
class MockResponse:
    """A canned response served by the generated mock transport."""

    code: int
    content: str


ModelGraph = dict[str, Model]
