"""Select the models reachable from the extracted endpoints.

A document usually declares far more schemas than its operations use;
only the closure over what the endpoints reference is emitted.
"""

from __future__ import annotations

import logging

from .ir import Endpoint, Model, ModelGraph, base_type

logger = logging.getLogger(__name__)


def with_synthesized(graph: ModelGraph, endpoints: list[Endpoint]) -> ModelGraph:
    """Return a copy of the graph that also holds every endpoint's synthesized models."""
    source = dict(graph)
    for endpoint in endpoints:
        for name, model in endpoint.synthesized.items():
            if name in source and not source[name].generated:
                logger.warning(
                    "Synthesized model %s of %s shadows a document model", name, endpoint.name
                )
            source[name] = model
    return source


def _seeds(endpoint: Endpoint) -> list[str]:
    names = []
    if endpoint.response_model is not None:
        names.append(endpoint.response_model.name)
    if endpoint.request_model is not None:
        names.append(endpoint.request_model.name)
    names.extend(p.v for p in endpoint.parameters)
    return names


def _edges(model: Model) -> list[str]:
    names = []
    if not model.is_enum:
        names.extend(model.children)
    names.extend(f.v for f in model.fields.values())
    if model.primitive is not None:
        names.append(model.primitive.type)
    return names


def prune_models(graph: ModelGraph, endpoints: list[Endpoint]) -> ModelGraph:
    """Return the models transitively referenced by the endpoints.

    Seeds are the response, request, and parameter types of every endpoint;
    the walk follows composed children and field types until no new model
    is found. Names that are not in the graph (scalar types) are ignored.
    """
    source = with_synthesized(graph, endpoints)
    pruned: ModelGraph = {}

    pending = [name for endpoint in endpoints for name in _seeds(endpoint)]
    while pending:
        name = base_type(pending.pop())
        if name in pruned or name not in source:
            continue
        model = source[name]
        pruned[name] = model
        pending.extend(_edges(model))

    logger.debug("Kept %d of %d models", len(pruned), len(source))
    return pruned
