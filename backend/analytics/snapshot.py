"""
Graph snapshot — an immutable view of vertices and edges for one analysis run.

Undirected edges are stored once but expanded into two arcs so that every
traversal treats them symmetrically.
"""
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, NamedTuple, Optional, Union

import networkx as nx
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .errors import InvalidGraphError

logger = logging.getLogger(__name__)

VertexId = Union[str, int]


class Direction(str, Enum):
    DIRECTED = "directed"
    UNDIRECTED = "undirected"


def _decode_properties(value: Any) -> Any:
    # Stored as a JSON text column; NULL means no properties.
    if value is None or value == "":
        return {}
    if isinstance(value, str):
        return json.loads(value)
    return value


class Vertex(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: VertexId
    label: str = ""
    type: str = "concept"
    properties: dict[str, Any] = {}
    size: Optional[float] = None
    color: Optional[str] = None
    x_position: Optional[float] = None
    y_position: Optional[float] = None

    @field_validator("properties", mode="before")
    @classmethod
    def _properties(cls, value: Any) -> Any:
        return _decode_properties(value)

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, value: Any) -> Any:
        return value or "concept"


class Edge(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: VertexId
    source_vertex_id: VertexId
    target_vertex_id: VertexId
    relationship_type: str = "relates_to"
    weight: float = 1.0
    direction: Direction = Direction.DIRECTED
    properties: dict[str, Any] = {}

    @field_validator("properties", mode="before")
    @classmethod
    def _properties(cls, value: Any) -> Any:
        return _decode_properties(value)

    @field_validator("weight", mode="before")
    @classmethod
    def _weight(cls, value: Any) -> Any:
        return 1.0 if value is None else value

    @field_validator("relationship_type", mode="before")
    @classmethod
    def _relationship_type(cls, value: Any) -> Any:
        return value or "relates_to"

    @field_validator("direction", mode="before")
    @classmethod
    def _direction(cls, value: Any) -> Any:
        return value or Direction.DIRECTED


class Arc(NamedTuple):
    """One traversable direction of a stored edge."""
    source: str
    target: str
    weight: float
    direction: Direction
    reverse: bool = False


@dataclass(frozen=True)
class GraphSnapshot:
    vertex_ids: tuple[str, ...]
    edge_count: int
    arc_list: tuple[Arc, ...]
    out_arcs: Mapping[str, tuple[Arc, ...]]
    in_arcs: Mapping[str, tuple[Arc, ...]]
    out_links: Mapping[str, tuple[str, ...]]
    in_links: Mapping[str, tuple[str, ...]]
    arcs: Mapping[tuple[str, str], Arc]
    degrees: Mapping[str, float]

    @property
    def vertex_count(self) -> int:
        return len(self.vertex_ids)

    def out_degree(self, vertex_id: str) -> int:
        return len(self.out_links[vertex_id])

    def weighted_degree(self, vertex_id: str) -> float:
        """Total weight of the stored edges touching the vertex, either direction."""
        return self.degrees[vertex_id]

    def weight(self, source: str, target: str) -> float:
        arc = self.arcs.get((source, target))
        return arc.weight if arc else 0.0

    def to_networkx(self) -> nx.Graph:
        """Undirected weighted projection; parallel and reciprocal edges are summed."""
        G = nx.Graph()
        G.add_nodes_from(self.vertex_ids)
        for arc in self.arc_list:
            if arc.reverse:
                continue
            u, v = arc.source, arc.target
            if G.has_edge(u, v):
                G[u][v]["weight"] += arc.weight
            else:
                G.add_edge(u, v, weight=arc.weight)
        return G


def _coerce(model: type[BaseModel], item: Any) -> Any:
    if isinstance(item, model):
        return item
    try:
        return model.model_validate(dict(item))
    except (ValidationError, ValueError, TypeError) as exc:
        raise InvalidGraphError(f"Invalid {model.__name__.lower()}: {exc}") from exc


def build_snapshot(vertices: Iterable[Any], edges: Iterable[Any]) -> GraphSnapshot:
    """
    Build adjacency structures from flat vertex and edge collections.

    vertices — Vertex models or dicts/rows with at least an ``id``
    edges    — Edge models or dicts/rows {id, source_vertex_id, target_vertex_id, weight, direction, ...}

    Raises InvalidGraphError on duplicate vertex ids, edges that reference an
    unknown vertex, and negative or non-finite weights.
    """
    vertex_models = [_coerce(Vertex, v) for v in vertices]
    edge_models = [_coerce(Edge, e) for e in edges]

    vertex_ids: list[str] = []
    seen: set[str] = set()
    for v in vertex_models:
        if v.id in seen:
            raise InvalidGraphError(f"Duplicate vertex id {v.id!r}")
        seen.add(v.id)
        vertex_ids.append(v.id)

    out_arcs: dict[str, list[Arc]] = {vid: [] for vid in vertex_ids}
    in_arcs: dict[str, list[Arc]] = {vid: [] for vid in vertex_ids}
    degrees: dict[str, float] = {vid: 0.0 for vid in vertex_ids}
    arc_list: list[Arc] = []
    arcs: dict[tuple[str, str], Arc] = {}

    for e in edge_models:
        src, tgt = e.source_vertex_id, e.target_vertex_id
        for endpoint in (src, tgt):
            if endpoint not in seen:
                raise InvalidGraphError(
                    f"Edge {e.id!r} references unknown vertex {endpoint!r}"
                )
        if e.weight < 0 or not math.isfinite(e.weight):
            raise InvalidGraphError(f"Edge {e.id!r} has invalid weight {e.weight!r}")

        expanded = [Arc(src, tgt, e.weight, e.direction)]
        if e.direction is Direction.UNDIRECTED:
            expanded.append(Arc(tgt, src, e.weight, e.direction, reverse=True))
        for arc in expanded:
            out_arcs[arc.source].append(arc)
            in_arcs[arc.target].append(arc)
            arcs[(arc.source, arc.target)] = arc
            arc_list.append(arc)
        # Every stored edge adds its weight at both ends.
        degrees[src] += e.weight
        degrees[tgt] += e.weight

    logger.debug(
        "Built snapshot: %d vertices, %d edges, %d arcs",
        len(vertex_ids), len(edge_models), len(arc_list),
    )

    def freeze(mapping: dict[str, list]) -> Mapping[str, tuple]:
        return MappingProxyType({k: tuple(v) for k, v in mapping.items()})

    return GraphSnapshot(
        vertex_ids=tuple(vertex_ids),
        edge_count=len(edge_models),
        arc_list=tuple(arc_list),
        out_arcs=freeze(out_arcs),
        in_arcs=freeze(in_arcs),
        out_links=MappingProxyType({k: tuple(a.target for a in v) for k, v in out_arcs.items()}),
        in_links=MappingProxyType({k: tuple(a.source for a in v) for k, v in in_arcs.items()}),
        arcs=MappingProxyType(arcs),
        degrees=MappingProxyType(degrees),
    )
