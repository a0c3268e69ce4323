"""Diagram nodes: positioned entities built from the `nodes` records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from .errors import ConstructionError
from .meta_data import MetaData, Tag
from .surface import Selection, Surface, fmt


@dataclass
class Node:
    """A simulated node; `id` is its offset in the loaded `nodes` array."""

    id: int
    name: str
    color: str
    meta: list[Tag] = field(default_factory=list)
    x: float | None = None
    y: float | None = None
    fixed: bool = False
    radius: float = 8.0

    @classmethod
    def from_record(
        cls,
        record: Any,
        index: int,
        meta_keys: Sequence[str],
        color: Callable[[Any], str],
    ) -> "Node":
        if not isinstance(record, dict):
            raise ConstructionError(f"Node #{index} is not an object")
        name = record.get("name")
        if name is None or name == "":
            raise ConstructionError(f"Node #{index} has no name")
        name = str(name)
        return cls(
            id=index,
            name=name,
            color=color(name),
            meta=MetaData(record.get("meta")).get(meta_keys),
            x=_coord(record.get("x")),
            y=_coord(record.get("y")),
            fixed=bool(record.get("fixed", False)),
        )

    # Overlap avoidance treats nodes as boxes.
    @property
    def width(self) -> float:
        return self.radius * 2 + 4

    @property
    def height(self) -> float:
        return self.radius * 2 + 4

    @staticmethod
    def index_by_name(nodes: Sequence["Node"]) -> dict[str, int]:
        """Map each node name to its index; the first node with a name wins."""
        index: dict[str, int] = {}
        for node in nodes:
            index.setdefault(node.name, node.id)
        return index

    @staticmethod
    def render(surface: Surface, nodes: Sequence["Node"]) -> Selection:
        node = surface.bind("g", nodes, "node").attr("transform", _translate)
        node.append("circle").attr("r", lambda d: d.radius).attr("fill", lambda d: d.color)
        label = (
            node.append("text")
            .attr("class", "node-label")
            .attr("x", lambda d: d.radius + 4)
            .attr("dy", ".35em")
            .text(lambda d: d.name)
        )
        label.each(lambda el, d: _append_tags(surface, el, d))
        return node

    @staticmethod
    def tick(node: Selection) -> None:
        node.attr("transform", _translate)


def _append_tags(surface: Surface, text, node: Node) -> None:
    for tag in node.meta:
        tspan = surface.sub(text, "tspan", {"class": tag.class_, "x": fmt(node.radius + 4), "dy": "1.2em"})
        tspan.text = fmt(tag.value)


def _translate(d: Node) -> str:
    return f"translate({d.x or 0:.1f},{d.y or 0:.1f})"


def _coord(value: Any) -> float | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return None
