"""Node groups: clusters of nodes sharing a classification value."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence, Union

from .node import Node
from .surface import Selection, Surface

Classifier = Union[str, "re.Pattern[str]", Callable[[Node], Any], None]


@dataclass
class Group:
    """A cluster of node indices; `bounds` is (x1, y1, x2, y2) once simulated."""

    id: int
    key: str
    leaves: list[int] = field(default_factory=list)
    color: str = "#7f7f7f"
    padding: float = 10.0
    bounds: tuple[float, float, float, float] | None = None

    @staticmethod
    def classify(node: Node, classifier: Classifier) -> str | None:
        """Return the node's group key, or None when it stays ungrouped."""
        if classifier is None:
            return None
        if callable(classifier):
            value = classifier(node)
        else:
            pattern = re.compile(classifier) if isinstance(classifier, str) else classifier
            match = pattern.search(node.name)
            if match is None:
                return None
            value = match.group(1) if pattern.groups else match.group(0)
        if value is None or value == "":
            return None
        return str(value)

    @classmethod
    def divide(
        cls,
        nodes: Sequence[Node],
        classifier: Classifier,
        color: Callable[[Any], str],
    ) -> list["Group"]:
        """Bucket nodes by classifier value, in order of first appearance."""
        groups: dict[str, Group] = {}
        for node in nodes:
            key = cls.classify(node, classifier)
            if key is None:
                continue
            group = groups.get(key)
            if group is None:
                group = groups[key] = cls(id=len(groups), key=key, color=color(key))
            group.leaves.append(node.id)
        return list(groups.values())

    @staticmethod
    def render(surface: Surface, groups: Sequence["Group"]) -> Selection:
        return (
            surface.bind("rect", groups, "group")
            .attr("rx", 8)
            .attr("ry", 8)
            .style("fill", lambda d: d.color)
            .style("fill-opacity", 0.25)
            .call(Group.tick)
        )

    @staticmethod
    def tick(group: Selection) -> None:
        group.attr("x", lambda d: d.bounds[0] if d.bounds else None)
        group.attr("y", lambda d: d.bounds[1] if d.bounds else None)
        group.attr("width", lambda d: d.bounds[2] - d.bounds[0] if d.bounds else None)
        group.attr("height", lambda d: d.bounds[3] - d.bounds[1] if d.bounds else None)
