"""Diagram links, their label paths and label placement."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Sequence

from .errors import ConstructionError
from .meta_data import MetaData, Tag
from .node import Node
from .options import resolve_width
from .surface import BBox, Selection, Surface, fmt, text_width

# Metadata roles in tspan drawing order.
ROLES = ("meta", "source_meta", "target_meta")

# Labels are only legible above this zoom scale.
LABEL_ZOOM_THRESHOLD = 1.5

DEFAULT_WIDTH = resolve_width(1)


@dataclass(frozen=True)
class LabelPlacement:
    kind: str  # "center", "reverse" or "start"
    text_anchor: str
    start_offset: str
    x: float
    dy: str


def label_placement(
    has_edge_meta: bool,
    has_target_meta: bool,
    x_offset: float = 20,
    y_offset: float = 1.5,
) -> LabelPlacement:
    """Pick where a label sits on its path.

    Edge-level labels are centered and raised above the line, target labels
    hug the target end, everything else starts at the source end below the
    line.
    """
    if has_edge_meta:
        return LabelPlacement("center", "middle", "50%", 0, f"{fmt(0.7 - y_offset)}em")
    if has_target_meta:
        return LabelPlacement("reverse", "end", "100%", -x_offset, f"{fmt(y_offset)}em")
    return LabelPlacement("start", "start", "0%", x_offset, f"{fmt(y_offset)}em")


@dataclass
class Link:
    """A directed edge between two nodes with up to three metadata roles."""

    id: int
    source: Node
    target: Node
    meta: list[Tag] = field(default_factory=list)
    source_meta: list[Tag] = field(default_factory=list)
    target_meta: list[Tag] = field(default_factory=list)
    width: float = 1
    label_x_offset: float = 20
    label_y_offset: float = 1.5  # em
    font_size: float = 10

    @classmethod
    def from_record(
        cls,
        record: Any,
        index: int,
        meta_keys: Sequence[str],
        nodes: Sequence[Node],
        by_name: dict[str, int],
        width_of: Callable[[Any], float] | None = None,
    ) -> "Link":
        if not isinstance(record, dict):
            raise ConstructionError(f"Link #{index} is not an object")
        raw_meta = record.get("meta")
        width = width_of or DEFAULT_WIDTH
        return cls(
            id=index,
            source=_endpoint(record, "source", index, nodes, by_name),
            target=_endpoint(record, "target", index, nodes, by_name),
            meta=MetaData(raw_meta).get(meta_keys),
            source_meta=MetaData(raw_meta, "source").get(meta_keys),
            target_meta=MetaData(raw_meta, "target").get(meta_keys),
            width=width(raw_meta),
        )

    def is_named_path(self) -> bool:
        return len(self.meta) > 0

    def is_reverse_path(self) -> bool:
        return len(self.target_meta) > 0

    def has_meta(self) -> bool:
        return any(getattr(self, role) for role in ROLES)

    def d(self) -> str:
        return f"M {self.source.x} {self.source.y} L {self.target.x} {self.target.y}"

    def path_id(self) -> str:
        return f"path{self.id}"

    def placement(self) -> LabelPlacement:
        return label_placement(
            self.is_named_path(),
            self.is_reverse_path(),
            self.label_x_offset,
            self.label_y_offset,
        )

    # TODO: right-align reverse labels per tspan instead of per label.
    def tspan_x_offset(self) -> float:
        return self.placement().x

    def tspan_y_offset(self) -> str:
        return self.placement().dy

    def rotate(self, bbox: BBox) -> str:
        """Flip labels on right-to-left links so they never read upside down."""
        if self.source.x > self.target.x:
            cx, cy = bbox.center
            return f"rotate(180 {fmt(cx)} {fmt(cy)})"
        return "rotate(0)"

    def label_bbox(self) -> BBox:
        """Estimate the label's bounding box from the current path geometry."""
        placement = self.placement()
        tags = [tag for role in ROLES for tag in getattr(self, role)]
        w = max((text_width(fmt(t.value), self.font_size) for t in tags), default=0.0)
        h = self.font_size * 1.2 * max(len(tags), 1)

        x1, y1 = self.source.x or 0.0, self.source.y or 0.0
        x2, y2 = self.target.x or 0.0, self.target.y or 0.0
        length = math.hypot(x2 - x1, y2 - y1)
        ux, uy = ((x2 - x1) / length, (y2 - y1) / length) if length else (1.0, 0.0)

        if placement.kind == "center":
            along = length / 2
        elif placement.kind == "reverse":
            along = length + placement.x - w / 2
        else:
            along = placement.x + w / 2
        across = float(placement.dy[:-2]) * self.font_size

        cx = x1 + ux * along - uy * across
        cy = y1 + uy * along + ux * across
        return BBox(cx - w / 2, cy - h / 2, w, h)

    def copy(self, **changes: Any) -> "Link":
        return replace(self, **changes)

    def split(self) -> list["Link"]:
        """One sub-link per non-empty metadata role; plain links come back as-is."""
        roles = [role for role in ROLES if getattr(self, role)]
        if not roles:
            return [self]
        return [self.copy(**{other: [] for other in ROLES if other != role}) for role in roles]

    @staticmethod
    def render_links(surface: Surface, links: Sequence["Link"]) -> Selection:
        return (
            surface.bind("line", links, "link")
            .attr("x1", lambda d: d.source.x)
            .attr("y1", lambda d: d.source.y)
            .attr("x2", lambda d: d.target.x)
            .attr("y2", lambda d: d.target.y)
            .attr("stroke-width", lambda d: d.width)
        )

    @staticmethod
    def render_paths(surface: Surface, links: Sequence["Link"]) -> tuple[Selection, Selection]:
        labelled = [link for link in links if link.has_meta()]
        paths = Link.create_paths(surface, labelled)

        split = [sub for link in labelled for sub in link.split() if sub.has_meta()]
        labels = Link.create_labels(surface, split)

        Link.zoom(surface)
        return paths, labels

    @staticmethod
    def create_paths(surface: Surface, links: Sequence["Link"]) -> Selection:
        return (
            surface.bind("path", links, "path")
            .attr("d", lambda d: d.d())
            .attr("id", lambda d: d.path_id())
            .style("fill", "none")
            .style("stroke", "none")
        )

    @staticmethod
    def create_labels(surface: Surface, links: Sequence["Link"]) -> Selection:
        text = surface.bind("text", links, "path-label").attr("pointer-events", "none")
        text_path = text.append("textPath").attr("href", lambda d: f"#{d.path_id()}")

        def draw(el, d: Link) -> None:
            for role in ROLES:
                Link.append_tspans(surface, el, d, getattr(d, role))
            if d.is_named_path():
                Link.center(el)
            if d.is_reverse_path():
                Link.the_other_end(el)

        text_path.each(draw)
        return text

    @staticmethod
    def center(text_path) -> None:
        text_path.set("class", "center")
        text_path.set("text-anchor", "middle")
        text_path.set("startOffset", "50%")

    @staticmethod
    def the_other_end(text_path) -> None:
        text_path.set("class", "reverse")
        text_path.set("text-anchor", "end")
        text_path.set("startOffset", "100%")

    @staticmethod
    def append_tspans(surface: Surface, text_path, link: "Link", tags: Sequence[Tag]) -> None:
        for tag in tags:
            tspan = surface.sub(
                text_path,
                "tspan",
                {"x": fmt(link.tspan_x_offset()), "dy": link.tspan_y_offset(), "class": tag.class_},
            )
            tspan.text = fmt(tag.value)

    @staticmethod
    def tick(link: Selection, path: Selection | None = None, label: Selection | None = None) -> None:
        link.attr("x1", lambda d: d.source.x)
        link.attr("y1", lambda d: d.source.y)
        link.attr("x2", lambda d: d.target.x)
        link.attr("y2", lambda d: d.target.y)

        if path is not None:
            path.attr("d", lambda d: d.d())
        if label is not None:
            label.attr("transform", lambda d: d.rotate(d.label_bbox()))

    @staticmethod
    def zoom(surface: Surface, scale: float | None = None) -> str:
        visibility = "visible" if scale is not None and scale > LABEL_ZOOM_THRESHOLD else "hidden"
        surface.select_all("path-label").style("visibility", visibility)
        return visibility


def _endpoint(
    record: dict[str, Any],
    key: str,
    index: int,
    nodes: Sequence[Node],
    by_name: dict[str, int],
) -> Node:
    name = record.get(key)
    node_index = by_name.get(str(name)) if name is not None else None
    if node_index is None:
        raise ConstructionError(f"Link #{index}: unknown {key} node {name!r}")
    return nodes[node_index]

