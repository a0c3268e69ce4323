"""Diagram orchestration: load, build, simulate in two phases, freeze."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable

from rich.console import Console

from .colors import ColorScale
from .errors import ConstructionError, DiagramError, LoadError
from .group import Classifier, Group
from .html import wrap_html
from .link import Link
from .loader import fetch_json, parse_document
from .node import Node
from .options import DiagramOptions, resolve_distance, resolve_width
from .simulation import DragEvent, Simulation
from .surface import Selection, Surface


class DiagramState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SIMULATING = "simulating"
    SIMULATING_WITH_PATH = "simulating-with-path"
    FROZEN = "frozen"
    FAILED = "failed"


class Diagram:
    """One rendering session of a node-link diagram.

    Typical use::

        diagram = Diagram("#graph", "graph.json", group_pattern=r"^(\\w+)\\.")
        diagram.link_width(lambda meta: meta.get("weight"))
        diagram.init("protocol", "port")
        svg = diagram.to_svg()

    `init` loads the JSON description, builds nodes/links/groups and runs the
    layout to completion: first a bounded fast-forward without label paths,
    then label paths are drawn and a single corrective tick runs before every
    node is frozen in place.
    """

    loading_message = "Simulating. Just a moment ..."

    def __init__(
        self,
        container: str,
        url: str,
        *,
        width: int = 960,
        height: int = 600,
        group_pattern: Classifier = None,
        distance: Any = 150,
        max_ticks: int = 1000,
        seed: int = 1,
        loader: Callable[[str], Any] = fetch_json,
        console: Console | None = None,
    ) -> None:
        self.selector = container
        self.url = url
        self.group_pattern = group_pattern
        self.width = width
        self.height = height

        self.set_distance = self.link_distance(distance)
        self.get_link_width = resolve_width(1)
        self.color = ColorScale()
        self.max_ticks = max_ticks
        self.seed = seed
        self.meta: list[str] = []

        self.state = DiagramState.IDLE
        self.simulation: Simulation | None = None
        self.svg: Surface | None = None
        self.indicator: Selection | None = None
        self.nodes: list[Node] = []
        self.links: list[Link] = []
        self.groups: list[Group] = []
        self.drawn: dict[str, Selection] = {}
        self.node_drag = None

        self._loader = loader
        self.console = console or Console(stderr=True)

    @classmethod
    def from_options(cls, container: str, url: str, options: DiagramOptions, **kwargs: Any) -> "Diagram":
        diagram = cls(
            container,
            url,
            width=options.width,
            height=options.height,
            group_pattern=options.group_pattern,
            distance=options.distance,
            max_ticks=options.max_ticks,
            seed=options.seed,
            **kwargs,
        )
        diagram.link_width(options.link_width())
        return diagram

    @staticmethod
    def link_distance(distance: Any) -> Callable[[Simulation], Any]:
        return resolve_distance(distance)

    def link_width(self, func: Any) -> None:
        self.get_link_width = resolve_width(func)

    def init(self, *meta: str) -> "Diagram":
        self.meta = list(meta)
        self.simulation = self.init_simulation()
        self.svg = self.init_svg()

        self.render()
        return self

    def init_simulation(self) -> Simulation:
        return Simulation(
            size=(self.width, self.height),
            avoid_overlaps=True,
            handle_disconnected=False,
            seed=self.seed,
        )

    def init_svg(self) -> Surface:
        surface = Surface(self.width, self.height, container_id=self.selector)
        surface.on_zoom(self.zoom_callback)
        return surface

    def render(self) -> None:
        self.state = DiagramState.LOADING
        self.display_load_message()
        self.console.print(f"Loading {self.url} ...", style="dim", markup=False)

        try:
            node_records, link_records = parse_document(self._loader(self.url), self.url)
        except DiagramError as e:
            self.fail(e)
            raise
        except Exception as e:
            error = LoadError(f'Failed to load "{self.url}": {e}')
            self.fail(error)
            raise error from e

        try:
            self.build(node_records, link_records)
            self.layout()
        except DiagramError as e:
            self.fail(e)
            raise
        except Exception as e:
            error = ConstructionError(f"Failed to build diagram: {e}")
            self.fail(error)
            raise error from e

    def build(self, node_records: list[Any], link_records: list[Any]) -> None:
        nodes = [Node.from_record(r, i, self.meta, self.color) for i, r in enumerate(node_records)]
        by_name = Node.index_by_name(nodes)
        links = [
            Link.from_record(r, i, self.meta, nodes, by_name, self.get_link_width)
            for i, r in enumerate(link_records)
        ]
        groups = Group.divide(nodes, self.group_pattern, self.color)

        self.nodes, self.links, self.groups = nodes, links, groups
        self.console.print(
            f"Built {len(nodes)} nodes, {len(links)} links, {len(groups)} groups",
            style="dim",
        )

    def layout(self) -> None:
        sim = self.simulation
        svg = self.svg
        sim.seed(self.nodes, self.links, self.groups)
        self.set_distance(sim)
        sim.start()
        self.state = DiagramState.SIMULATING
        self.console.print("Simulating ...", style="dim")

        group = Group.render(svg, self.groups).call(sim.drag().on("dragstart", self.dragstart_callback))
        link = Link.render_links(svg, self.links)
        self.node_drag = sim.drag().on("dragstart", self.dragstart_callback)
        node = Node.render(svg, self.nodes).call(self.node_drag)
        self.drawn = {"group": group, "link": link, "node": node}

        # without path calculation
        self.configure_tick(group, node, link)
        self.ticks_forward()
        self.hide_load_message()

        # render path
        path, label = Link.render_paths(svg, self.links)
        self.drawn.update(path=path, label=label)
        self.state = DiagramState.SIMULATING_WITH_PATH
        self.configure_tick(group, node, link, path, label)
        sim.start()
        self.ticks_forward(1)

        path.attr("d", lambda d: d.d())  # make sure path calculation is done
        self.freeze(node)
        self.state = DiagramState.FROZEN
        self.console.print(f"Layout frozen after {sim.ticks} ticks", style="green")

    def configure_tick(
        self,
        group: Selection,
        node: Selection,
        link: Selection,
        path: Selection | None = None,
        label: Selection | None = None,
    ) -> None:
        def on_tick() -> None:
            Node.tick(node)
            Link.tick(link, path, label)
            Group.tick(group)

        self.simulation.on("tick", on_tick)

    def ticks_forward(self, count: int | None = None) -> None:
        count = count or self.max_ticks
        for _ in range(count):
            if self.simulation.tick():
                break
        self.simulation.stop()

    def freeze(self, node: Selection) -> None:
        for d in node.data:
            d.fixed = True

    def destroy(self) -> None:
        if self.svg is not None:
            self.svg.remove()
            self.svg = None
        self.indicator = None
        self.drawn = {}

    def zoom(self, scale: float, translate: tuple[float, float] = (0.0, 0.0), source_event: Any = None) -> bool:
        if self.svg is None:
            return False
        return self.svg.zoom(scale, translate, source_event)

    def zoom_callback(self, scale: float, translate: tuple[float, float]) -> None:
        Link.zoom(self.svg, scale)
        tx, ty = translate
        self.svg.container.set("transform", f"translate({tx},{ty}) scale({scale})")

    def dragstart_callback(self, event: DragEvent) -> None:
        event.source_event.stop_propagation()

    def display_load_message(self) -> None:
        self.indicator = (
            self.svg.append("text", {"class": "indicator", "x": self.width / 2, "y": self.height / 2, "dy": ".35em"})
            .style("text-anchor", "middle")
            .text(self.loading_message)
        )

    def hide_load_message(self) -> None:
        if self.indicator is not None:
            self.indicator.remove()
            self.indicator = None

    def show_message(self, message: Any) -> None:
        if self.svg is None:
            return
        if self.indicator is None:
            self.display_load_message()
        self.indicator.text(str(message))

    def fail(self, error: DiagramError) -> None:
        self.state = DiagramState.FAILED
        for selection in self.drawn.values():
            selection.remove()
        self.drawn = {}
        self.show_message(error)
        self.console.print(str(error), style="red", markup=False)

    def to_svg(self) -> str:
        return self.svg.to_svg() if self.svg is not None else ""

    def to_html(self, title: str | None = None) -> str:
        return wrap_html(self.to_svg(), title=title or self.url, container=self.selector)
