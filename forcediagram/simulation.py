"""Deterministic force-directed layout with group and overlap constraints.

The simulation moves nodes with the usual ingredients of a force layout:

- link springs pulling endpoints toward the configured link distance
- pairwise repulsion between all nodes
- centering of the layout in the configured size
- group cohesion pulling members toward their group centroid
- optional box overlap removal based on each node's width/height

Every step is scaled by `alpha`, which cools geometrically; once it drops
below `alpha_min` further ticks are no-ops. Fixed nodes never move.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from .surface import InputEvent, Selection

Handler = Callable[..., None]


@dataclass
class DragEvent:
    kind: str
    node: Any
    source_event: InputEvent


class DragBehavior:
    """Drag gestures on bound nodes; a dragged node is pinned until released."""

    def __init__(self, simulation: "Simulation") -> None:
        self.simulation = simulation
        self.targets: list[Any] = []
        self._handlers: dict[str, Handler] = {}
        self._held: dict[int, bool] = {}

    def __call__(self, selection: Selection) -> None:
        self.targets.extend(selection.data)

    def on(self, event: str, handler: Handler | None) -> "DragBehavior":
        if handler is None:
            self._handlers.pop(event, None)
        else:
            self._handlers[event] = handler
        return self

    def _emit(self, kind: str, node: Any, source_event: InputEvent | None) -> DragEvent:
        event = DragEvent(kind, node, source_event or InputEvent(kind))
        handler = self._handlers.get(kind)
        if handler is not None:
            handler(event)
        return event

    def start(self, node: Any, source_event: InputEvent | None = None) -> DragEvent:
        self._held[id(node)] = node.fixed
        node.fixed = True
        return self._emit("dragstart", node, source_event)

    def move(self, node: Any, x: float, y: float, source_event: InputEvent | None = None) -> DragEvent:
        node.x = x
        node.y = y
        self.simulation.resume()
        return self._emit("drag", node, source_event)

    def end(self, node: Any, source_event: InputEvent | None = None) -> DragEvent:
        node.fixed = self._held.pop(id(node), node.fixed)
        return self._emit("dragend", node, source_event)


class Simulation:
    """Force layout over nodes (with x/y/fixed/width/height), links and groups."""

    alpha_min = 0.001
    alpha_decay = 1 - math.pow(0.001, 1 / 300)
    velocity_decay = 0.4
    charge = -120.0
    group_strength = 0.1

    def __init__(
        self,
        *,
        size: tuple[float, float] = (960, 600),
        avoid_overlaps: bool = True,
        handle_disconnected: bool = False,
        seed: int = 1,
    ) -> None:
        self.size = size
        self.avoid_overlaps = avoid_overlaps
        self.handle_disconnected = handle_disconnected
        self.alpha = 0.0
        self.ticks = 0
        self.nodes: list[Any] = []
        self.links: list[Any] = []
        self.groups: list[Any] = []
        self._distance: float | Callable[[Any], float] = 20.0
        self._handlers: dict[str, Handler] = {}
        self._rng = random.Random(seed)
        self._velocity: list[list[float]] = []
        self._index: dict[int, int] = {}

    def seed(self, nodes: Sequence[Any], links: Sequence[Any], groups: Sequence[Any] = ()) -> "Simulation":
        self.nodes = list(nodes)
        self.links = list(links)
        self.groups = list(groups)
        self._index = {id(n): i for i, n in enumerate(self.nodes)}
        self._velocity = [[0.0, 0.0] for _ in self.nodes]
        return self

    def link_distance(self, distance: float | Callable[[Any], float]) -> "Simulation":
        self._distance = distance
        return self

    def distance_of(self, link: Any) -> float:
        return float(self._distance(link) if callable(self._distance) else self._distance)

    def on(self, event: str, handler: Handler | None) -> "Simulation":
        """Subscribe to "tick"/"end"; a new handler replaces the previous one."""
        if handler is None:
            self._handlers.pop(event, None)
        else:
            self._handlers[event] = handler
        return self

    def _emit(self, event: str) -> None:
        handler = self._handlers.get(event)
        if handler is not None:
            handler()

    def drag(self) -> DragBehavior:
        return DragBehavior(self)

    def start(self) -> "Simulation":
        self._place_unpositioned()
        self._update_bounds()
        self.alpha = 1.0
        return self

    def resume(self) -> "Simulation":
        self.alpha = max(self.alpha, 0.1)
        return self

    def stop(self) -> "Simulation":
        if self.alpha > 0:
            self.alpha = 0.0
            self._emit("end")
        return self

    def tick(self) -> bool:
        """Advance one step; returns True when the layout has already cooled."""
        if self.alpha < self.alpha_min:
            return True
        self._step(self.alpha)
        self.alpha *= 1 - self.alpha_decay
        self.ticks += 1
        self._emit("tick")
        return False

    # Initial placement

    def _place_unpositioned(self) -> None:
        width, height = self.size
        components = self._components() if self.handle_disconnected else [list(range(len(self.nodes)))]
        components = [c for c in components if c]
        slot = width / max(len(components), 1)
        for k, members in enumerate(components):
            cx = slot * (k + 0.5)
            spread_x = slot / 4
            spread_y = height / 4
            for i in members:
                node = self.nodes[i]
                if node.x is None:
                    node.x = cx + self._rng.uniform(-spread_x, spread_x)
                if node.y is None:
                    node.y = height / 2 + self._rng.uniform(-spread_y, spread_y)

    def _components(self) -> list[list[int]]:
        parent = list(range(len(self.nodes)))

        def find(i: int) -> int:
            while parent[i] != i:
                parent[i] = parent[parent[i]]
                i = parent[i]
            return i

        for link in self.links:
            a, b = find(self._pos(link.source)), find(self._pos(link.target))
            if a != b:
                parent[b] = a

        components: dict[int, list[int]] = {}
        for i in range(len(self.nodes)):
            components.setdefault(find(i), []).append(i)
        return sorted(components.values(), key=lambda c: (-len(c), c[0]))

    def _pos(self, node: Any) -> int:
        return self._index[id(node)]

    # Forces

    def _step(self, alpha: float) -> None:
        self._apply_links(alpha)
        self._apply_charge(alpha)
        self._apply_groups(alpha)

        for i, node in enumerate(self.nodes):
            v = self._velocity[i]
            if node.fixed:
                v[0] = v[1] = 0.0
                continue
            v[0] *= 1 - self.velocity_decay
            v[1] *= 1 - self.velocity_decay
            node.x += v[0]
            node.y += v[1]

        self._apply_center()
        if self.avoid_overlaps:
            self._remove_overlaps()
        self._update_bounds()

    def _apply_links(self, alpha: float) -> None:
        degree = [0] * len(self.nodes)
        for link in self.links:
            degree[self._pos(link.source)] += 1
            degree[self._pos(link.target)] += 1

        for link in self.links:
            s, t = self._pos(link.source), self._pos(link.target)
            if s == t:
                continue
            source, target = self.nodes[s], self.nodes[t]
            dx = target.x + self._velocity[t][0] - source.x - self._velocity[s][0]
            dy = target.y + self._velocity[t][1] - source.y - self._velocity[s][1]
            dist = math.hypot(dx, dy) or self._jitter()
            strength = 1.0 / min(degree[s], degree[t])
            f = (dist - self.distance_of(link)) / dist * alpha * strength
            dx, dy = dx * f, dy * f
            bias = degree[s] / (degree[s] + degree[t])
            self._velocity[t][0] -= dx * bias
            self._velocity[t][1] -= dy * bias
            self._velocity[s][0] += dx * (1 - bias)
            self._velocity[s][1] += dy * (1 - bias)

    def _apply_charge(self, alpha: float) -> None:
        n = len(self.nodes)
        for i in range(n):
            a = self.nodes[i]
            for j in range(i + 1, n):
                b = self.nodes[j]
                dx = b.x - a.x
                dy = b.y - a.y
                if dx * dx + dy * dy < 1e-6:
                    dx, dy = self._jitter(), self._jitter()
                d2 = max(dx * dx + dy * dy, 1.0)
                f = self.charge * alpha / d2
                self._velocity[i][0] += dx * f
                self._velocity[i][1] += dy * f
                self._velocity[j][0] -= dx * f
                self._velocity[j][1] -= dy * f

    def _apply_groups(self, alpha: float) -> None:
        for group in self.groups:
            members = [i for i in group.leaves if 0 <= i < len(self.nodes)]
            if len(members) < 2:
                continue
            cx = sum(self.nodes[i].x for i in members) / len(members)
            cy = sum(self.nodes[i].y for i in members) / len(members)
            for i in members:
                self._velocity[i][0] += (cx - self.nodes[i].x) * self.group_strength * alpha
                self._velocity[i][1] += (cy - self.nodes[i].y) * self.group_strength * alpha

    def _apply_center(self) -> None:
        movable = [n for n in self.nodes if not n.fixed]
        if not movable or len(movable) != len(self.nodes):
            return
        sx = sum(n.x for n in movable) / len(movable) - self.size[0] / 2
        sy = sum(n.y for n in movable) / len(movable) - self.size[1] / 2
        for n in movable:
            n.x -= sx
            n.y -= sy

    def _remove_overlaps(self) -> None:
        n = len(self.nodes)
        for i in range(n):
            a = self.nodes[i]
            for j in range(i + 1, n):
                b = self.nodes[j]
                if a.fixed and b.fixed:
                    continue
                dx = b.x - a.x
                dy = b.y - a.y
                ox = (a.width + b.width) / 2 - abs(dx)
                oy = (a.height + b.height) / 2 - abs(dy)
                if ox <= 0 or oy <= 0:
                    continue
                if ox < oy:
                    shift, axis = ox * (1 if dx >= 0 else -1), "x"
                else:
                    shift, axis = oy * (1 if dy >= 0 else -1), "y"
                share_a = 0.0 if a.fixed else (1.0 if b.fixed else 0.5)
                share_b = 1.0 - share_a if not b.fixed else 0.0
                setattr(a, axis, getattr(a, axis) - shift * share_a)
                setattr(b, axis, getattr(b, axis) + shift * share_b)

    def _update_bounds(self) -> None:
        for group in self.groups:
            members = [self.nodes[i] for i in group.leaves if 0 <= i < len(self.nodes)]
            placed = [m for m in members if m.x is not None and m.y is not None]
            if not placed:
                group.bounds = None
                continue
            pad = group.padding
            group.bounds = (
                min(m.x - m.width / 2 for m in placed) - pad,
                min(m.y - m.height / 2 for m in placed) - pad,
                max(m.x + m.width / 2 for m in placed) + pad,
                max(m.y + m.height / 2 for m in placed) + pad,
            )

    def _jitter(self) -> float:
        return (self._rng.random() - 0.5) * 1e-6 or 1e-6
