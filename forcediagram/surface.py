"""SVG rendering surface with d3-style data-bound selections."""

from __future__ import annotations

import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator

SVG_NS = "http://www.w3.org/2000/svg"


@dataclass(frozen=True)
class BBox:
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2


@dataclass
class InputEvent:
    """A pointer/wheel event that listeners may stop from propagating."""

    kind: str
    propagation_stopped: bool = False

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


def text_width(text: str, font_size: float) -> float:
    """Estimate rendered text width without font metrics."""
    width = 0.0
    for ch in text:
        if ch.isspace():
            width += font_size * 0.33
        elif ch in "il":
            width += font_size * 0.3
        elif ch in "mwMW@#":
            width += font_size * 0.9
        else:
            width += font_size * 0.6
    return width


def fmt(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        if math.isclose(value, round(value)):
            return str(int(round(value)))
        return f"{value:.3f}".rstrip("0").rstrip(".")
    return str(value)


def has_class(elem: ET.Element, class_: str) -> bool:
    return class_ in (elem.get("class") or "").split()


class Selection:
    """Elements paired with the datum each was bound to."""

    def __init__(self, surface: "Surface", items: Iterable[tuple[ET.Element, Any]]) -> None:
        self.surface = surface
        self.items = list(items)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[tuple[ET.Element, Any]]:
        return iter(self.items)

    @property
    def elements(self) -> list[ET.Element]:
        return [el for el, _ in self.items]

    @property
    def data(self) -> list[Any]:
        return [d for _, d in self.items]

    def attr(self, name: str, value: Any) -> "Selection":
        """Set an attribute; a callable value is invoked with each datum."""
        for el, d in self.items:
            v = _evaluate(value, d)
            if v is None:
                el.attrib.pop(name, None)
            else:
                el.set(name, fmt(v))
        return self

    def style(self, name: str, value: Any) -> "Selection":
        for el, d in self.items:
            styles = _parse_style(el.get("style"))
            styles[name] = fmt(_evaluate(value, d))
            el.set("style", "; ".join(f"{k}: {v}" for k, v in styles.items()))
        return self

    def text(self, value: Any) -> "Selection":
        for el, d in self.items:
            el.text = fmt(_evaluate(value, d))
        return self

    def append(self, tag: str) -> "Selection":
        """Append one child per element; children inherit the parent's datum."""
        children = []
        for el, d in self.items:
            child = self.surface.sub(el, tag)
            self.surface.register(child, d)
            children.append((child, d))
        return Selection(self.surface, children)

    def each(self, fn: Callable[[ET.Element, Any], None]) -> "Selection":
        for el, d in self.items:
            fn(el, d)
        return self

    def call(self, fn: Callable[..., Any], *args: Any) -> "Selection":
        fn(self, *args)
        return self

    def remove(self) -> None:
        for el, _ in self.items:
            self.surface.detach(el)
        self.items = []


def _evaluate(value: Any, datum: Any) -> Any:
    return value(datum) if callable(value) else value


def _parse_style(style: str | None) -> dict[str, str]:
    styles: dict[str, str] = {}
    for part in (style or "").split(";"):
        if ":" in part:
            key, val = part.split(":", 1)
            styles[key.strip()] = val.strip()
    return styles


class Surface:
    """An SVG document: svg > g.zoom > g.container, plus a zoom behavior."""

    def __init__(self, width: int, height: int, *, container_id: str | None = None) -> None:
        self.width = width
        self.height = height
        self.scale = 1.0
        self.translate = (0.0, 0.0)
        self.removed = False
        self._data: dict[int, Any] = {}
        self._parents: dict[int, ET.Element] = {}
        self._zoom_listeners: list[Callable[[float, tuple[float, float]], None]] = []

        self.root = ET.Element("svg", {"xmlns": SVG_NS, "width": fmt(width), "height": fmt(height)})
        if container_id:
            self.root.set("data-container", container_id)
        self.zoom_layer = self.sub(self.root, "g", {"class": "zoom"})
        self.container = self.sub(self.zoom_layer, "g", {"class": "container"})
        # Catches pointer events anywhere in the viewport so the view pans from empty space.
        self.sub(
            self.container,
            "rect",
            {
                "class": "background",
                "width": fmt(width * 10),
                "height": fmt(height * 10),
                "transform": f"translate(-{fmt(width * 5)}, -{fmt(height * 5)})",
                "style": "opacity: 0",
            },
        )

    def sub(self, parent: ET.Element, tag: str, attrs: dict[str, str] | None = None) -> ET.Element:
        child = ET.SubElement(parent, tag, attrs or {})
        self._parents[id(child)] = parent
        return child

    def register(self, elem: ET.Element, datum: Any) -> None:
        self._data[id(elem)] = datum

    def detach(self, elem: ET.Element) -> None:
        parent = self._parents.pop(id(elem), None)
        if parent is not None and elem in list(parent):
            parent.remove(elem)
        self._data.pop(id(elem), None)

    def bind(self, tag: str, data: Iterable[Any], class_: str | None = None) -> Selection:
        """Append one `tag` element to the container per datum."""
        items = []
        for d in data:
            attrs = {"class": class_} if class_ else {}
            elem = self.sub(self.container, tag, attrs)
            self.register(elem, d)
            items.append((elem, d))
        return Selection(self, items)

    def append(self, tag: str, attrs: dict[str, Any] | None = None) -> Selection:
        elem = self.sub(self.container, tag, {k: fmt(v) for k, v in (attrs or {}).items()})
        self.register(elem, None)
        return Selection(self, [(elem, None)])

    def select_all(self, class_: str) -> Selection:
        return Selection(
            self,
            [(el, self._data.get(id(el))) for el in self.root.iter() if has_class(el, class_)],
        )

    def find_by_id(self, elem_id: str) -> ET.Element | None:
        for el in self.root.iter():
            if el.get("id") == elem_id:
                return el
        return None

    def on_zoom(self, listener: Callable[[float, tuple[float, float]], None]) -> None:
        self._zoom_listeners.append(listener)

    def zoom(
        self,
        scale: float,
        translate: tuple[float, float] = (0.0, 0.0),
        source_event: InputEvent | None = None,
    ) -> bool:
        """Apply a zoom/pan; returns False when the input event was already consumed."""
        if source_event is not None and source_event.propagation_stopped:
            return False
        self.scale = scale
        self.translate = translate
        self.root.set("data-scale", fmt(scale))
        for listener in self._zoom_listeners:
            listener(scale, translate)
        return True

    def remove(self) -> None:
        self.removed = True
        self._data.clear()
        self._zoom_listeners.clear()

    def to_svg(self) -> str:
        if self.removed:
            return ""
        return ET.tostring(self.root, encoding="unicode") + "\n"
