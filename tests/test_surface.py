from forcediagram.colors import CATEGORY20, ColorScale
from forcediagram.surface import InputEvent, Surface, fmt, text_width


def test_surface_skeleton() -> None:
    surface = Surface(960, 600)
    assert surface.root.get("width") == "960"
    assert surface.zoom_layer.get("class") == "zoom"
    rect = surface.container.find("rect")
    assert rect.get("width") == "9600"
    assert rect.get("transform") == "translate(-4800, -3000)"


def test_bind_select_and_remove() -> None:
    surface = Surface(10, 10)
    sel = surface.bind("circle", ["a", "b"], "dot").attr("r", lambda d: len(d) + 1)
    assert [el.get("r") for el in sel.elements] == ["2", "2"]
    assert surface.select_all("dot").data == ["a", "b"]

    sel.remove()
    assert len(surface.select_all("dot")) == 0


def test_style_merges_properties() -> None:
    surface = Surface(10, 10)
    sel = surface.append("text").style("fill", "red").style("opacity", 0.5).style("fill", "blue")
    assert sel.elements[0].get("style") == "fill: blue; opacity: 0.5"


def test_zoom_notifies_listeners_unless_event_consumed() -> None:
    surface = Surface(10, 10)
    seen = []
    surface.on_zoom(lambda scale, translate: seen.append((scale, translate)))

    assert surface.zoom(2.0, (1.0, 2.0))
    consumed = InputEvent("wheel")
    consumed.stop_propagation()
    assert surface.zoom(3.0, source_event=consumed) is False
    assert seen == [(2.0, (1.0, 2.0))]
    assert surface.root.get("data-scale") == "2"


def test_removed_surface_serializes_empty() -> None:
    surface = Surface(10, 10)
    assert surface.to_svg().startswith("<svg")
    surface.remove()
    assert surface.to_svg() == ""


def test_fmt_and_text_width() -> None:
    assert fmt(3.0) == "3"
    assert fmt(0.25) == "0.25"
    assert fmt(True) == "true"
    assert text_width("ii", 10) == 6.0
    assert text_width("ab", 10) == 12.0


def test_color_scale_is_stable_and_cycles() -> None:
    color = ColorScale()
    assert color("a") == CATEGORY20[0]
    assert color("b") == CATEGORY20[1]
    assert color("a") == CATEGORY20[0]
    for i in range(18):
        color(i)
    assert color("wrap") == CATEGORY20[0]
    assert color.domain()[:2] == ["a", "b"]
