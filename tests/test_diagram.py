import json
from pathlib import Path

import pytest

from forcediagram import ConstructionError, Diagram, DiagramState, LoadError
from forcediagram.options import Computed, DiagramOptions, Fixed
from forcediagram.surface import InputEvent


def _diagram(data, quiet_console, **kwargs) -> Diagram:
    return Diagram("#graph", "mem://graph.json", loader=lambda url: data, console=quiet_console, **kwargs)


def test_two_nodes_one_plain_link_end_to_end(quiet_console) -> None:
    data = {"nodes": [{"name": "A"}, {"name": "B"}], "links": [{"source": "A", "target": "B"}]}
    diagram = _diagram(data, quiet_console).init()

    assert diagram.state is DiagramState.FROZEN
    assert all(node.fixed for node in diagram.nodes)
    assert len(diagram.svg.select_all("link")) == 1
    assert len(diagram.svg.select_all("path-label")) == 0
    assert len(diagram.svg.select_all("path")) == 0
    assert len(diagram.svg.select_all("indicator")) == 0
    assert diagram.links[0].source is diagram.nodes[0]


def test_unresolved_endpoint_fails_and_shows_error(quiet_console) -> None:
    data = {"nodes": [{"name": "A"}], "links": [{"source": "Z", "target": "A"}]}
    diagram = _diagram(data, quiet_console)

    with pytest.raises(ConstructionError):
        diagram.init()

    assert diagram.state is DiagramState.FAILED
    indicator = diagram.svg.select_all("indicator").elements
    assert len(indicator) == 1
    assert "unknown source node 'Z'" in indicator[0].text
    assert len(diagram.svg.select_all("node")) == 0
    assert len(diagram.svg.select_all("link")) == 0
    assert diagram.simulation.ticks == 0
    assert "unknown source node" in quiet_console.file.getvalue()


def test_load_error_is_surfaced_then_raised(quiet_console) -> None:
    def broken(url):
        raise LoadError(f'Failed to load "{url}"')

    diagram = Diagram("#graph", "missing.json", loader=broken, console=quiet_console)
    with pytest.raises(LoadError):
        diagram.init()
    assert diagram.state is DiagramState.FAILED
    assert diagram.svg.select_all("indicator").elements[0].text == 'Failed to load "missing.json"'


def test_undecodable_file_fails_instead_of_hanging_in_loading(tmp_path: Path, quiet_console) -> None:
    src = tmp_path / "graph.json"
    src.write_bytes(b'{"nodes":[{"name":"\xff"}],"links":[]}')
    diagram = Diagram("#graph", str(src), console=quiet_console)

    with pytest.raises(LoadError, match="not valid UTF-8"):
        diagram.init()
    assert diagram.state is DiagramState.FAILED
    assert "not valid UTF-8" in diagram.svg.select_all("indicator").elements[0].text


def test_unexpected_loader_errors_become_load_errors(quiet_console) -> None:
    def loader(url):
        raise ValueError("bad payload")

    diagram = Diagram("#graph", "g.json", loader=loader, console=quiet_console)
    with pytest.raises(LoadError, match="bad payload") as excinfo:
        diagram.init()
    assert isinstance(excinfo.value.__cause__, ValueError)
    assert diagram.state is DiagramState.FAILED
    assert diagram.svg.select_all("indicator").elements[0].text == 'Failed to load "g.json": bad payload'


def test_distance_policy_errors_fail_the_diagram(quiet_console, document) -> None:
    def bad_distance(sim):
        raise RuntimeError("bad distance config")

    diagram = _diagram(document, quiet_console, distance=bad_distance)
    with pytest.raises(ConstructionError, match="bad distance config"):
        diagram.init()

    assert diagram.state is DiagramState.FAILED
    indicator = diagram.svg.select_all("indicator").elements
    assert len(indicator) == 1
    assert "bad distance config" in indicator[0].text
    assert len(diagram.svg.select_all("node")) == 0


def test_errors_while_ticking_remove_drawn_elements(quiet_console, document) -> None:
    def per_link(link):
        raise RuntimeError("no distance for link")

    diagram = _diagram(document, quiet_console, distance=lambda sim: sim.link_distance(per_link))
    with pytest.raises(ConstructionError, match="no distance for link"):
        diagram.init()

    assert diagram.state is DiagramState.FAILED
    for class_ in ("group", "link", "node", "path", "path-label"):
        assert len(diagram.svg.select_all(class_)) == 0
    assert "no distance for link" in diagram.svg.select_all("indicator").elements[0].text
    assert "no distance for link" in quiet_console.file.getvalue()


def test_layout_logs_progress(quiet_console, document) -> None:
    _diagram(document, quiet_console).init()
    log = quiet_console.file.getvalue()
    assert log.index("Loading") < log.index("Built") < log.index("Simulating ...") < log.index("Layout frozen")


def test_unexpected_build_errors_become_construction_errors(quiet_console) -> None:
    def boom(node):
        raise RuntimeError("classifier exploded")

    data = {"nodes": [{"name": "A"}], "links": []}
    with pytest.raises(ConstructionError, match="classifier exploded"):
        _diagram(data, quiet_console, group_pattern=boom).init()


def test_indicator_shows_loading_message_before_load(quiet_console) -> None:
    seen = {}

    def loader(url):
        seen["text"] = [el.text for el in diagram.svg.select_all("indicator").elements]
        seen["state"] = diagram.state
        return {"nodes": [], "links": []}

    diagram = Diagram("#graph", "g.json", loader=loader, console=quiet_console)
    diagram.init()
    assert seen == {"text": [Diagram.loading_message], "state": DiagramState.LOADING}
    assert diagram.state is DiagramState.FROZEN


def test_two_phase_ticking(quiet_console, document, monkeypatch) -> None:
    diagram = _diagram(document, quiet_console, max_ticks=40)
    phases = []
    original_forward = Diagram.ticks_forward

    def tracking_forward(self, count=None):
        phases.append(
            (
                count,
                self.state,
                len(self.svg.select_all("path-label")),
                len(self.svg.select_all("indicator")),
            )
        )
        original_forward(self, count)

    monkeypatch.setattr(Diagram, "ticks_forward", tracking_forward)
    diagram.init("protocol", "port")

    assert phases == [
        (None, DiagramState.SIMULATING, 0, 1),
        (1, DiagramState.SIMULATING_WITH_PATH, 4, 0),
    ]
    assert diagram.simulation.ticks == 41
    assert diagram.state is DiagramState.FROZEN


def test_paths_match_final_positions(quiet_console, document) -> None:
    diagram = _diagram(document, quiet_console).init("protocol", "port")
    for el, link in diagram.svg.select_all("path"):
        assert el.get("d") == link.d()
        assert el.get("id") == link.path_id()


def test_groups_and_labels_are_built(quiet_console, document) -> None:
    diagram = _diagram(document, quiet_console, group_pattern=r"^(\w+)\.").init("protocol", "port", "tier")

    assert [g.key for g in diagram.groups] == ["web", "db"]
    assert len(diagram.svg.select_all("group")) == 2
    labels = diagram.svg.select_all("path-label")
    # link 0: edge + source + target roles, link 1: target role, link 2: none
    assert len(labels) == 4
    for el in labels.elements:
        assert "visibility: hidden" in el.get("style")
    for group in diagram.groups:
        assert group.bounds is not None


def test_link_width_setter_and_distance_policies(quiet_console, document) -> None:
    applied = []
    diagram = _diagram(document, quiet_console, distance=lambda sim: applied.append(sim) or sim.link_distance(80))
    diagram.link_width(lambda meta: (meta or {}).get("weight"))
    diagram.init()

    assert applied == [diagram.simulation]
    assert diagram.simulation.distance_of(diagram.links[0]) == 80
    assert [l.width for l in diagram.links] == [3, 1, 1]

    fixed = _diagram(document, quiet_console, distance=Fixed(40))
    fixed.link_width(Fixed(2))
    fixed.init()
    assert fixed.simulation.distance_of(fixed.links[0]) == 40
    assert {l.width for l in fixed.links} == {2}


def test_distance_may_be_computed_per_link(quiet_console, document) -> None:
    per_link = Computed(lambda sim: sim.link_distance(lambda link: 50 + link.id))
    diagram = _diagram(document, quiet_console, distance=per_link).init()
    assert [diagram.simulation.distance_of(l) for l in diagram.links] == [50, 51, 52]


def test_zoom_toggles_labels_and_transforms_container(quiet_console, document) -> None:
    diagram = _diagram(document, quiet_console).init("protocol")

    assert diagram.zoom(2.0, (10.0, 5.0))
    assert diagram.svg.container.get("transform") == "translate(10.0,5.0) scale(2.0)"
    for el in diagram.svg.select_all("path-label").elements:
        assert "visibility: visible" in el.get("style")

    diagram.zoom(1.5)
    for el in diagram.svg.select_all("path-label").elements:
        assert "visibility: hidden" in el.get("style")


def test_drag_start_stops_the_event_from_zooming(quiet_console, document) -> None:
    diagram = _diagram(document, quiet_console).init()
    event = InputEvent("pointerdown")

    diagram.node_drag.start(diagram.nodes[0], event)

    assert event.propagation_stopped
    assert diagram.zoom(3.0, source_event=event) is False
    assert diagram.svg.scale == 1.0


def test_destroy_removes_surface_from_any_state(quiet_console, document) -> None:
    diagram = _diagram(document, quiet_console)
    diagram.destroy()  # idle, nothing to remove
    diagram.init()
    diagram.destroy()
    assert diagram.svg is None
    assert diagram.to_svg() == ""
    assert diagram.state is DiagramState.FROZEN


def test_to_svg_and_html(quiet_console, document) -> None:
    diagram = _diagram(document, quiet_console).init("protocol")
    svg = diagram.to_svg()
    assert svg.startswith("<svg")
    assert 'data-container="#graph"' in svg
    assert "textPath" in svg
    html = diagram.to_html(title="demo")
    assert '<div class="viewport" id="graph">' in html
    assert "<title>demo</title>" in html


def test_from_options_and_real_file(tmp_path: Path, quiet_console, document) -> None:
    src = tmp_path / "graph.json"
    src.write_text(json.dumps(document), encoding="utf-8")
    options = DiagramOptions(width=400, height=300, link_width_key="weight", link_width_scale=2.0, max_ticks=50)

    diagram = Diagram.from_options("#g", str(src), options, console=quiet_console).init(*options.meta_keys)

    assert diagram.state is DiagramState.FROZEN
    assert diagram.links[0].width == 6.0
    assert diagram.svg.root.get("width") == "400"
