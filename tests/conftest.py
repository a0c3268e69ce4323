"""Pytest configuration and fixtures."""

import io
from typing import Any

import pytest
from rich.console import Console

from forcediagram.colors import ColorScale
from forcediagram.link import Link
from forcediagram.meta_data import Tag
from forcediagram.node import Node


@pytest.fixture
def quiet_console() -> Console:
    """Console that records output instead of writing to stderr."""
    return Console(file=io.StringIO(), width=200)


@pytest.fixture
def color() -> ColorScale:
    return ColorScale()


@pytest.fixture
def pair() -> tuple[Node, Node]:
    """Two positioned nodes, source left of target."""
    return (
        Node(id=0, name="A", color="#1f77b4", x=10.0, y=20.0),
        Node(id=1, name="B", color="#aec7e8", x=50.0, y=20.0),
    )


@pytest.fixture
def make_link(pair):
    def make(
        meta: list[Tag] | None = None,
        source_meta: list[Tag] | None = None,
        target_meta: list[Tag] | None = None,
        **kwargs: Any,
    ) -> Link:
        source, target = pair
        return Link(
            id=kwargs.pop("id", 0),
            source=kwargs.pop("source", source),
            target=kwargs.pop("target", target),
            meta=meta or [],
            source_meta=source_meta or [],
            target_meta=target_meta or [],
            **kwargs,
        )

    return make


@pytest.fixture
def document() -> dict[str, Any]:
    """A small diagram description with every metadata role in use."""
    return {
        "nodes": [
            {"name": "web.a", "meta": {"tier": "front"}},
            {"name": "web.b"},
            {"name": "db.main", "meta": {"tier": "data"}},
            {"name": "cache"},
        ],
        "links": [
            {
                "source": "web.a",
                "target": "db.main",
                "meta": {"protocol": "tcp", "weight": 3, "source": {"port": 40000}, "target": {"port": 5432}},
            },
            {"source": "web.b", "target": "db.main", "meta": {"target": {"port": 5432}}},
            {"source": "web.a", "target": "cache"},
        ],
    }
