"""Ordinal color scale over a 20-color categorical palette."""

from __future__ import annotations

from collections.abc import Hashable

CATEGORY20 = [
    "#1f77b4",
    "#aec7e8",
    "#ff7f0e",
    "#ffbb78",
    "#2ca02c",
    "#98df8a",
    "#d62728",
    "#ff9896",
    "#9467bd",
    "#c5b0d5",
    "#8c564b",
    "#c49c94",
    "#e377c2",
    "#f7b6d2",
    "#7f7f7f",
    "#c7c7c7",
    "#bcbd22",
    "#dbdb8d",
    "#17becf",
    "#9edae5",
]


class ColorScale:
    """Assign palette colors to keys in first-seen order, cycling when exhausted."""

    def __init__(self, palette: list[str] | None = None) -> None:
        self.palette = list(palette or CATEGORY20)
        self._assigned: dict[Hashable, str] = {}

    def __call__(self, key: Hashable) -> str:
        color = self._assigned.get(key)
        if color is None:
            color = self.palette[len(self._assigned) % len(self.palette)]
            self._assigned[key] = color
        return color

    def domain(self) -> list[Hashable]:
        return list(self._assigned)
