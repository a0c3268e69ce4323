"""Diagram configuration: value-or-function settings and YAML option files."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Union

import yaml


@dataclass(frozen=True)
class Fixed:
    """A setting that is the same for every link."""

    value: Any


@dataclass(frozen=True)
class Computed:
    """A setting produced by a caller-supplied function."""

    fn: Callable[..., Any]


Setting = Union[Fixed, Computed]


def as_setting(value: Any) -> Setting:
    """Tag a plain value or callable; already-tagged settings pass through."""
    if isinstance(value, (Fixed, Computed)):
        return value
    if callable(value):
        return Computed(value)
    return Fixed(value)


def resolve_distance(distance: Any) -> Callable[[Any], Any]:
    """Return a callable that applies the link distance policy to a simulation."""
    setting = as_setting(distance)
    if isinstance(setting, Computed):
        return setting.fn
    fixed = setting.value
    return lambda simulation: simulation.link_distance(fixed)


def resolve_width(width: Any) -> Callable[[Any], float]:
    """Return a callable mapping raw link metadata to a stroke width (default 1)."""
    setting = as_setting(width)
    if isinstance(setting, Computed):
        fn = setting.fn
        return lambda meta: fn(meta) or 1
    fixed = setting.value
    return lambda meta: fixed or 1


def width_from_meta(key: str, scale: float = 1.0) -> Callable[[Any], float | None]:
    """Build a width function reading a numeric metadata field."""

    def width(meta: Any) -> float | None:
        if not isinstance(meta, dict):
            return None
        try:
            return float(meta[key]) * scale
        except (KeyError, TypeError, ValueError):
            return None

    return width


@dataclass
class DiagramOptions:
    """Static configuration for one diagram, loadable from YAML."""

    width: int = 960
    height: int = 600
    distance: float = 150
    group_pattern: str | None = None
    meta_keys: list[str] = field(default_factory=list)
    max_ticks: int = 1000
    link_width_key: str | None = None
    link_width_scale: float = 1.0
    seed: int = 1

    @classmethod
    def from_yaml(cls, path: Path) -> "DiagramOptions":
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping of options")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DiagramOptions":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown option(s): {', '.join(unknown)}")
        opts = cls(**data)
        opts.meta_keys = [str(k) for k in (opts.meta_keys or [])]
        return opts

    def merged(self, **overrides: Any) -> "DiagramOptions":
        """Copy with every non-None override applied."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data.update({k: v for k, v in overrides.items() if v is not None})
        return DiagramOptions(**data)

    def link_width(self) -> Callable[[Any], float | None] | float:
        if self.link_width_key:
            return width_from_meta(self.link_width_key, self.link_width_scale)
        return 1
