"""Normalize raw node/link metadata into display tags."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence


@dataclass(frozen=True)
class Tag:
    """One displayable metadata entry; `class_` doubles as the CSS class."""

    class_: str
    value: Any


class MetaData:
    """Raw metadata, optionally scoped to the "source" or "target" sub-role.

    >>> MetaData({"kind": "uses", "source": {"port": 80}}, "source").get(["port"])
    [Tag(class_='port', value=80)]
    """

    def __init__(self, raw: Any, role: str | None = None) -> None:
        data = raw if isinstance(raw, dict) else {}
        if role is not None:
            scoped = data.get(role)
            data = scoped if isinstance(scoped, dict) else {}
        self._data = data

    def get(self, keys: Sequence[str]) -> list[Tag]:
        """Return one tag per recognized key present, in `keys` order."""
        tags: list[Tag] = []
        for key in keys:
            value = self._data.get(key)
            if value is None:
                continue
            tags.append(Tag(class_=key, value=value))
        return tags
