"""Fetch the JSON diagram description from a URL or local file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import unquote, urlparse
from urllib.request import Request, urlopen

from .errors import LoadError


def fetch_json(url: str, *, timeout_s: float = 10.0) -> Any:
    """Return the decoded JSON at `url` (http(s)://, file:// or a plain path)."""
    parsed = urlparse(url)
    try:
        if parsed.scheme in ("http", "https"):
            req = Request(url, headers={"Accept": "application/json"})
            with urlopen(req, timeout=timeout_s) as resp:
                text = resp.read().decode("utf-8")
        elif parsed.scheme == "file":
            text = Path(unquote(parsed.path)).read_text(encoding="utf-8")
        else:
            text = Path(url).read_text(encoding="utf-8")
    except HTTPError as e:
        raise LoadError(f'Failed to load "{url}": HTTP {e.code} {e.reason}') from e
    except URLError as e:
        raise LoadError(f'Failed to load "{url}": {e.reason}') from e
    except OSError as e:
        raise LoadError(f'Failed to load "{url}": {e.strerror or e}') from e
    except UnicodeDecodeError as e:
        raise LoadError(f'Failed to load "{url}": not valid UTF-8 ({e.reason} at byte {e.start})') from e

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise LoadError(f'Failed to parse "{url}": {e.msg} (line {e.lineno})') from e


def parse_document(data: Any, url: str = "<data>") -> tuple[list[Any], list[Any]]:
    """Split a loaded document into its `nodes` and `links` records."""
    if not isinstance(data, dict):
        raise LoadError(f'"{url}" must contain a JSON object with "nodes" and "links"')
    nodes = data.get("nodes") or []
    links = data.get("links") or []
    if not isinstance(nodes, list) or not isinstance(links, list):
        raise LoadError(f'"{url}": "nodes" and "links" must be arrays')
    return nodes, links
