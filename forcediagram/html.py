"""Standalone HTML page around a rendered diagram, with pan/zoom."""

from __future__ import annotations

import html

from .link import LABEL_ZOOM_THRESHOLD


def wrap_html(svg: str, *, title: str, container: str = "diagram") -> str:
    """Wrap SVG in an HTML page; link labels show only when zoomed past the threshold."""
    t = html.escape(title, quote=True)
    c = html.escape(container.lstrip("#"), quote=True)
    return (
        "<!doctype html>\n"
        "<html>\n"
        "<head>\n"
        f"  <meta charset=\"utf-8\" />\n  <title>{t}</title>\n"
        "  <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />\n"
        "  <style>\n"
        "    html, body { height: 100%; }\n"
        "    body { margin: 0; background: #ffffff; color: #222; font-family: system-ui, -apple-system, Segoe UI, Roboto, Helvetica, Arial; }\n"
        "    .wrap { padding: 12px; height: 100vh; box-sizing: border-box; display: flex; flex-direction: column; }\n"
        "    .toolbar { display: flex; gap: 8px; align-items: center; margin: 0 0 10px 0; }\n"
        "    .btn { background: #f4f4f4; color: #222; border: 1px solid #bbb; border-radius: 8px; padding: 6px 10px; cursor: pointer; }\n"
        "    .hint { color: #777; font-size: 12px; }\n"
        "    .viewport { border: 1px solid #ddd; border-radius: 10px; overflow: hidden; flex: 1; min-height: 0; }\n"
        "    svg { width: 100%; height: 100%; display: block; touch-action: none; user-select: none; }\n"
        "    .link { stroke: #999; stroke-opacity: .6; }\n"
        "    .node circle { stroke: #fff; stroke-width: 1.5px; }\n"
        "    .node-label, .path-label { font-size: 10px; }\n"
        "  </style>\n"
        "</head>\n"
        "<body>\n"
        "  <div class=\"wrap\">\n"
        "    <div class=\"toolbar\">\n"
        "      <button class=\"btn\" id=\"resetBtn\" type=\"button\">Reset</button>\n"
        "      <span class=\"hint\">Drag to pan • Scroll to zoom • Zoom in to read link labels</span>\n"
        "    </div>\n"
        f"    <div class=\"viewport\" id=\"{c}\">\n"
        f"{svg}\n"
        "    </div>\n"
        "  </div>\n"
        "  <script>\n"
        "    (function () {\n"
        f"      const viewportEl = document.getElementById('{c}');\n"
        "      const svg = viewportEl.querySelector('svg');\n"
        "      if (!svg) return;\n"
        "      if (!svg.getAttribute('viewBox')) {\n"
        "        const w = svg.getAttribute('width') || 960;\n"
        "        const h = svg.getAttribute('height') || 600;\n"
        "        svg.setAttribute('viewBox', `0 0 ${w} ${h}`);\n"
        "      }\n"
        "\n"
        "      const vb = svg.viewBox.baseVal;\n"
        "      const initial = { x: vb.x, y: vb.y, width: vb.width, height: vb.height };\n"
        f"      const labelThreshold = {LABEL_ZOOM_THRESHOLD};\n"
        "      const baseScale = parseFloat(svg.getAttribute('data-scale') || '1');\n"
        "\n"
        "      const updateLabels = () => {\n"
        "        const scale = baseScale * initial.width / vb.width;\n"
        "        const visibility = scale > labelThreshold ? 'visible' : 'hidden';\n"
        "        svg.querySelectorAll('.path-label').forEach((el) => { el.style.visibility = visibility; });\n"
        "      };\n"
        "\n"
        "      const zoomAt = (clientX, clientY, factor) => {\n"
        "        const rect = svg.getBoundingClientRect();\n"
        "        const px = (clientX - rect.left) / rect.width;\n"
        "        const py = (clientY - rect.top) / rect.height;\n"
        "        const newW = vb.width / factor;\n"
        "        const newH = vb.height / factor;\n"
        "        vb.x += (vb.width - newW) * px;\n"
        "        vb.y += (vb.height - newH) * py;\n"
        "        vb.width = newW;\n"
        "        vb.height = newH;\n"
        "        updateLabels();\n"
        "      };\n"
        "\n"
        "      let isPanning = false;\n"
        "      let start = { x: 0, y: 0, vbX: 0, vbY: 0 };\n"
        "\n"
        "      svg.addEventListener('pointerdown', (e) => {\n"
        "        isPanning = true;\n"
        "        svg.setPointerCapture(e.pointerId);\n"
        "        start = { x: e.clientX, y: e.clientY, vbX: vb.x, vbY: vb.y };\n"
        "      });\n"
        "      svg.addEventListener('pointerup', () => { isPanning = false; });\n"
        "      svg.addEventListener('pointercancel', () => { isPanning = false; });\n"
        "      svg.addEventListener('pointermove', (e) => {\n"
        "        if (!isPanning) return;\n"
        "        const rect = svg.getBoundingClientRect();\n"
        "        vb.x = start.vbX - (e.clientX - start.x) * (vb.width / rect.width);\n"
        "        vb.y = start.vbY - (e.clientY - start.y) * (vb.height / rect.height);\n"
        "      });\n"
        "\n"
        "      svg.addEventListener('wheel', (e) => {\n"
        "        e.preventDefault();\n"
        "        zoomAt(e.clientX, e.clientY, e.deltaY > 0 ? 1 / 1.15 : 1.15);\n"
        "      }, { passive: false });\n"
        "\n"
        "      document.getElementById('resetBtn')?.addEventListener('click', () => {\n"
        "        vb.x = initial.x;\n"
        "        vb.y = initial.y;\n"
        "        vb.width = initial.width;\n"
        "        vb.height = initial.height;\n"
        "        updateLabels();\n"
        "      });\n"
        "      updateLabels();\n"
        "    })();\n"
        "  </script>\n"
        "</body>\n"
        "</html>\n"
    )
