"""Graph export helpers for DOT and simple standalone HTML outputs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from .graph import Graph


def export_dot(graph: Graph, output_file: Path) -> None:
    lines = ["digraph GraphView {"]
    lines.append("  rankdir=LR;")

    for node in graph.nodes():
        label = ":".join(node.labels) or node.id
        caption = next((p.value for p in node.property_list if p.key == "name"), "")
        if caption:
            label = f"{label}\\n{caption}"
        attrs = [f'label="{_esc(label)}"']
        if node.selected:
            attrs.append("penwidth=3")
        if node.fixed:
            attrs.append("style=filled")
        lines.append(f'  "{_esc(node.id)}" [{", ".join(attrs)}];')

    for rel in graph.relationships():
        attrs = [f'label="{_esc(rel.type)}"']
        if rel.selected:
            attrs.append("penwidth=3")
        lines.append(f'  "{_esc(rel.source.id)}" -> "{_esc(rel.target.id)}" [{", ".join(attrs)}];')

    lines.append("}")
    output_file.write_text("\n".join(lines), encoding="utf-8")


def graph_payload(graph: Graph) -> Dict[str, Any]:
    return {
        "nodes": [
            {
                "id": node.id,
                "labels": node.labels,
                "properties": {p.key: p.value for p in node.property_list},
                "selected": node.selected,
                "fixed": node.fixed,
                "expanded": node.expanded,
            }
            for node in graph.nodes()
        ],
        "relationships": [
            {
                "id": rel.id,
                "type": rel.type,
                "source": rel.source.id,
                "target": rel.target.id,
                "selected": rel.selected,
            }
            for rel in graph.relationships()
        ],
    }


def export_html(graph: Graph, output_file: Path) -> None:
    output_file.write_text(_basic_html_export(graph_payload(graph)), encoding="utf-8")


def _basic_html_export(payload: Dict[str, Any]) -> str:
    data = json.dumps(payload).replace("</", "<\\/")
    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>GraphView Export</title>
  <style>
    body {{ font-family: ui-monospace, SFMono-Regular, Menlo, monospace; margin: 20px; }}
    #container {{ display: grid; grid-template-columns: 1fr 1fr; gap: 18px; }}
    .panel {{ border: 1px solid #ddd; border-radius: 8px; padding: 10px; }}
    ul {{ list-style: none; padding: 0; margin: 0; }}
    li {{ margin: 4px 0; }}
    .selected {{ font-weight: bold; }}
  </style>
</head>
<body>
  <h1>GraphView Export</h1>
  <div id="container">
    <div class="panel">
      <h2>Nodes</h2>
      <ul id="nodes"></ul>
    </div>
    <div class="panel">
      <h2>Relationships</h2>
      <ul id="relationships"></ul>
    </div>
  </div>
  <script id="graph-data" type="application/json">{data}</script>
  <script>
    const graph = JSON.parse(document.getElementById('graph-data').textContent);
    const nodesEl = document.getElementById('nodes');
    const relsEl = document.getElementById('relationships');
    graph.nodes.forEach(n => {{
      const li = document.createElement('li');
      li.textContent = `${{n.id}} :${{n.labels.join(':')}} ${{JSON.stringify(n.properties)}}`;
      if (n.selected) li.className = 'selected';
      nodesEl.appendChild(li);
    }});
    graph.relationships.forEach(r => {{
      const li = document.createElement('li');
      li.textContent = `(${{r.source}})-[:${{r.type}}]->(${{r.target}})`;
      if (r.selected) li.className = 'selected';
      relsEl.appendChild(li);
    }});
  </script>
</body>
</html>
"""


def _esc(text: str) -> str:
    return text.replace('"', '\\"')
