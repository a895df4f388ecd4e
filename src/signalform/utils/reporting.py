"""
Reporting helpers (table or JSON) for lifecycle results.

`print_rows` keeps the columns that carry information and produces a compact
table for CLI usage. JSON output is also supported for the host runtime.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List

from ..core.lifecycle import ResourceState


def state_row(kind: str, action: str, state: ResourceState, *, status: str = "Success", error: str = "") -> Dict[str, Any]:
    """Flatten a lifecycle result into one report row."""
    return {
        "kind": kind,
        "name": state.name,
        "action": action,
        "id": state.id,
        "synced": state.synced,
        "last_updated": state.last_updated,
        "url": state.url,
        "status": status,
        "error": error,
    }


def print_rows(rows: List[Dict[str, Any]], fmt: str = "table") -> None:
    """Render result rows as a table or JSON.

    Args:
        rows: List of dict rows (see :func:`state_row`).
        fmt: Either ``"table"`` (default) or ``"json"``.
    """
    if fmt == "json":
        print(json.dumps(rows, indent=2))
        return

    def _present(v) -> bool:
        return not (v is None or v == "" or v == [])

    candidates = ["kind", "name", "action", "id", "synced", "last_updated", "url", "status", "error"]
    mandatory = {"kind", "name", "action", "status"}
    cols = [c for c in candidates if c in mandatory or any(_present(r.get(c)) for r in rows)]

    def _fmt(v, col):
        if isinstance(v, bool):
            return "✓" if v else "✗"
        if col == "last_updated" and isinstance(v, float):
            return f"{v:.0f}"
        s = "" if v is None else str(v)
        if col == "error" and len(s) > 160:
            s = s[:160]
        return s or "—"

    widths = {c: len(c) for c in cols}
    for r in rows:
        for c in cols:
            widths[c] = max(widths[c], len(_fmt(r.get(c), c)))

    print("| " + " | ".join(c.ljust(widths[c]) for c in cols) + " |")
    print("| " + " | ".join("-" * widths[c] for c in cols) + " |")
    for r in rows:
        print("| " + " | ".join(_fmt(r.get(c), c).ljust(widths[c]) for c in cols) + " |")
