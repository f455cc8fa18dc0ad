"""Text and JSON renderings of a gap analysis."""

from __future__ import annotations

import json
from typing import Iterable

from ..compliance.errors import MasonryError
from ..models.gap import GapResult
from ..utils.sanitize import sanitize_error


def format_text_report(result: GapResult) -> str:
    """The count line followed by one sorted standard@control per line."""
    return "\n".join(result.report_lines()) + "\n"


def format_json_report(result: GapResult, errors: Iterable[MasonryError] = ()) -> str:
    missing = [result.missing_control_list[key].model_dump() for key in result.missing_keys()]
    payload = {
        "certification": result.certification,
        "degraded": result.degraded,
        "required_count": len(result.master_control_list),
        "satisfied_count": len(result.master_control_list) - len(missing),
        "missing_count": len(missing),
        "missing": missing,
        "errors": [
            {**e.to_dict(), "message": sanitize_error(e.message), "path": sanitize_error(e.path or "") or None}
            for e in errors
        ],
    }
    return json.dumps(payload, indent=2) + "\n"


def format_inventory(inventory: dict[str, list[str]]) -> str:
    lines = []
    for key, components in inventory.items():
        lines.append(f"{key}: {', '.join(components) if components else '-'}")
    return "\n".join(lines) + ("\n" if lines else "")
