"""Gap analysis result models."""

from __future__ import annotations

from pydantic import BaseModel

from .opencontrol import Control, Satisfies


class MissingControl(BaseModel):
    """A certification-required control that no component satisfies."""

    key: str
    standard_key: str
    control_key: str
    name: str = ""


class GapResult(BaseModel):
    """Full gap analysis result for one certification."""

    certification: str
    master_control_list: dict[str, Control] = {}
    actual_satisfied_controls: dict[str, Satisfies] = {}
    missing_control_list: dict[str, MissingControl] = {}
    degraded: bool = False

    def missing_keys(self) -> list[str]:
        """Missing composite keys in lexicographic order."""
        return sorted(self.missing_control_list)

    def report_lines(self) -> list[str]:
        lines = [f"Number of missing controls: {len(self.missing_control_list)}"]
        lines.extend(self.missing_keys())
        return lines
