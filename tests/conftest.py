"""Shared fixtures for Compliance Masonry tests."""

from __future__ import annotations

from pathlib import Path

import pytest


def write_component(opencontrols: Path, directory: str, body: str) -> Path:
    component_dir = opencontrols / "components" / directory
    component_dir.mkdir(parents=True, exist_ok=True)
    path = component_dir / "component.yaml"
    path.write_text(body, encoding="utf-8")
    return path


def claims_component(*pairs: tuple[str, str], key: str | None = None) -> str:
    """A 3.0.0 component.yaml claiming the given (standard, control) pairs."""
    lines = ['schema_version: "3.0.0"']
    if key:
        lines.append(f"key: {key}")
    lines.append("satisfies:" if pairs else "satisfies: []")
    for standard_key, control_key in pairs:
        lines.append(f"  - standard_key: {standard_key}")
        lines.append(f"    control_key: {control_key}")
        lines.append("    narrative:")
        lines.append(f"      - text: Handles {control_key}")
    return "\n".join(lines) + "\n"


@pytest.fixture
def opencontrols(tmp_path: Path) -> Path:
    """A workspace requiring NIST-800-53@AC-2 with no components yet."""
    root = tmp_path / "opencontrols"
    (root / "components").mkdir(parents=True)
    (root / "standards").mkdir()
    (root / "certifications").mkdir()

    (root / "standards" / "NIST-800-53.yaml").write_text(
        "key: NIST-800-53\n"
        "name: NIST SP 800-53\n"
        "controls:\n"
        "  AC-2:\n"
        "    family: AC\n"
        "    name: Account Management\n"
        "    description: Manage information system accounts.\n"
        "  AC-6:\n"
        "    family: AC\n"
        "    name: Least Privilege\n",
        encoding="utf-8",
    )
    (root / "certifications" / "LATO.yaml").write_text(
        "name: LATO\n"
        "standards:\n"
        "  NIST-800-53:\n"
        "    controls:\n"
        "      AC-2: {}\n",
        encoding="utf-8",
    )
    return root


@pytest.fixture
def satisfied_workspace(opencontrols: Path) -> Path:
    """The LATO workspace with one component covering NIST-800-53@AC-2."""
    write_component(opencontrols, "auth", claims_component(("NIST-800-53", "AC-2")))
    return opencontrols


@pytest.fixture
def certification_path(opencontrols: Path) -> Path:
    return opencontrols / "certifications" / "LATO.yaml"


@pytest.fixture
def add_component(opencontrols: Path):
    """Write components/<directory>/component.yaml into the workspace."""

    def _add(directory: str, body: str) -> Path:
        return write_component(opencontrols, directory, body)

    return _add


@pytest.fixture
def claims():
    return claims_component
