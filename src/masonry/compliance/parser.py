"""Descriptor parsing.

Turns raw component, standard and certification YAML into typed records.
Each descriptor kind keeps a table of schema version -> mapping function;
versions missing from the table are rejected rather than parsed loosely.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

import yaml
from pydantic import ValidationError

from ..models.opencontrol import (
    Certification,
    CertifiedStandard,
    Component,
    Control,
    NarrativeSection,
    Satisfies,
    Standard,
)
from .errors import MalformedSyntax, MissingRequiredField, UnsupportedSchemaVersion

Descriptor = Union[Component, Standard, Certification]
PathLike = Optional[Union[Path, str]]

DEFAULT_SCHEMA_VERSION = "1.0.0"

# Unversioned component.yaml files are read with the newest component mapping.
DEFAULT_COMPONENT_SCHEMA_VERSION = "3.1.0"

# Claim fields consumed by the mapping functions; anything else lands in metadata.
_CLAIM_FIELDS = {
    "standard_key", "control_key", "narrative",
    "implementation_status", "implementation_statuses",
    "control_origin", "control_origins",
}


class DescriptorKind(str, Enum):
    COMPONENT = "component"
    STANDARD = "standard"
    CERTIFICATION = "certification"


def _load_mapping(data: bytes | str, path: PathLike) -> dict:
    """Parse YAML and require a mapping at the top level."""
    try:
        content = yaml.safe_load(data)
    except yaml.YAMLError as e:
        raise MalformedSyntax(f"invalid YAML: {e}", path) from e
    if not isinstance(content, dict):
        raise MalformedSyntax("descriptor must be a YAML mapping", path)
    return content


def _schema_version(content: dict, kind: DescriptorKind, path: PathLike, default: Optional[str]) -> str:
    version = content.get("schema_version")
    if version is None or version == "":
        if default is None:
            raise MissingRequiredField(f"{kind.value} is missing schema_version", path)
        return default
    return str(version)


def _as_list(value) -> list[str]:
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return [str(v) for v in value if v is not None]
    return [str(value)]


def _as_mapping(value, what: str, path: PathLike) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedSyntax(f"{what} must be a mapping", path)
    return value


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


def _claim_base(claim, path: PathLike) -> dict:
    if not isinstance(claim, dict):
        raise MalformedSyntax("each satisfies entry must be a mapping", path)
    for field in ("standard_key", "control_key"):
        if claim.get(field) in (None, ""):
            raise MissingRequiredField(f"satisfies entry is missing {field}", path)
    return {
        "standard_key": str(claim["standard_key"]),
        "control_key": str(claim["control_key"]),
        "metadata": {k: v for k, v in claim.items() if k not in _CLAIM_FIELDS},
    }


def _narrative_sections(value, path: PathLike) -> list[NarrativeSection]:
    if value is None or value == "":
        return []
    if isinstance(value, str):
        return [NarrativeSection(text=value)]
    if not isinstance(value, list):
        raise MalformedSyntax("narrative must be a list of sections", path)
    sections: list[NarrativeSection] = []
    for section in value:
        if isinstance(section, dict):
            key = section.get("key")
            sections.append(NarrativeSection(
                key=str(key) if key is not None else None,
                text=str(section.get("text") or ""),
            ))
        elif section is not None:
            sections.append(NarrativeSection(text=str(section)))
    return sections


def _map_claim_v2(claim: dict, path: PathLike) -> Satisfies:
    base = _claim_base(claim, path)
    narrative = claim.get("narrative")
    return Satisfies(
        **base,
        narrative=[NarrativeSection(text=str(narrative))] if narrative else [],
        implementation_statuses=_as_list(claim.get("implementation_status")),
        control_origins=_as_list(claim.get("control_origin")),
    )


def _map_claim_v3(claim: dict, path: PathLike) -> Satisfies:
    base = _claim_base(claim, path)
    return Satisfies(
        **base,
        narrative=_narrative_sections(claim.get("narrative"), path),
        implementation_statuses=_as_list(claim.get("implementation_status")),
        control_origins=_as_list(claim.get("control_origin")),
    )


def _map_claim_v3_1(claim: dict, path: PathLike) -> Satisfies:
    base = _claim_base(claim, path)
    return Satisfies(
        **base,
        narrative=_narrative_sections(claim.get("narrative"), path),
        implementation_statuses=_as_list(claim.get("implementation_statuses")),
        control_origins=_as_list(claim.get("control_origins")),
    )


def _component_builder(map_claim: Callable[[dict, PathLike], Satisfies]):
    """Layer a version's claim mapping onto the shared component shape."""

    def build(content: dict, version: str, path: PathLike) -> Component:
        satisfies = content.get("satisfies") or []
        if not isinstance(satisfies, list):
            raise MalformedSyntax("satisfies must be a list", path)
        key = content.get("key")
        return Component(
            key=str(key) if key is not None else "",
            name=str(content.get("name") or ""),
            schema_version=version,
            responsible_role=str(content.get("responsible_role") or ""),
            metadata=_as_mapping(content.get("metadata"), "metadata", path),
            satisfies=[map_claim(claim, path) for claim in satisfies],
        )

    return build


COMPONENT_SCHEMAS: dict[str, Callable[[dict, str, PathLike], Component]] = {
    "2.0.0": _component_builder(_map_claim_v2),
    "3.0.0": _component_builder(_map_claim_v3),
    "3.1.0": _component_builder(_map_claim_v3_1),
}


# ---------------------------------------------------------------------------
# Standards and certifications
# ---------------------------------------------------------------------------


def _map_controls(value, path: PathLike, standard_key: str = "") -> dict[str, Control]:
    controls: dict[str, Control] = {}
    for control_key, control in _as_mapping(value, "controls", path).items():
        fields = _as_mapping(control, f"control {control_key}", path)
        controls[str(control_key)] = Control(
            key=str(control_key),
            standard_key=standard_key,
            name=str(fields.get("name") or ""),
            family=str(fields.get("family") or ""),
            description=str(fields.get("description") or ""),
        )
    return controls


def _map_standard_v1(content: dict, version: str, path: PathLike) -> Standard:
    if content.get("key") in (None, ""):
        raise MissingRequiredField("standard is missing key", path)
    return Standard(
        key=str(content["key"]),
        name=str(content.get("name") or ""),
        controls=_map_controls(content.get("controls"), path, str(content["key"])),
    )


def _map_certification_v1(content: dict, version: str, path: PathLike) -> Certification:
    if "standards" not in content:
        raise MissingRequiredField("certification is missing standards", path)
    standards: dict[str, CertifiedStandard] = {}
    for standard_key, standard in _as_mapping(content["standards"], "standards", path).items():
        fields = _as_mapping(standard, f"standard {standard_key}", path)
        # Inline form: the standard entry maps control keys directly.
        controls = fields["controls"] if "controls" in fields else fields
        standards[str(standard_key)] = CertifiedStandard(
            controls=_map_controls(controls, path, str(standard_key)),
        )
    key = content.get("key") or content.get("name")
    if not key and path is not None:
        key = Path(path).stem
    return Certification(key=str(key or ""), standards=standards)


STANDARD_SCHEMAS: dict[str, Callable[[dict, str, PathLike], Standard]] = {
    "1.0.0": _map_standard_v1,
}

CERTIFICATION_SCHEMAS: dict[str, Callable[[dict, str, PathLike], Certification]] = {
    "1.0.0": _map_certification_v1,
}

_SCHEMAS: dict[DescriptorKind, tuple[dict, Optional[str]]] = {
    DescriptorKind.COMPONENT: (COMPONENT_SCHEMAS, DEFAULT_COMPONENT_SCHEMA_VERSION),
    DescriptorKind.STANDARD: (STANDARD_SCHEMAS, DEFAULT_SCHEMA_VERSION),
    DescriptorKind.CERTIFICATION: (CERTIFICATION_SCHEMAS, DEFAULT_SCHEMA_VERSION),
}


def parse_descriptor(data: bytes | str, kind: DescriptorKind, path: PathLike = None) -> Descriptor:
    """Parse raw descriptor data of the given kind into its typed record.

    Raises MalformedSyntax, UnsupportedSchemaVersion or MissingRequiredField.
    Pure function; safe to call from many threads.
    """
    kind = DescriptorKind(kind)
    schemas, default_version = _SCHEMAS[kind]
    content = _load_mapping(data, path)
    version = _schema_version(content, kind, path, default_version)

    mapper = schemas.get(version)
    if mapper is None:
        supported = ", ".join(sorted(schemas))
        raise UnsupportedSchemaVersion(
            f"{kind.value} schema_version {version} is not supported (supported: {supported})",
            path,
        )

    try:
        return mapper(content, version, path)
    except ValidationError as e:
        raise MalformedSyntax(f"invalid {kind.value} fields: {e.error_count()} error(s)", path) from e


def parse_component(data: bytes | str, path: PathLike = None) -> Component:
    return parse_descriptor(data, DescriptorKind.COMPONENT, path)


def parse_standard(data: bytes | str, path: PathLike = None) -> Standard:
    return parse_descriptor(data, DescriptorKind.STANDARD, path)


def parse_certification(data: bytes | str, path: PathLike = None) -> Certification:
    return parse_descriptor(data, DescriptorKind.CERTIFICATION, path)
