"""OpenControl data models: components, standards and certifications."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Control(BaseModel):
    """A single control within a standard or a certification."""

    key: str = ""
    standard_key: str = ""
    name: str = ""
    family: str = ""
    description: str = ""


class NarrativeSection(BaseModel):
    key: str | None = None
    text: str = ""


class Satisfies(BaseModel):
    """A component's claim that it addresses one control of one standard."""

    model_config = ConfigDict(frozen=True)

    standard_key: str
    control_key: str
    narrative: list[NarrativeSection] = []
    implementation_statuses: list[str] = []
    control_origins: list[str] = []
    metadata: dict = {}


class Component(BaseModel):
    """A loaded component.yaml. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    key: str = ""
    name: str = ""
    schema_version: str = ""
    responsible_role: str = ""
    metadata: dict = {}
    satisfies: list[Satisfies] = []


class Standard(BaseModel):
    key: str
    name: str = ""
    controls: dict[str, Control] = {}


class CertifiedStandard(BaseModel):
    """The subset of one standard's controls a certification requires."""

    controls: dict[str, Control] = {}


class Certification(BaseModel):
    key: str = ""
    standards: dict[str, CertifiedStandard] = {}
