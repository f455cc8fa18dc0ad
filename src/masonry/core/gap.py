"""Gap analysis: which certification-required controls no component satisfies.

Three single passes over a fully loaded model:
1. master list   - every standard@control the certification requires
2. actual list   - every standard@control some component claims (first claim wins)
3. missing list  - master minus actual
"""

from __future__ import annotations

import threading
from typing import Optional

from ..compliance.errors import ErrorList, MasonryError
from ..compliance.justifications import standard_and_control_key
from ..compliance.registry import Registry
from ..models.gap import GapResult, MissingControl
from ..models.opencontrol import Certification, Component, Control, Satisfies
from .certifications import resolve_certification
from .config import MasonryConfig
from .loader import OpenControl, Phase, load_workspace


def retrieve_master_controls_list(certification: Certification) -> dict[str, Control]:
    """Gather the controls required by a certification, keyed by standard@control."""
    master: dict[str, Control] = {}
    for standard_key, standard in certification.standards.items():
        for control_key, control in standard.controls.items():
            key = standard_and_control_key(standard_key, control_key)
            if key not in master:
                master[key] = control.model_copy(
                    update={"key": control_key, "standard_key": standard_key}
                )
    return master


def find_documented_controls(components: Registry[Component]) -> dict[str, Satisfies]:
    """Gather the first claim made for each standard@control.

    Components are visited in key order so the winning claim does not depend
    on the order the loader threads happened to admit them.
    """
    actual: dict[str, Satisfies] = {}
    for _, component in sorted(components.all(), key=lambda item: item[0]):
        for claim in component.satisfies:
            key = standard_and_control_key(claim.standard_key, claim.control_key)
            if key not in actual:
                actual[key] = claim
    return actual


def calculate_non_documented_controls(
    master: dict[str, Control],
    actual: dict[str, Satisfies],
    model: Optional[OpenControl] = None,
) -> dict[str, MissingControl]:
    """Set difference master minus actual.

    The control name comes from the certification, falling back to the loaded
    standard when the certification leaves it blank.
    """
    missing: dict[str, MissingControl] = {}
    for key, control in master.items():
        if key in actual:
            continue
        standard_key, control_key = control.standard_key, control.key
        name = control.name
        if not name and model is not None:
            standard = model.standards.get(standard_key)
            if standard and control_key in standard.controls:
                name = standard.controls[control_key].name
        missing[key] = MissingControl(
            key=key,
            standard_key=standard_key,
            control_key=control_key,
            name=name,
        )
    return missing


def analyze_model(model: OpenControl, degraded: bool = False) -> GapResult:
    """Run the three passes over a loaded model. The model must have a certification."""
    if model.certification is None:
        raise ValueError("model has no certification loaded")

    master = retrieve_master_controls_list(model.certification)
    actual = find_documented_controls(model.components)
    missing = calculate_non_documented_controls(master, actual, model)

    return GapResult(
        certification=model.certification.key,
        master_control_list=master,
        actual_satisfied_controls=actual,
        missing_control_list=missing,
        degraded=degraded,
    )


def build_inventory(model: OpenControl) -> dict[str, list[str]]:
    """standard@control -> sorted keys of the components satisfying it.

    Covers every control the certification requires, plus anything claimed.
    """
    pairs: set[tuple[str, str]] = set(model.justifications.pairs())
    if model.certification is not None:
        pairs.update(
            (control.standard_key, control.key)
            for control in retrieve_master_controls_list(model.certification).values()
        )

    inventory: dict[str, list[str]] = {}
    for standard_key, control_key in sorted(pairs):
        inventory[standard_and_control_key(standard_key, control_key)] = model.justifications.get(
            standard_key, control_key
        )
    return dict(sorted(inventory.items()))


def load_for_certification(
    config: MasonryConfig,
    cancel: Optional[threading.Event] = None,
) -> tuple[Optional[OpenControl], bool, ErrorList]:
    """Resolve the certification and load the workspace around it.

    Returns (model, degraded, errors). The model is None when the
    certification or the component set could not be loaded at all.
    """
    errors = ErrorList()
    try:
        certification_path = resolve_certification(config.opencontrol_dir, config.certification)
    except MasonryError as e:
        errors.append(e)
        return None, False, errors

    loaded = load_workspace(config.opencontrol_dir, certification_path, config.loader, cancel)
    errors.extend(loaded.errors)

    if (
        loaded.phase_failed(Phase.CERTIFICATION)
        or loaded.phase_failed(Phase.COMPONENTS)
        or loaded.model.certification is None
    ):
        return None, False, errors

    degraded = bool(loaded.phase_errors.get(Phase.COMPONENTS))
    return loaded.model, degraded, errors


def compute_gap_analysis(
    config: MasonryConfig,
    cancel: Optional[threading.Event] = None,
) -> tuple[Optional[GapResult], ErrorList]:
    """Compute the gap analysis for the configured workspace and certification.

    Returns (result, errors). result is None when the analysis refused to run;
    errors then explains why. A result with degraded=True was computed from a
    component set with per-component load failures.
    """
    model, degraded, errors = load_for_certification(config, cancel)
    if model is None:
        return None, errors
    return analyze_model(model, degraded=degraded), errors
