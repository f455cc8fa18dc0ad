"""Workspace loading.

Builds the in-memory OpenControl model from a workspace directory:

    <opencontrol_dir>/components/<component-key>/component.yaml
    <opencontrol_dir>/standards/<standard>.yaml
    <certification_path>

The components, standards and certification phases run in parallel and are
joined before anything is returned. Components and standards fan out one task
per directory entry onto a single bounded worker pool. The registries and the
justification index are the only state the tasks share, and each guards itself
with a lock. Per-entry errors come back through the task futures and are
collected by the phase; one bad file never stops its siblings.
"""

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from ..compliance.errors import (
    Cancelled,
    ComponentFileMissing,
    DirectoryUnreadable,
    DuplicateKey,
    ErrorKind,
    ErrorList,
    FileUnreadable,
    MasonryError,
)
from ..compliance.justifications import JustificationIndex
from ..compliance.parser import parse_certification, parse_component, parse_standard
from ..compliance.registry import AddResult, Registry
from ..models.opencontrol import Certification, Component, Standard
from .config import LoaderConfig

StopCheck = Callable[[], bool]

_SKIPPED = object()


class Phase(str, Enum):
    COMPONENTS = "components"
    STANDARDS = "standards"
    CERTIFICATION = "certification"


# A fatal error in one of these phases makes the whole run useless for gap analysis.
_CRITICAL_PHASES = {Phase.COMPONENTS, Phase.CERTIFICATION}


@dataclass
class OpenControl:
    """Components, standards, justifications and the certification of one workspace."""

    components: Registry[Component] = field(default_factory=Registry)
    standards: Registry[Standard] = field(default_factory=Registry)
    justifications: JustificationIndex = field(default_factory=JustificationIndex)
    certification: Optional[Certification] = None


@dataclass
class LoadResult:
    model: OpenControl
    errors: ErrorList
    failed_phases: set[Phase] = field(default_factory=set)
    phase_errors: dict[Phase, list[MasonryError]] = field(default_factory=dict)

    def phase_failed(self, phase: Phase) -> bool:
        return phase in self.failed_phases


def _read_file(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise FileUnreadable(f"unable to read file: {e.strerror or e}", path) from e


def _list_dir(directory: Path) -> list[Path]:
    try:
        return sorted(directory.iterdir())
    except OSError as e:
        raise DirectoryUnreadable(f"unable to read directory: {e.strerror or e}", directory) from e


# ---------------------------------------------------------------------------
# Single-entry loaders
# ---------------------------------------------------------------------------


def load_component(model: OpenControl, component_dir: Path, config: LoaderConfig) -> Component:
    """Parse one component directory and admit it to the registry.

    The justification index is only fed when the registry accepted the key.
    """
    file_name = component_dir / config.component_file
    if not file_name.is_file():
        raise ComponentFileMissing(f"{config.component_file} does not exist", component_dir)

    component = parse_component(_read_file(file_name), file_name)
    if not component.key:
        component = component.model_copy(update={"key": component_dir.name})

    if model.components.add(component.key, component) is AddResult.ALREADY_EXISTS:
        raise DuplicateKey(f"component {component.key} is already loaded", file_name)
    model.justifications.load_mappings(component)
    return component


def load_standard(model: OpenControl, standard_file: Path) -> Standard:
    standard = parse_standard(_read_file(standard_file), standard_file)
    if model.standards.add(standard.key, standard) is AddResult.ALREADY_EXISTS:
        raise DuplicateKey(f"standard {standard.key} is already loaded", standard_file)
    return standard


def load_certification(model: OpenControl, certification_path: Path) -> Certification:
    if not certification_path.is_file():
        raise FileUnreadable("certification file does not exist", certification_path)
    model.certification = parse_certification(_read_file(certification_path), certification_path)
    return model.certification


# ---------------------------------------------------------------------------
# Fan-out phases
# ---------------------------------------------------------------------------


def _guarded(stop: StopCheck, fn: Callable, *args):
    """Run one entry task; hand its MasonryError back instead of raising."""
    if stop():
        return _SKIPPED
    try:
        fn(*args)
    except MasonryError as e:
        return e
    return None


def _collect(futures: list[Future], phase: Phase, directory: Path) -> list[MasonryError]:
    wait(futures)
    errors: list[MasonryError] = []
    skipped = 0
    for future in futures:
        outcome = future.result()
        if outcome is _SKIPPED:
            skipped += 1
        elif outcome is not None:
            errors.append(outcome)
    if skipped:
        errors.append(Cancelled(f"{phase.value} loading cancelled, {skipped} entries skipped", directory))
    return errors


def load_components(
    model: OpenControl,
    directory: Path,
    config: LoaderConfig,
    pool: Executor,
    stop: StopCheck = lambda: False,
) -> list[MasonryError]:
    """Load every component subdirectory. Raises DirectoryUnreadable."""
    if stop():
        return [Cancelled("components loading cancelled", directory)]
    entries = [entry for entry in _list_dir(directory) if entry.is_dir()]
    futures = [pool.submit(_guarded, stop, load_component, model, entry, config) for entry in entries]
    return _collect(futures, Phase.COMPONENTS, directory)


def load_standards(
    model: OpenControl,
    directory: Path,
    pool: Executor,
    stop: StopCheck = lambda: False,
) -> list[MasonryError]:
    """Load every standard file. Raises DirectoryUnreadable."""
    if stop():
        return [Cancelled("standards loading cancelled", directory)]
    entries = [
        entry for entry in _list_dir(directory)
        if entry.is_file() and not entry.name.startswith(".")
    ]
    futures = [pool.submit(_guarded, stop, load_standard, model, entry) for entry in entries]
    return _collect(futures, Phase.STANDARDS, directory)


def load_workspace(
    opencontrol_dir: Path,
    certification_path: Optional[Path],
    config: Optional[LoaderConfig] = None,
    cancel: Optional[threading.Event] = None,
) -> LoadResult:
    """Load components, standards and the certification in parallel.

    Returns the model together with every error encountered. A phase that
    could not run at all is listed in failed_phases; with cancel_on_fatal,
    such a failure in the components or certification phase also stops the
    tasks of the other phases that have not started yet. Setting ``cancel``
    stops pending work the same way.
    """
    config = config or LoaderConfig()
    opencontrol_dir = Path(opencontrol_dir)
    model = OpenControl()
    abort = threading.Event()

    def stop() -> bool:
        return abort.is_set() or (cancel is not None and cancel.is_set())

    def run_phase(phase: Phase, fn: Callable, *args) -> tuple[list[MasonryError], bool]:
        try:
            errors = fn(*args)
        except MasonryError as e:
            errors = [e]
            failed = True
        else:
            failed = phase is Phase.CERTIFICATION and bool(errors)
        failed = failed or any(e.kind is ErrorKind.CANCELLED for e in errors)
        if failed and config.cancel_on_fatal and phase in _CRITICAL_PHASES:
            abort.set()
        return errors, failed

    def certification_phase(path: Path) -> list[MasonryError]:
        if stop():
            return [Cancelled("certification loading cancelled", path)]
        load_certification(model, path)
        return []

    with ThreadPoolExecutor(max_workers=config.max_workers) as pool, \
            ThreadPoolExecutor(max_workers=3) as phases:
        futures: dict[Phase, Future] = {
            Phase.COMPONENTS: phases.submit(
                run_phase, Phase.COMPONENTS, load_components,
                model, opencontrol_dir / "components", config, pool, stop,
            ),
            Phase.STANDARDS: phases.submit(
                run_phase, Phase.STANDARDS, load_standards,
                model, opencontrol_dir / "standards", pool, stop,
            ),
        }
        if certification_path is not None:
            futures[Phase.CERTIFICATION] = phases.submit(
                run_phase, Phase.CERTIFICATION, certification_phase, Path(certification_path),
            )
        wait(list(futures.values()))

    result = LoadResult(model=model, errors=ErrorList())
    for phase in Phase:
        if phase not in futures:
            continue
        errors, failed = futures[phase].result()
        result.errors.extend(errors)
        result.phase_errors[phase] = errors
        if failed:
            result.failed_phases.add(phase)
    return result
