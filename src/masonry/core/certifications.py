"""Certification lookup inside an OpenControl workspace."""

from __future__ import annotations

from pathlib import Path

from ..compliance.errors import CertificationNotFound

CERTIFICATION_EXTENSIONS = (".yaml", ".yml")


def list_certifications(opencontrol_dir: Path) -> list[str]:
    """Names of the certifications available in the workspace, sorted."""
    certifications_dir = Path(opencontrol_dir) / "certifications"
    if not certifications_dir.is_dir():
        return []
    return sorted({
        path.stem
        for path in certifications_dir.iterdir()
        if path.is_file() and path.suffix in CERTIFICATION_EXTENSIONS
    })


def resolve_certification(opencontrol_dir: Path, certification: str) -> Path:
    """Find the file for a named certification.

    Raises CertificationNotFound, listing the available names when the
    requested one does not exist.
    """
    if not certification:
        raise CertificationNotFound("missing certification argument")

    certifications_dir = Path(opencontrol_dir) / "certifications"
    if not certifications_dir.is_dir():
        raise CertificationNotFound("certifications directory does not exist", certifications_dir)

    for extension in CERTIFICATION_EXTENSIONS:
        candidate = certifications_dir / f"{certification}{extension}"
        if candidate.is_file():
            return candidate

    available = list_certifications(opencontrol_dir)
    message = f"certification {certification} does not exist"
    if available:
        message += f"; use one of: {', '.join(available)}"
    raise CertificationNotFound(message, certifications_dir)
