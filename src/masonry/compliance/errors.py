"""Error taxonomy for workspace loading and gap analysis.

Every failure carries an ErrorKind so callers can branch on the class of
problem instead of matching message text. Per-entity failures are collected
into an ErrorList and returned next to whatever partial data was built.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, Optional


class ErrorKind(str, Enum):
    DIRECTORY_UNREADABLE = "DirectoryUnreadable"
    FILE_UNREADABLE = "FileUnreadable"
    COMPONENT_FILE_MISSING = "ComponentFileMissing"
    MALFORMED_SYNTAX = "MalformedSyntax"
    UNSUPPORTED_SCHEMA_VERSION = "UnsupportedSchemaVersion"
    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    CERTIFICATION_NOT_FOUND = "CertificationNotFound"
    DUPLICATE_KEY = "DuplicateKey"
    CANCELLED = "Cancelled"


class MasonryError(Exception):
    """Base error. Subclasses pin the kind."""

    kind: ErrorKind

    def __init__(self, message: str, path: Optional[Path | str] = None):
        super().__init__(message)
        self.message = message
        self.path = str(path) if path is not None else None

    def __str__(self) -> str:
        if self.path:
            return f"{self.kind.value}: {self.path}: {self.message}"
        return f"{self.kind.value}: {self.message}"

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "path": self.path, "message": self.message}


class DirectoryUnreadable(MasonryError):
    kind = ErrorKind.DIRECTORY_UNREADABLE


class FileUnreadable(MasonryError):
    kind = ErrorKind.FILE_UNREADABLE


class ComponentFileMissing(MasonryError):
    kind = ErrorKind.COMPONENT_FILE_MISSING


class SchemaError(MasonryError):
    """A descriptor could not be turned into a typed record."""


class MalformedSyntax(SchemaError):
    kind = ErrorKind.MALFORMED_SYNTAX


class UnsupportedSchemaVersion(SchemaError):
    kind = ErrorKind.UNSUPPORTED_SCHEMA_VERSION


class MissingRequiredField(SchemaError):
    kind = ErrorKind.MISSING_REQUIRED_FIELD


class CertificationNotFound(MasonryError):
    kind = ErrorKind.CERTIFICATION_NOT_FOUND


class DuplicateKey(MasonryError):
    kind = ErrorKind.DUPLICATE_KEY


class Cancelled(MasonryError):
    kind = ErrorKind.CANCELLED


class ErrorList:
    """Ordered collection of MasonryErrors, returned alongside results."""

    def __init__(self, errors: Optional[Iterable[MasonryError]] = None):
        self._errors: list[MasonryError] = list(errors or [])

    def append(self, error: MasonryError) -> None:
        self._errors.append(error)

    def extend(self, errors: Iterable[MasonryError]) -> None:
        self._errors.extend(errors)

    def of_kind(self, *kinds: ErrorKind) -> list[MasonryError]:
        return [e for e in self._errors if e.kind in kinds]

    def has_kind(self, *kinds: ErrorKind) -> bool:
        return any(e.kind in kinds for e in self._errors)

    def kinds(self) -> list[ErrorKind]:
        return [e.kind for e in self._errors]

    def messages(self) -> list[str]:
        return [str(e) for e in self._errors]

    def __iter__(self) -> Iterator[MasonryError]:
        return iter(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def __repr__(self) -> str:
        return f"ErrorList({self.messages()!r})"
