"""Error taxonomy shared by the build service and its collaborators."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import ClassVar, Sequence


class ErrorType(str, Enum):
    """How the top-level reporter should treat a failure."""

    BUG = "bug"
    ABORT = "abort"


class FatalError(Exception):
    """Base class for failures that end a run.

    ``error_type`` is fixed per subclass and never depends on runtime state.
    """

    error_type: ClassVar[ErrorType] = ErrorType.ABORT

    def __init__(self, description: str) -> None:
        super().__init__(description)
        self.description = description

    @property
    def is_bug(self) -> bool:
        return self.error_type is ErrorType.BUG


class WorkspaceNotFoundError(FatalError):
    error_type = ErrorType.BUG

    def __init__(self, path: Path | str) -> None:
        super().__init__(f"Workspace not found: expected a generated workspace at {path}")
        self.path = str(path)


class SchemeNotFoundError(FatalError):
    error_type = ErrorType.ABORT

    def __init__(self, scheme: str, existing: Sequence[str]) -> None:
        available = ", ".join(existing) or "<none>"
        super().__init__(f"Couldn't find scheme {scheme}. The available schemes are: {available}.")
        self.scheme = scheme
        self.existing = list(existing)


class SchemeWithoutBuildableTargetsError(FatalError):
    error_type = ErrorType.ABORT

    def __init__(self, scheme: str) -> None:
        super().__init__(f"The scheme {scheme} cannot be built because it contains no buildable targets.")
        self.scheme = scheme


class ManifestNotFoundError(FatalError):
    error_type = ErrorType.ABORT

    def __init__(self, path: Path | str) -> None:
        super().__init__(f"No Workspace or Project manifest found at {path}")
        self.path = str(path)


class ManifestError(FatalError):
    error_type = ErrorType.ABORT

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(f"Invalid manifest {path}: {reason}")
        self.path = str(path)
        self.reason = reason


class GraphLoadingError(FatalError):
    error_type = ErrorType.ABORT

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(f"Couldn't load the generated graph at {path}: {reason}. Run again with --generate.")
        self.path = str(path)
        self.reason = reason


class BuildProductsNotFoundError(FatalError):
    error_type = ErrorType.ABORT

    def __init__(self, path: Path | str) -> None:
        super().__init__(f"Build products not found at {path}")
        self.path = str(path)


__all__ = [
    "BuildProductsNotFoundError",
    "ErrorType",
    "FatalError",
    "GraphLoadingError",
    "ManifestError",
    "ManifestNotFoundError",
    "SchemeNotFoundError",
    "SchemeWithoutBuildableTargetsError",
    "WorkspaceNotFoundError",
]
