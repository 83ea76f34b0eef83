"""Generate a build graph from manifests and build its schemes."""

from .cli import main
from .errors import (
    ErrorType,
    FatalError,
    SchemeNotFoundError,
    SchemeWithoutBuildableTargetsError,
    WorkspaceNotFoundError,
)
from .models import CodeCoverageMode, TestingOptions
from .service import BuildService

__all__ = [
    "BuildService",
    "CodeCoverageMode",
    "ErrorType",
    "FatalError",
    "SchemeNotFoundError",
    "SchemeWithoutBuildableTargetsError",
    "TestingOptions",
    "WorkspaceNotFoundError",
    "main",
]
