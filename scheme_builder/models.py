"""Value types describing projects, targets, schemes and test settings."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, Flag, auto
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Tuple


class Product(str, Enum):
    APP = "app"
    FRAMEWORK = "framework"
    STATIC_LIBRARY = "static_library"
    DYNAMIC_LIBRARY = "dynamic_library"
    COMMAND_LINE_TOOL = "command_line_tool"
    BUNDLE = "bundle"
    UNIT_TESTS = "unit_tests"
    UI_TESTS = "ui_tests"

    @property
    def is_test_bundle(self) -> bool:
        return self in {Product.UNIT_TESTS, Product.UI_TESTS}


class Platform(str, Enum):
    MACOS = "macos"
    IOS = "ios"
    TVOS = "tvos"
    WATCHOS = "watchos"
    LINUX = "linux"


@dataclass(frozen=True, slots=True)
class TargetReference:
    """Points at a target by the directory of its project and its name."""

    project_path: Path
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {"project_path": str(self.project_path), "name": self.name}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TargetReference":
        return cls(project_path=Path(data["project_path"]), name=str(data["name"]))


class CoverageScope(str, Enum):
    ALL = "all"
    RELEVANT = "relevant"
    TARGETS = "targets"


@dataclass(frozen=True, slots=True)
class CodeCoverageMode:
    """Which modules code coverage is gathered for.

    ``all`` covers every module, ``relevant`` only the modules owned by the
    workspace, and ``targets(...)`` exactly the listed targets. An empty
    ``targets([])`` gathers no coverage and is a distinct value from the
    other two. Equality compares the scope and the ordered references, so
    the same targets listed in a different order are not equal.
    """

    scope: CoverageScope
    references: Tuple[TargetReference, ...] = ()

    def __post_init__(self) -> None:
        if self.scope is not CoverageScope.TARGETS and self.references:
            raise ValueError(f"Coverage scope '{self.scope.value}' does not take target references")
        object.__setattr__(self, "references", tuple(self.references))

    @classmethod
    def all(cls) -> "CodeCoverageMode":
        return cls(CoverageScope.ALL)

    @classmethod
    def relevant(cls) -> "CodeCoverageMode":
        return cls(CoverageScope.RELEVANT)

    @classmethod
    def targets(cls, references: Iterable[TargetReference]) -> "CodeCoverageMode":
        return cls(CoverageScope.TARGETS, tuple(references))

    def to_value(self) -> Any:
        if self.scope is CoverageScope.ALL:
            return "all"
        if self.scope is CoverageScope.RELEVANT:
            return "relevant"
        if self.scope is CoverageScope.TARGETS:
            return [reference.to_dict() for reference in self.references]
        raise ValueError(f"Unknown coverage scope: {self.scope}")

    @classmethod
    def from_value(cls, value: Any) -> "CodeCoverageMode":
        if value == "all":
            return cls.all()
        if value == "relevant":
            return cls.relevant()
        if isinstance(value, list):
            return cls.targets(TargetReference.from_dict(item) for item in value)
        raise ValueError(f"Unsupported code coverage value: {value!r}")


class TestingOptions(Flag):
    """Combinable switches for the test runner; combine with ``|``."""

    NONE = 0
    PARALLELIZABLE = auto()
    RANDOM_EXECUTION_ORDERING = auto()

    @classmethod
    def _lookup(cls) -> Dict[str, "TestingOptions"]:
        return {member.name.replace("_", "").lower(): member for member in cls if member.value}

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "TestingOptions":
        """Build options from names such as ``parallelizable`` or ``randomExecutionOrdering``."""

        lookup = cls._lookup()
        options = cls.NONE
        for name in names:
            key = str(name).replace("_", "").replace("-", "").lower()
            if key not in lookup:
                raise ValueError(f"Unknown testing option '{name}'. Known options: {', '.join(sorted(lookup))}")
            options |= lookup[key]
        return options

    def to_names(self) -> List[str]:
        return [member.name.lower() for member in type(self) if member.value and member in self]


@dataclass(slots=True)
class Target:
    name: str
    product: Product
    platform: Platform = Platform.MACOS
    dependencies: List[TargetReference] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "product": self.product.value,
            "platform": self.platform.value,
            "dependencies": [dependency.to_dict() for dependency in self.dependencies],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Target":
        return cls(
            name=str(data["name"]),
            product=Product(data["product"]),
            platform=Platform(data.get("platform", Platform.MACOS.value)),
            dependencies=[TargetReference.from_dict(item) for item in data.get("dependencies", [])],
        )


@dataclass(slots=True)
class BuildAction:
    targets: List[TargetReference] = field(default_factory=list)


@dataclass(slots=True)
class TestAction:
    targets: List[TargetReference] = field(default_factory=list)
    configuration: str | None = None
    coverage: CodeCoverageMode | None = None
    options: TestingOptions = TestingOptions.NONE


@dataclass(slots=True)
class Scheme:
    name: str
    shared: bool = True
    build_action: BuildAction | None = None
    test_action: TestAction | None = None

    @property
    def has_build_targets(self) -> bool:
        return self.build_action is not None and bool(self.build_action.targets)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "shared": self.shared}
        if self.build_action is not None:
            data["build"] = {"targets": [target.to_dict() for target in self.build_action.targets]}
        if self.test_action is not None:
            action = self.test_action
            data["test"] = {
                "targets": [target.to_dict() for target in action.targets],
                "configuration": action.configuration,
                "code_coverage": action.coverage.to_value() if action.coverage is not None else None,
                "testing_options": action.options.to_names(),
            }
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Scheme":
        build_action = None
        if data.get("build") is not None:
            build_action = BuildAction(
                targets=[TargetReference.from_dict(item) for item in data["build"].get("targets", [])]
            )
        test_action = None
        test_data = data.get("test")
        if test_data is not None:
            coverage_value = test_data.get("code_coverage")
            test_action = TestAction(
                targets=[TargetReference.from_dict(item) for item in test_data.get("targets", [])],
                configuration=test_data.get("configuration"),
                coverage=CodeCoverageMode.from_value(coverage_value) if coverage_value is not None else None,
                options=TestingOptions.from_names(test_data.get("testing_options", [])),
            )
        return cls(
            name=str(data["name"]),
            shared=bool(data.get("shared", True)),
            build_action=build_action,
            test_action=test_action,
        )


@dataclass(slots=True)
class Project:
    path: Path
    name: str
    targets: Dict[str, Target] = field(default_factory=dict)
    schemes: List[Scheme] = field(default_factory=list)


@dataclass(slots=True)
class Workspace:
    path: Path
    name: str
    projects: List[Path] = field(default_factory=list)
    schemes: List[Scheme] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class GraphTarget:
    """A target together with the project it belongs to."""

    path: Path
    target: Target
    project: Project
