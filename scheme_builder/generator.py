"""Turn Workspace/Project manifests into a build graph, or reload the last one."""
from __future__ import annotations

from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, List, Mapping, Sequence, Set, Tuple
import shutil

from loguru import logger
import yaml

from core.config_loader import find_config_file, load_config_file
from .config import Config
from .errors import GraphLoadingError, ManifestError, ManifestNotFoundError
from .graph import GRAPH_FILENAME, WORKSPACE_SUFFIX, BuildGraph, find_workspace, read_graph, write_graph
from .models import (
    BuildAction,
    CodeCoverageMode,
    Platform,
    Product,
    Project,
    Scheme,
    Target,
    TargetReference,
    TestAction,
    TestingOptions,
    Workspace,
)

WORKSPACE_MANIFEST = "Workspace"
PROJECT_MANIFEST = "Project"


class Generator:
    """Abstract graph provider."""

    def generate_with_graph(self, path: Path) -> Tuple[Path, BuildGraph]:
        raise NotImplementedError

    def load(self, path: Path) -> BuildGraph:
        raise NotImplementedError


def _parse_reference(value: Any, *, base: Path, default_project: Path | None, manifest: Path) -> TargetReference:
    if isinstance(value, str):
        text = value.strip()
        project_part, separator, name = text.rpartition(":")
        if not separator:
            name = text
            if default_project is None:
                raise ManifestError(manifest, f"target reference '{text}' must name a project as '<path>:<target>'")
            project_path = default_project
        else:
            project_path = (base / project_part).resolve()
    elif isinstance(value, Mapping):
        name = str(value.get("target") or "").strip()
        project_value = value.get("project")
        if project_value:
            project_path = (base / str(project_value)).resolve()
        elif default_project is not None:
            project_path = default_project
        else:
            raise ManifestError(manifest, f"target reference {dict(value)!r} must include 'project'")
    else:
        raise ManifestError(manifest, f"target references must be strings or tables, got {value!r}")
    if not name:
        raise ManifestError(manifest, f"empty target name in reference {value!r}")
    return TargetReference(project_path=project_path, name=name)


def _parse_references(
    values: Any, *, base: Path, default_project: Path | None, manifest: Path, field_name: str
) -> List[TargetReference]:
    if values is None:
        return []
    if isinstance(values, (str, Mapping)) or not isinstance(values, Sequence):
        raise ManifestError(manifest, f"{field_name} must be a list of target references")
    return [_parse_reference(item, base=base, default_project=default_project, manifest=manifest) for item in values]


def _parse_coverage(value: Any, *, base: Path, default_project: Path | None, manifest: Path) -> CodeCoverageMode | None:
    if value is None or value is False:
        return None
    if value is True or value == "all":
        return CodeCoverageMode.all()
    if value == "relevant":
        return CodeCoverageMode.relevant()
    if isinstance(value, Sequence) and not isinstance(value, str):
        return CodeCoverageMode.targets(
            _parse_references(value, base=base, default_project=default_project, manifest=manifest, field_name="code_coverage")
        )
    raise ManifestError(manifest, f"code_coverage must be 'all', 'relevant' or a list of targets, got {value!r}")


def _parse_scheme(data: Any, *, base: Path, default_project: Path | None, manifest: Path) -> Scheme:
    if not isinstance(data, Mapping):
        raise ManifestError(manifest, "[[schemes]] entries must be tables")
    name = str(data.get("name") or "").strip()
    if not name:
        raise ManifestError(manifest, "every scheme needs a name")

    build_action = None
    if data.get("build") is not None:
        build_action = BuildAction(
            targets=_parse_references(
                data["build"], base=base, default_project=default_project, manifest=manifest, field_name=f"{name}.build"
            )
        )

    test_action = None
    test_data = data.get("test")
    if test_data is not None:
        if not isinstance(test_data, Mapping):
            raise ManifestError(manifest, f"{name}.test must be a table")
        try:
            options = TestingOptions.from_names(test_data.get("testing_options") or [])
        except ValueError as exc:
            raise ManifestError(manifest, str(exc)) from exc
        test_action = TestAction(
            targets=_parse_references(
                test_data.get("targets"),
                base=base,
                default_project=default_project,
                manifest=manifest,
                field_name=f"{name}.test.targets",
            ),
            configuration=str(test_data["configuration"]) if test_data.get("configuration") else None,
            coverage=_parse_coverage(
                test_data.get("code_coverage"), base=base, default_project=default_project, manifest=manifest
            ),
            options=options,
        )

    return Scheme(name=name, shared=bool(data.get("shared", True)), build_action=build_action, test_action=test_action)


def _parse_target(data: Any, *, project_path: Path, manifest: Path) -> Target:
    if not isinstance(data, Mapping):
        raise ManifestError(manifest, "[[targets]] entries must be tables")
    name = str(data.get("name") or "").strip()
    if not name:
        raise ManifestError(manifest, "every target needs a name")
    try:
        product = Product(str(data.get("product", Product.FRAMEWORK.value)))
        platform = Platform(str(data.get("platform", Platform.MACOS.value)))
    except ValueError as exc:
        raise ManifestError(manifest, f"target {name}: {exc}") from exc
    dependencies = _parse_references(
        data.get("dependencies"),
        base=project_path,
        default_project=project_path,
        manifest=manifest,
        field_name=f"{name}.dependencies",
    )
    return Target(name=name, product=product, platform=platform, dependencies=dependencies)


def _manifest_list(data: Mapping[str, Any], key: str, manifest: Path) -> List[Any]:
    value = data.get(key)
    if value is None:
        return []
    if isinstance(value, (str, Mapping)) or not isinstance(value, Sequence):
        raise ManifestError(manifest, f"'{key}' must be a list")
    return list(value)


def _load_manifest(path: Path) -> Mapping[str, Any]:
    try:
        return load_config_file(path)
    except (OSError, ValueError, TypeError, yaml.YAMLError) as exc:
        raise ManifestError(path, str(exc)) from exc


class ManifestGenerator(Generator):
    """Graph provider backed by ``Workspace.*``/``Project.*`` manifests.

    The generated graph is written to ``<root>/<Name>.workspace/graph.json``
    so that later runs can :meth:`load` it instead of re-reading manifests.
    """

    def __init__(self, config: Config) -> None:
        self._config = config

    def generate_with_graph(self, path: Path) -> Tuple[Path, BuildGraph]:
        root = path.resolve()
        workspace_manifest = find_config_file(root, WORKSPACE_MANIFEST)
        project_manifest = find_config_file(root, PROJECT_MANIFEST)

        workspace_schemes: List[Scheme] = []
        if workspace_manifest is not None:
            data = _load_manifest(workspace_manifest)
            section = data.get("workspace") or {}
            if not isinstance(section, Mapping):
                raise ManifestError(workspace_manifest, "[workspace] must be a table")
            name = str(section.get("name") or root.name)
            project_dirs = _manifest_list(section, "projects", workspace_manifest)
            # "App" and "App/" name the same project; keep the first listing.
            entry_paths = list(dict.fromkeys((root / str(entry)).resolve() for entry in project_dirs))
            workspace_schemes = [
                _parse_scheme(item, base=root, default_project=None, manifest=workspace_manifest)
                for item in _manifest_list(data, "schemes", workspace_manifest)
            ]
        elif project_manifest is not None:
            entry_paths = [root]
            name = ""
        else:
            raise ManifestNotFoundError(root)

        projects = self._load_projects(entry_paths)
        if not name:
            name = projects[root].name

        self._check_unique_scheme_names(workspace_schemes, projects, workspace_manifest or project_manifest or root)
        if self._config.generation.autogenerate_schemes:
            self._autogenerate_schemes(workspace_schemes, projects)

        workspace_path = root / f"{name}{WORKSPACE_SUFFIX}"
        graph = BuildGraph(
            name=name,
            path=root,
            workspace=Workspace(path=workspace_path, name=name, projects=list(entry_paths), schemes=workspace_schemes),
            projects=projects,
            entry_paths=list(entry_paths),
        )
        self._remove_stale_workspaces(root, keep=workspace_path)
        write_graph(graph, workspace_path)
        logger.info(f"Generated workspace {workspace_path.name} with {len(projects)} project(s)")
        return workspace_path, graph

    def load(self, path: Path) -> BuildGraph:
        root = path.resolve()
        workspace_path = find_workspace(root)
        if workspace_path is None:
            raise GraphLoadingError(root, "no generated workspace found")
        graph_path = workspace_path / GRAPH_FILENAME
        try:
            graph = read_graph(graph_path)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise GraphLoadingError(graph_path, str(exc)) from exc
        logger.debug(f"Loaded graph {graph.name} from {graph_path}")
        return graph

    def _load_projects(self, entry_paths: Sequence[Path]) -> Dict[Path, Project]:
        projects: Dict[Path, Project] = {}
        queued: Set[Path] = set(entry_paths)
        pending: Deque[Path] = deque(entry_paths)
        while pending:
            project_path = pending.popleft()
            project = self._load_project(project_path)
            projects[project_path] = project
            for target in project.targets.values():
                for dependency in target.dependencies:
                    if dependency.project_path not in queued:
                        queued.add(dependency.project_path)
                        pending.append(dependency.project_path)
        return projects

    def _load_project(self, project_path: Path) -> Project:
        manifest = find_config_file(project_path, PROJECT_MANIFEST)
        if manifest is None:
            raise ManifestNotFoundError(project_path)
        data = _load_manifest(manifest)
        section = data.get("project") or {}
        if not isinstance(section, Mapping):
            raise ManifestError(manifest, "[project] must be a table")
        name = str(section.get("name") or project_path.name)

        targets: Dict[str, Target] = {}
        for item in _manifest_list(data, "targets", manifest):
            target = _parse_target(item, project_path=project_path, manifest=manifest)
            if target.name in targets:
                raise ManifestError(manifest, f"duplicate target '{target.name}'")
            targets[target.name] = target

        schemes = [
            _parse_scheme(item, base=project_path, default_project=project_path, manifest=manifest)
            for item in _manifest_list(data, "schemes", manifest)
        ]
        logger.debug(f"Loaded project {name} ({len(targets)} targets, {len(schemes)} schemes) from {manifest}")
        return Project(path=project_path, name=name, targets=targets, schemes=schemes)

    @staticmethod
    def _check_unique_scheme_names(
        workspace_schemes: Sequence[Scheme], projects: Mapping[Path, Project], manifest: Path
    ) -> None:
        seen: Set[str] = set()
        for scheme in [*workspace_schemes, *(s for project in projects.values() for s in project.schemes)]:
            if scheme.name in seen:
                raise ManifestError(manifest, f"scheme '{scheme.name}' is declared more than once")
            seen.add(scheme.name)

    @staticmethod
    def _autogenerate_schemes(workspace_schemes: Sequence[Scheme], projects: Mapping[Path, Project]) -> None:
        taken = {scheme.name for scheme in workspace_schemes}
        taken.update(scheme.name for project in projects.values() for scheme in project.schemes)
        for project in projects.values():
            for target in project.targets.values():
                if target.name in taken:
                    continue
                taken.add(target.name)
                reference = TargetReference(project_path=project.path, name=target.name)
                if target.product.is_test_bundle:
                    project.schemes.append(
                        Scheme(name=target.name, shared=False, test_action=TestAction(targets=[reference]))
                    )
                    continue
                tests = [
                    TargetReference(project_path=project.path, name=candidate.name)
                    for candidate in project.targets.values()
                    if candidate.product.is_test_bundle and reference in candidate.dependencies
                ]
                project.schemes.append(
                    Scheme(
                        name=target.name,
                        shared=False,
                        build_action=BuildAction(targets=[reference]),
                        test_action=TestAction(targets=tests) if tests else None,
                    )
                )

    @staticmethod
    def _remove_stale_workspaces(root: Path, *, keep: Path) -> None:
        for candidate in root.glob(f"*{WORKSPACE_SUFFIX}"):
            if candidate == keep or not (candidate / GRAPH_FILENAME).is_file():
                continue
            logger.info(f"Removing stale workspace {candidate.name}")
            shutil.rmtree(candidate)


__all__ = ["Generator", "ManifestGenerator", "PROJECT_MANIFEST", "WORKSPACE_MANIFEST"]
