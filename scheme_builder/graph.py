"""The build graph and its JSON representation inside the workspace artifact."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping
import json

from .models import GraphTarget, Project, Scheme, Target, Workspace

GRAPH_FILENAME = "graph.json"
WORKSPACE_SUFFIX = ".workspace"
GRAPH_FORMAT_VERSION = 1


@dataclass(slots=True)
class BuildGraph:
    """All projects of a workspace, keyed by project directory.

    ``entry_paths`` lists the projects named by the root manifest in
    declaration order; projects only reached through target dependencies
    are present in ``projects`` but not in ``entry_paths``.
    """

    name: str
    path: Path
    workspace: Workspace
    projects: Dict[Path, Project] = field(default_factory=dict)
    entry_paths: List[Path] = field(default_factory=list)

    def schemes(self) -> Iterator[Scheme]:
        yield from self.workspace.schemes
        for project in self.projects.values():
            yield from project.schemes

    def entry_projects(self) -> List[Project]:
        return [self.projects[path] for path in self.entry_paths if path in self.projects]

    def target(self, project_path: Path, name: str) -> GraphTarget | None:
        project = self.projects.get(project_path)
        if project is None:
            return None
        target = project.targets.get(name)
        if target is None:
            return None
        return GraphTarget(path=project_path, target=target, project=project)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": GRAPH_FORMAT_VERSION,
            "name": self.name,
            "path": str(self.path),
            "workspace": {
                "path": str(self.workspace.path),
                "name": self.workspace.name,
                "projects": [str(path) for path in self.workspace.projects],
                "schemes": [scheme.to_dict() for scheme in self.workspace.schemes],
            },
            "projects": [
                {
                    "path": str(project.path),
                    "name": project.name,
                    "targets": [target.to_dict() for target in project.targets.values()],
                    "schemes": [scheme.to_dict() for scheme in project.schemes],
                }
                for project in self.projects.values()
            ],
            "entry_paths": [str(path) for path in self.entry_paths],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BuildGraph":
        version = data.get("version")
        if version != GRAPH_FORMAT_VERSION:
            raise ValueError(f"unsupported graph format version {version!r}")
        workspace_data = data["workspace"]
        workspace = Workspace(
            path=Path(workspace_data["path"]),
            name=str(workspace_data["name"]),
            projects=[Path(path) for path in workspace_data.get("projects", [])],
            schemes=[Scheme.from_dict(item) for item in workspace_data.get("schemes", [])],
        )
        projects: Dict[Path, Project] = {}
        for item in data.get("projects", []):
            targets = [Target.from_dict(target) for target in item.get("targets", [])]
            project = Project(
                path=Path(item["path"]),
                name=str(item["name"]),
                targets={target.name: target for target in targets},
                schemes=[Scheme.from_dict(scheme) for scheme in item.get("schemes", [])],
            )
            projects[project.path] = project
        return cls(
            name=str(data["name"]),
            path=Path(data["path"]),
            workspace=workspace,
            projects=projects,
            entry_paths=[Path(path) for path in data.get("entry_paths", [])],
        )


def find_workspace(root: Path) -> Path | None:
    """Return the first generated workspace artifact directly under ``root``."""

    if not root.is_dir():
        return None
    for candidate in sorted(root.glob(f"*{WORKSPACE_SUFFIX}")):
        if candidate.is_dir() and (candidate / GRAPH_FILENAME).is_file():
            return candidate
    return None


def serialize_graph(graph: BuildGraph) -> str:
    return json.dumps(graph.to_dict(), indent=2)


def write_graph(graph: BuildGraph, workspace_path: Path) -> Path:
    workspace_path.mkdir(parents=True, exist_ok=True)
    graph_path = workspace_path / GRAPH_FILENAME
    graph_path.write_text(serialize_graph(graph) + "\n", encoding="utf-8")
    return graph_path


def read_graph(graph_path: Path) -> BuildGraph:
    """Decode ``graph_path``; raises ``OSError``/``ValueError``/``KeyError`` on bad input."""

    with graph_path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, Mapping):
        raise ValueError("graph file must contain a JSON object")
    return BuildGraph.from_dict(data)
