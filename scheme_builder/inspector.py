"""Queries over a build graph used to decide what gets built."""
from __future__ import annotations

from pathlib import Path
from typing import List

from .graph import BuildGraph, find_workspace
from .models import GraphTarget, Scheme


class GraphInspector:
    """Abstract graph inspector."""

    def workspace_path(self, path: Path) -> Path | None:
        raise NotImplementedError

    def buildable_schemes(self, graph: BuildGraph) -> List[Scheme]:
        raise NotImplementedError

    def buildable_entry_schemes(self, graph: BuildGraph) -> List[Scheme]:
        raise NotImplementedError

    def buildable_target(self, scheme: Scheme, graph: BuildGraph) -> GraphTarget | None:
        raise NotImplementedError


class BuildGraphInspector(GraphInspector):
    """Inspector for graphs produced by :class:`~scheme_builder.generator.ManifestGenerator`.

    Entry schemes keep the declaration order of the manifests: entry
    projects in the order the root manifest lists them, and each project's
    schemes in the order they are declared (autogenerated ones last).
    """

    def workspace_path(self, path: Path) -> Path | None:
        return find_workspace(path)

    def buildable_schemes(self, graph: BuildGraph) -> List[Scheme]:
        return [scheme for scheme in graph.schemes() if scheme.has_build_targets]

    def buildable_entry_schemes(self, graph: BuildGraph) -> List[Scheme]:
        return [
            scheme
            for project in graph.entry_projects()
            for scheme in project.schemes
            if scheme.has_build_targets
        ]

    def buildable_target(self, scheme: Scheme, graph: BuildGraph) -> GraphTarget | None:
        if not scheme.has_build_targets:
            return None
        reference = scheme.build_action.targets[0]
        return graph.target(reference.project_path, reference.name)
