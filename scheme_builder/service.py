"""Decide whether to regenerate the graph, resolve schemes and build them."""
from __future__ import annotations

from pathlib import Path
from typing import Callable

from loguru import logger

from core.command_runner import SubprocessCommandRunner
from .config import Config, ConfigLoader, FileConfigLoader
from .errors import SchemeNotFoundError, SchemeWithoutBuildableTargetsError, WorkspaceNotFoundError
from .generator import Generator, ManifestGenerator
from .graph import BuildGraph
from .inspector import BuildGraphInspector, GraphInspector
from .target_builder import CommandTargetBuilder, TargetBuilder

GeneratorFactory = Callable[[Config], Generator]
TargetBuilderFactory = Callable[[Config], TargetBuilder]


def _default_target_builder(config: Config) -> TargetBuilder:
    return CommandTargetBuilder(config, SubprocessCommandRunner())


class BuildService:
    """Runs a build for the project at a root path.

    The graph is regenerated only when asked to or when no workspace has
    been generated yet. Builds run one scheme at a time and stop at the
    first failure; schemes built before the failure stay built.
    """

    def __init__(
        self,
        *,
        config_loader: ConfigLoader | None = None,
        generator_factory: GeneratorFactory | None = None,
        inspector: GraphInspector | None = None,
        target_builder: TargetBuilder | TargetBuilderFactory | None = None,
    ) -> None:
        self._config_loader = config_loader or FileConfigLoader()
        self._generator_factory = generator_factory or ManifestGenerator
        self._inspector = inspector or BuildGraphInspector()
        self._target_builder = target_builder or _default_target_builder

    def _builder_for(self, config: Config) -> TargetBuilder:
        if isinstance(self._target_builder, TargetBuilder):
            return self._target_builder
        return self._target_builder(config)

    def run(
        self,
        *,
        scheme_name: str | None,
        generate: bool,
        clean: bool,
        list_schemes: bool,
        configuration: str | None,
        build_output_path: Path | None,
        path: Path,
    ) -> None:
        config = self._config_loader.load_config(path)
        generator = self._generator_factory(config)
        graph: BuildGraph
        if generate or self._inspector.workspace_path(path) is None:
            _, graph = generator.generate_with_graph(path)
        else:
            graph = generator.load(path)

        workspace_path = self._inspector.workspace_path(path)
        if workspace_path is None:
            raise WorkspaceNotFoundError(path)

        buildable_schemes = self._inspector.buildable_schemes(graph)
        scheme_names = sorted({scheme.name for scheme in buildable_schemes})
        listing = ", ".join(scheme_names)

        if list_schemes:
            print(f"Found the following buildable schemes: {listing}")
            return
        logger.debug(f"Found the following buildable schemes: {listing}")

        target_builder = self._builder_for(config)

        if scheme_name is not None:
            scheme = next((candidate for candidate in buildable_schemes if candidate.name == scheme_name), None)
            if scheme is None:
                raise SchemeNotFoundError(scheme_name, scheme_names)
            graph_target = self._inspector.buildable_target(scheme, graph)
            if graph_target is None:
                raise SchemeWithoutBuildableTargetsError(scheme.name)
            target_builder.build_target(
                graph_target,
                workspace_path=workspace_path,
                scheme_name=scheme.name,
                clean=clean,
                configuration=configuration,
                build_output_path=build_output_path,
            )
        else:
            cleaned = False
            for scheme in self._inspector.buildable_entry_schemes(graph):
                graph_target = self._inspector.buildable_target(scheme, graph)
                if graph_target is None:
                    raise SchemeWithoutBuildableTargetsError(scheme.name)
                target_builder.build_target(
                    graph_target,
                    workspace_path=workspace_path,
                    scheme_name=scheme.name,
                    clean=clean and not cleaned,
                    configuration=configuration,
                    build_output_path=build_output_path,
                )
                cleaned = True

        logger.success("The project built successfully")


__all__ = ["BuildService", "GeneratorFactory", "TargetBuilderFactory"]
