"""Invoke the native build tool for one resolved scheme target."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List
import shutil

from loguru import logger

from core.command_runner import CommandRunner
from .config import Config
from .errors import BuildProductsNotFoundError
from .models import GraphTarget, Platform

DEFAULT_CONFIGURATION = "Debug"

_DESTINATIONS: Dict[Platform, str] = {
    Platform.MACOS: "platform=macOS",
    Platform.IOS: "generic/platform=iOS Simulator",
    Platform.TVOS: "generic/platform=tvOS Simulator",
    Platform.WATCHOS: "generic/platform=watchOS Simulator",
}


class TargetBuilder:
    """Abstract target builder; implementations raise on failure."""

    def build_target(
        self,
        target: GraphTarget,
        *,
        workspace_path: Path,
        scheme_name: str,
        clean: bool,
        configuration: str | None,
        build_output_path: Path | None,
    ) -> None:
        raise NotImplementedError


class CommandTargetBuilder(TargetBuilder):
    def __init__(self, config: Config, command_runner: CommandRunner, *, dry_run: bool = False) -> None:
        self._config = config
        self._command_runner = command_runner
        self._dry_run = dry_run

    @property
    def derived_data_path(self) -> Path:
        path = Path(self._config.build.derived_data_path).expanduser()
        return path if path.is_absolute() else self._config.root / path

    def build_command(
        self,
        target: GraphTarget,
        *,
        workspace_path: Path,
        scheme_name: str,
        clean: bool,
        configuration: str | None,
    ) -> List[str]:
        command: List[str] = [self._config.build.tool]
        if clean:
            command.append("clean")
        command.append("build")
        command.extend(["-workspace", str(workspace_path), "-scheme", scheme_name])
        configuration = configuration or self._config.build.default_configuration
        if configuration:
            command.extend(["-configuration", configuration])
        destination = _DESTINATIONS.get(target.target.platform)
        if destination:
            command.extend(["-destination", destination])
        command.extend(["-derivedDataPath", str(self.derived_data_path)])
        command.extend(self._config.build.extra_args)
        return command

    def build_target(
        self,
        target: GraphTarget,
        *,
        workspace_path: Path,
        scheme_name: str,
        clean: bool,
        configuration: str | None,
        build_output_path: Path | None,
    ) -> None:
        command = self.build_command(
            target,
            workspace_path=workspace_path,
            scheme_name=scheme_name,
            clean=clean,
            configuration=configuration,
        )
        logger.info(f"Building scheme {scheme_name}" + (" (clean)" if clean else ""))
        self._command_runner.run(command, cwd=workspace_path.parent, note=f"Build {scheme_name}", stream=True)

        if build_output_path is not None:
            self._copy_products(configuration or self._config.build.default_configuration, build_output_path)

    def _copy_products(self, configuration: str | None, build_output_path: Path) -> None:
        products_root = self.derived_data_path / "Build" / "Products"
        pattern = f"{configuration or DEFAULT_CONFIGURATION}*"
        if self._dry_run:
            logger.info(f"[dry-run] Would copy {products_root / pattern} to {build_output_path}")
            return
        product_dirs = sorted(path for path in products_root.glob(pattern) if path.is_dir())
        if not product_dirs:
            raise BuildProductsNotFoundError(products_root / pattern)
        build_output_path.mkdir(parents=True, exist_ok=True)
        for product_dir in product_dirs:
            shutil.copytree(product_dir, build_output_path, dirs_exist_ok=True)
        logger.info(f"Copied build products to {build_output_path}")


__all__ = ["CommandTargetBuilder", "DEFAULT_CONFIGURATION", "TargetBuilder"]
