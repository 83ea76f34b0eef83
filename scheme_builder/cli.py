"""Command line interface for scheme-builder."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable
import sys

from loguru import logger

from core.command_runner import CommandError, CommandRunner, RecordingCommandRunner, SubprocessCommandRunner
from .config import CONFIG_DIRNAME, CONFIG_ERRORS, Config, FileConfigLoader, LoadedConfigLoader
from .errors import FatalError
from .logs import configure_logging
from .service import BuildService
from .target_builder import CommandTargetBuilder

EXIT_ABORT = 1
EXIT_BUG = 70


def _emit_dry_run_output(runner: RecordingCommandRunner, *, workspace: Path) -> None:
    for line in runner.iter_formatted(workspace=workspace):
        print(line)


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(prog="scheme-builder", description="Generate a workspace and build its schemes")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser("build", help="Build one scheme, or every entry scheme")
    build_parser.add_argument("scheme", nargs="?", help="Scheme to build; omit to build all entry schemes")
    build_parser.add_argument("--generate", action="store_true", help="Regenerate the workspace before building")
    build_parser.add_argument("--clean", action="store_true", help="Clean build products before building")
    build_parser.add_argument("--list-schemes", action="store_true", help="List buildable schemes and exit")
    build_parser.add_argument("--configuration", help="Build configuration to use (e.g. Debug, Release)")
    build_parser.add_argument("--build-output-path", type=Path, help="Copy build products to this directory")
    build_parser.add_argument("--path", type=Path, default=None, help="Project root (defaults to the current directory)")
    build_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print build commands without executing them (the workspace is still generated, "
        "replacing any stale workspace)",
    )
    build_parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    return parser.parse_args(list(argv))


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    if args.command == "build":
        return _handle_build(args)
    raise ValueError(f"Unknown command: {args.command}")


def _handle_build(args: Namespace) -> int:
    root = (args.path or Path.cwd()).expanduser()
    configure_logging("debug" if args.verbose else "info")
    try:
        config = FileConfigLoader().load_config(root)
    except CONFIG_ERRORS as exc:
        logger.error(f"Error: invalid configuration under {root / CONFIG_DIRNAME}: {exc}")
        return EXIT_ABORT
    settings = config.global_config
    configure_logging("debug" if args.verbose else settings.log_level, settings.log_file)

    runner: CommandRunner
    if args.dry_run:
        runner = RecordingCommandRunner()
    else:
        runner = SubprocessCommandRunner()

    def make_target_builder(config: Config) -> CommandTargetBuilder:
        return CommandTargetBuilder(config, runner, dry_run=args.dry_run)

    service = BuildService(config_loader=LoadedConfigLoader(config), target_builder=make_target_builder)
    try:
        service.run(
            scheme_name=args.scheme,
            generate=args.generate,
            clean=args.clean,
            list_schemes=args.list_schemes,
            configuration=args.configuration,
            build_output_path=args.build_output_path,
            path=root,
        )
    except FatalError as exc:
        return _report_fatal(exc)
    except CommandError as exc:
        logger.error(str(exc))
        return EXIT_ABORT
    finally:
        if isinstance(runner, RecordingCommandRunner):
            _emit_dry_run_output(runner, workspace=root)
    return 0


def _report_fatal(error: FatalError) -> int:
    if error.is_bug:
        logger.error(f"Unexpected error: {error.description}")
        logger.error("This is likely a bug; please report it with the output of --verbose.")
        return EXIT_BUG
    logger.error(f"Error: {error.description}")
    return EXIT_ABORT


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
