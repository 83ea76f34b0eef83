from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from core.command_runner import CommandError, RecordingCommandRunner
from scheme_builder.config import BuildToolConfig, Config
from scheme_builder.errors import BuildProductsNotFoundError
from scheme_builder.models import GraphTarget, Platform, Product, Project, Target
from scheme_builder.target_builder import CommandTargetBuilder


def _graph_target(platform: Platform) -> GraphTarget:
    return GraphTarget(
        path=Path("/src/App"),
        target=Target(name="App", product=Product.APP, platform=platform),
        project=Project(path=Path("/src/App"), name="App"),
    )


class CommandTargetBuilderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.workspace = self.root / "Demo.workspace"
        self.config = Config(root=self.root)
        self.runner = RecordingCommandRunner()
        self.builder = CommandTargetBuilder(self.config, self.runner)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _build(self, **overrides: object) -> None:
        options = dict(
            workspace_path=self.workspace,
            scheme_name="App",
            clean=False,
            configuration=None,
            build_output_path=None,
        )
        options.update(overrides)
        self.builder.build_target(_graph_target(Platform.IOS), **options)

    def test_builds_scheme_in_workspace(self) -> None:
        self._build()

        self.assertEqual(len(self.runner.commands), 1)
        record = self.runner.commands[0]
        self.assertEqual(
            record.command,
            [
                "xcodebuild",
                "build",
                "-workspace",
                str(self.workspace),
                "-scheme",
                "App",
                "-destination",
                "generic/platform=iOS Simulator",
                "-derivedDataPath",
                str(self.root / ".build" / "DerivedData"),
            ],
        )
        self.assertEqual(record.cwd, str(self.root))
        self.assertEqual(record.note, "Build App")

    def test_clean_and_configuration_are_passed_through(self) -> None:
        self._build(clean=True, configuration="Release")

        command = self.runner.commands[0].command
        self.assertEqual(command[:3], ["xcodebuild", "clean", "build"])
        index = command.index("-configuration")
        self.assertEqual(command[index + 1], "Release")

    def test_configuration_defaults_from_config(self) -> None:
        self.config.build = BuildToolConfig(default_configuration="Beta", extra_args=["-quiet"])

        self._build()

        command = self.runner.commands[0].command
        self.assertNotIn("clean", command)
        self.assertEqual(command[command.index("-configuration") + 1], "Beta")
        self.assertEqual(command[-1], "-quiet")

    def test_destination_follows_platform(self) -> None:
        cases = {
            Platform.MACOS: "platform=macOS",
            Platform.TVOS: "generic/platform=tvOS Simulator",
            Platform.WATCHOS: "generic/platform=watchOS Simulator",
        }
        for platform, destination in cases.items():
            with self.subTest(platform=platform):
                command = self.builder.build_command(
                    _graph_target(platform),
                    workspace_path=self.workspace,
                    scheme_name="App",
                    clean=False,
                    configuration=None,
                )
                self.assertEqual(command[command.index("-destination") + 1], destination)

        linux = self.builder.build_command(
            _graph_target(Platform.LINUX), workspace_path=self.workspace, scheme_name="App", clean=False, configuration=None
        )
        self.assertNotIn("-destination", linux)

    def test_absolute_derived_data_path_is_kept(self) -> None:
        derived = self.root / "elsewhere"
        self.config.build = BuildToolConfig(derived_data_path=str(derived))

        self.assertEqual(self.builder.derived_data_path, derived)

    def test_copies_products_to_output_path(self) -> None:
        products = self.root / ".build" / "DerivedData" / "Build" / "Products"
        (products / "Release-iphonesimulator" / "App.app").mkdir(parents=True)
        (products / "Release-iphonesimulator" / "App.app" / "Info.plist").write_text("plist")
        (products / "Debug-iphonesimulator").mkdir(parents=True)
        (products / "Debug-iphonesimulator" / "Stale.txt").write_text("debug")
        output = self.root / "out"

        self._build(configuration="Release", build_output_path=output)

        self.assertEqual((output / "App.app" / "Info.plist").read_text(), "plist")
        self.assertFalse((output / "Stale.txt").exists())

    def test_missing_products_raise(self) -> None:
        with self.assertRaises(BuildProductsNotFoundError):
            self._build(build_output_path=self.root / "out")

    def test_dry_run_skips_copying(self) -> None:
        builder = CommandTargetBuilder(self.config, self.runner, dry_run=True)

        builder.build_target(
            _graph_target(Platform.MACOS),
            workspace_path=self.workspace,
            scheme_name="App",
            clean=False,
            configuration=None,
            build_output_path=self.root / "out",
        )

        self.assertEqual(len(self.runner.commands), 1)
        self.assertFalse((self.root / "out").exists())

    def test_command_failure_propagates(self) -> None:
        self.builder = CommandTargetBuilder(self.config, RecordingCommandRunner(fail_when=lambda command: True))

        with self.assertRaises(CommandError) as ctx:
            self._build(build_output_path=self.root / "out")

        self.assertEqual(ctx.exception.result.returncode, 1)
        self.assertFalse((self.root / "out").exists())


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
