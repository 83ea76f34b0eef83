from __future__ import annotations

from pathlib import Path
import unittest

from scheme_builder import models
from scheme_builder.models import CodeCoverageMode, CoverageScope, Scheme, TargetReference

Options = models.TestingOptions


class TestingOptionsTests(unittest.TestCase):
    def test_union_contains_both_flags(self) -> None:
        combined = Options.PARALLELIZABLE | Options.RANDOM_EXECUTION_ORDERING
        self.assertIn(Options.PARALLELIZABLE, combined)
        self.assertIn(Options.RANDOM_EXECUTION_ORDERING, combined)

    def test_union_is_idempotent(self) -> None:
        combined = Options.PARALLELIZABLE | Options.RANDOM_EXECUTION_ORDERING
        self.assertEqual(combined | Options.PARALLELIZABLE, combined)
        self.assertEqual(combined | Options.RANDOM_EXECUTION_ORDERING, combined)
        self.assertEqual(Options.PARALLELIZABLE | Options.PARALLELIZABLE, Options.PARALLELIZABLE)

    def test_union_is_commutative_and_associative(self) -> None:
        a, b, none = Options.PARALLELIZABLE, Options.RANDOM_EXECUTION_ORDERING, Options.NONE
        self.assertEqual(a | b, b | a)
        self.assertEqual((a | b) | none, a | (b | none))

    def test_empty_set_contains_nothing(self) -> None:
        self.assertNotIn(Options.PARALLELIZABLE, Options.NONE)
        self.assertNotIn(Options.RANDOM_EXECUTION_ORDERING, Options.PARALLELIZABLE)
        self.assertEqual(Options.NONE.to_names(), [])

    def test_from_names_accepts_common_spellings(self) -> None:
        self.assertEqual(Options.from_names([]), Options.NONE)
        self.assertEqual(
            Options.from_names(["parallelizable", "randomExecutionOrdering"]),
            Options.PARALLELIZABLE | Options.RANDOM_EXECUTION_ORDERING,
        )
        self.assertEqual(Options.from_names(["random_execution_ordering"]), Options.RANDOM_EXECUTION_ORDERING)

    def test_from_names_rejects_unknown_flag(self) -> None:
        with self.assertRaises(ValueError):
            Options.from_names(["shuffle"])

    def test_to_names_round_trips(self) -> None:
        combined = Options.PARALLELIZABLE | Options.RANDOM_EXECUTION_ORDERING
        self.assertEqual(combined.to_names(), ["parallelizable", "random_execution_ordering"])
        self.assertEqual(Options.from_names(combined.to_names()), combined)


class CodeCoverageModeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.core = TargetReference(Path("/src/Core"), "Core")
        self.app = TargetReference(Path("/src/App"), "App")

    def test_empty_targets_is_distinct_from_all_and_relevant(self) -> None:
        empty = CodeCoverageMode.targets([])
        self.assertNotEqual(empty, CodeCoverageMode.all())
        self.assertNotEqual(empty, CodeCoverageMode.relevant())
        self.assertIs(empty.scope, CoverageScope.TARGETS)
        self.assertEqual(empty.references, ())

    def test_equality_compares_scope_and_payload(self) -> None:
        self.assertEqual(CodeCoverageMode.all(), CodeCoverageMode.all())
        self.assertNotEqual(CodeCoverageMode.all(), CodeCoverageMode.relevant())
        self.assertEqual(CodeCoverageMode.targets([self.core]), CodeCoverageMode.targets((self.core,)))
        self.assertNotEqual(CodeCoverageMode.targets([self.core]), CodeCoverageMode.targets([self.app]))

    def test_target_order_matters(self) -> None:
        self.assertNotEqual(
            CodeCoverageMode.targets([self.core, self.app]),
            CodeCoverageMode.targets([self.app, self.core]),
        )

    def test_only_targets_scope_carries_references(self) -> None:
        with self.assertRaises(ValueError):
            CodeCoverageMode(CoverageScope.ALL, (self.core,))

    def test_values_round_trip(self) -> None:
        for mode in (
            CodeCoverageMode.all(),
            CodeCoverageMode.relevant(),
            CodeCoverageMode.targets([]),
            CodeCoverageMode.targets([self.core, self.app]),
        ):
            with self.subTest(mode=mode):
                self.assertEqual(CodeCoverageMode.from_value(mode.to_value()), mode)

    def test_is_hashable(self) -> None:
        modes = {CodeCoverageMode.all(), CodeCoverageMode.all(), CodeCoverageMode.targets([])}
        self.assertEqual(len(modes), 2)


class SchemeTests(unittest.TestCase):
    def test_scheme_without_build_targets_is_not_buildable(self) -> None:
        scheme = Scheme(name="Tests", test_action=models.TestAction(targets=[TargetReference(Path("/src"), "Tests")]))
        self.assertFalse(scheme.has_build_targets)

    def test_test_action_survives_serialization(self) -> None:
        reference = TargetReference(Path("/src/App"), "AppTests")
        scheme = Scheme(
            name="App",
            test_action=models.TestAction(
                targets=[reference],
                configuration="Debug",
                coverage=CodeCoverageMode.targets([reference]),
                options=Options.PARALLELIZABLE,
            ),
        )
        self.assertEqual(Scheme.from_dict(scheme.to_dict()), scheme)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
