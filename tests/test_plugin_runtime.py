import json
import unittest
from pathlib import Path
from typing import List

import pytest

from graderkit.checks.source_run import COMPILES, ENTRY_TYPE, METHOD, SOURCE_DIR, SourceRunCheck
from graderkit.core.config import RunnerConfig
from graderkit.core.errors import PluginDataError, PluginUseError
from graderkit.core.results import Result
from graderkit.runtime.plugin import MISSING_ARCHIVE_MESSAGE, RunState
from graderkit.runtime.protocol import FailureReport, SuccessReport, parse_report
from tests.mocks.archives import (
    RaisingCriterion,
    RecordingCheckPlugin,
    RecordingPlugin,
    StaticCriterion,
    build_archive,
)


def _assert_released(plugin) -> None:
    assert plugin.seen_dirs, "plugin never reached set_up"
    for folder in plugin.seen_dirs:
        assert not folder.exists(), f"{folder} was not removed"
    assert plugin.state is RunState.RELEASED


class PluginRunScenarioTests(unittest.TestCase):
    def setUp(self) -> None:
        import tempfile

        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.tmp = Path(self._tmp.name)
        self.archive = build_archive(self.tmp / "submission.zip", {"readme.txt": "hello"})

    def test_missing_archive_argument(self) -> None:
        for argv in ([], None):
            report = parse_report(RecordingPlugin().run(argv))
            self.assertIsInstance(report, FailureReport)
            self.assertEqual(report.error, MISSING_ARCHIVE_MESSAGE)

    def test_default_result_is_reported_as_full_pass(self) -> None:
        plugin = RecordingPlugin(setup=lambda p, _params: p.add_criterion("only", StaticCriterion()))
        report = parse_report(plugin.run([str(self.archive)]))
        self.assertIsInstance(report, SuccessReport)
        self.assertEqual(len(report.criteria), 1)
        criterion = report.criteria[0]
        self.assertEqual((criterion.name, criterion.passed, criterion.fulfillment, criterion.details), ("only", True, 100, ""))
        _assert_released(plugin)

    def test_duplicate_criterion_names_fail_the_run(self) -> None:
        def setup(plugin, _params):
            plugin.add_criterion("dup", StaticCriterion())
            plugin.add_criterion("dup", StaticCriterion())

        plugin = RecordingPlugin(setup=setup)
        report = parse_report(plugin.run([str(self.archive)]))
        self.assertIsInstance(report, FailureReport)
        self.assertIn("Cannot add criterion with same name twice (dup)", report.error)
        _assert_released(plugin)

    def test_empty_output_folder_means_no_output_entry(self) -> None:
        plugin = RecordingPlugin(setup=lambda p, _params: p.add_criterion("c", StaticCriterion()))
        report = parse_report(plugin.run([str(self.archive)]))
        self.assertIsNone(report.output_file)

    def test_written_output_is_packed(self) -> None:
        def execute(plugin):
            plugin.output_file("result.txt").write_text("graded", encoding="utf-8")

        config = RunnerConfig(output_archive_dir=self.tmp / "archives")
        plugin = RecordingPlugin(config, execute=execute)
        report = parse_report(plugin.run([str(self.archive)]))
        self.assertIsNotNone(report.output_file)
        self.assertTrue(Path(report.output_file).is_file())
        self.assertEqual(Path(report.output_file).parent, (self.tmp / "archives").resolve())
        _assert_released(plugin)

    def test_params_after_archive_reach_set_up(self) -> None:
        plugin = RecordingPlugin()
        plugin.run([str(self.archive), "first", "second"])
        self.assertEqual(plugin.params, ["first", "second"])

    def test_raising_criterion_drops_all_results(self) -> None:
        def setup(plugin, _params):
            plugin.add_criterion("fine", StaticCriterion())
            plugin.add_criterion("broken", RaisingCriterion(PluginDataError("criterion blew up")))

        plugin = RecordingPlugin(setup=setup)
        report = parse_report(plugin.run([str(self.archive)]))
        self.assertIsInstance(report, FailureReport)
        self.assertEqual(report.error, "criterion blew up")
        _assert_released(plugin)

    def test_unexpected_error_reports_type_and_origin(self) -> None:
        def execute(plugin):
            raise ZeroDivisionError("division by zero")

        plugin = RecordingPlugin(execute=execute)
        report = parse_report(plugin.run([str(self.archive)]))
        self.assertTrue(report.error.startswith("Unexpected ZeroDivisionError: division by zero @ "))
        _assert_released(plugin)

    def test_malformed_archive_is_reported(self) -> None:
        broken = self.tmp / "broken.zip"
        broken.write_bytes(b"PK-not-really")
        plugin = RecordingPlugin()
        report = parse_report(plugin.run([str(broken)]))
        self.assertIsInstance(report, FailureReport)
        self.assertIn("not a valid zip file", report.error)
        self.assertIs(plugin.state, RunState.RELEASED)

    def test_require_params_message(self) -> None:
        def setup(plugin, params):
            plugin.require_params(params, ["entry type", "method"])

        report = parse_report(RecordingPlugin(setup=setup).run([str(self.archive), "only-one"]))
        self.assertEqual(report.error, "Plugin takes 2 mandatory arguments: entry type, method")


def test_failure_details_never_leak_data_folder(tmp_path: Path) -> None:
    archive = build_archive(tmp_path / "s.zip", {"a.txt": "x"})

    def execute(plugin):
        raise PluginUseError(f"Cannot use {plugin.source_path('a.txt')}")

    report = parse_report(RecordingPlugin(execute=execute).run([str(archive)]))
    assert report.error == "Cannot use ./a.txt"


def test_workspace_paths_outside_a_run_are_programmer_errors() -> None:
    from graderkit.core.errors import PluginCodeError

    with pytest.raises(PluginCodeError):
        RecordingPlugin().data_dir


def test_compile_failure_fails_only_its_criterion(tmp_path: Path) -> None:
    archive = build_archive(
        tmp_path / "s.zip",
        {"src/solution.py": "class Solver:\n    def solve(self:\n        return 1\n"},
    )

    def setup(plugin, _params):
        plugin.add_check_as_criterion(
            SourceRunCheck(
                {SOURCE_DIR: plugin.source_file("src")},
                {ENTRY_TYPE: "solution.Solver", METHOD: "solve"},
                plugin.output_dir,
            ),
            name="runs",
        )
        plugin.add_criterion("other", StaticCriterion(Result(fulfillment=90)))

    plugin = RecordingCheckPlugin(setup)
    report = parse_report(plugin.run([str(archive)]))
    assert isinstance(report, SuccessReport)
    by_name = {criterion.name: criterion for criterion in report.criteria}
    assert by_name["runs"].passed is False
    assert by_name["runs"].fulfillment == 0
    assert "Source cannot be compiled (solution.py)" in by_name["runs"].details
    assert "SyntaxError" in by_name["runs"].details
    assert by_name["other"].passed is True and by_name["other"].fulfillment == 90
    _assert_released(plugin)


def test_journal_records_every_transition(tmp_path: Path) -> None:
    archive = build_archive(tmp_path / "s.zip", {"a.txt": "x"})
    journal = tmp_path / "journal.jsonl"
    plugin = RecordingPlugin(RunnerConfig(journal_path=journal))
    plugin.run([str(archive)])
    stages: List[str] = [json.loads(line)["stage"] for line in journal.read_text(encoding="utf-8").splitlines()]
    assert stages == ["unpacked", "configured", "executed", "assessed", "reported", "released"]


def test_journal_records_failures(tmp_path: Path) -> None:
    journal = tmp_path / "journal.jsonl"
    RecordingPlugin(RunnerConfig(journal_path=journal)).run([])
    records = [json.loads(line) for line in journal.read_text(encoding="utf-8").splitlines()]
    assert [record["stage"] for record in records] == ["failed", "reported", "released"]
    assert records[0]["payload"]["kind"] == "use"
