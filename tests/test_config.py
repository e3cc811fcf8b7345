import json
import tempfile
import unittest
from pathlib import Path

import pytest

from graderkit.core.config import RunnerConfig, SandboxLimits, load_runner_config
from graderkit.core.journal import RunEvent, RunJournal
from graderkit.runtime.bootstrap import resolve_runner_config


class RunnerConfigTests(unittest.TestCase):
    def _write_yaml(self, data: str) -> Path:
        tmp = tempfile.NamedTemporaryFile("w", delete=False, suffix=".yaml")
        tmp.write(data)
        tmp.flush()
        tmp.close()
        self.addCleanup(lambda: Path(tmp.name).unlink(missing_ok=True))
        return Path(tmp.name)

    def test_defaults(self) -> None:
        config = RunnerConfig()
        self.assertFalse(config.verbose_errors)
        self.assertEqual(config.redaction_placeholder, ".")
        self.assertEqual(config.sandbox, SandboxLimits())
        self.assertEqual(config.sandbox.timeout_s, 10.0)
        self.assertIsNone(config.journal_path)

    def test_load_runner_config_resolves_relative_paths(self) -> None:
        path = self._write_yaml(
            """
            verbose_errors: true
            journal_path: logs/run.jsonl
            sandbox:
              timeout_s: 2.5
              max_memory_mb: 256
            settings:
              output_file: result.txt
              retries: 3
            """
        )
        config = load_runner_config(path)
        self.assertTrue(config.verbose_errors)
        self.assertEqual(config.journal_path, (path.parent / "logs" / "run.jsonl").resolve())
        self.assertEqual(config.sandbox.timeout_s, 2.5)
        self.assertEqual(config.settings, {"output_file": "result.txt", "retries": "3"})

    def test_invalid_config_names_the_file(self) -> None:
        path = self._write_yaml("sandbox:\n  timeout_s: -1\n")
        with self.assertRaises(ValueError) as ctx:
            load_runner_config(path)
        self.assertIn(str(path.name), str(ctx.exception))

    def test_unparsable_yaml_is_a_value_error(self) -> None:
        path = self._write_yaml("sandbox: [unclosed\n")
        with self.assertRaises(ValueError) as ctx:
            load_runner_config(path)
        self.assertIn("not valid YAML", str(ctx.exception))


def test_resolve_runner_config_reads_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_file = tmp_path / "runner.yaml"
    config_file.write_text("redaction_placeholder: '<data>'\n", encoding="utf-8")
    monkeypatch.setenv("GRADERKIT_CONFIG", "runner.yaml")
    monkeypatch.setenv("GRADERKIT_VERBOSE_ERRORS", "yes")
    monkeypatch.setenv("GRADERKIT_SANDBOX_TIMEOUT", "3")

    config = resolve_runner_config(working_dir=tmp_path)

    assert config.redaction_placeholder == "<data>"
    assert config.verbose_errors is True
    assert config.sandbox.timeout_s == 3.0


def test_resolve_runner_config_loads_dotenv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("GRADERKIT_CONFIG", "GRADERKIT_VERBOSE_ERRORS", "GRADERKIT_SANDBOX_TIMEOUT"):
        # set first so teardown also removes what load_dotenv exports
        monkeypatch.setenv(name, "unset")
        monkeypatch.delenv(name)
    (tmp_path / ".env").write_text("GRADERKIT_SANDBOX_TIMEOUT=4.5\n", encoding="utf-8")
    config = resolve_runner_config(working_dir=tmp_path)
    assert config.sandbox.timeout_s == 4.5
    assert config.verbose_errors is False


def test_resolve_runner_config_rejects_bad_timeout(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GRADERKIT_CONFIG", raising=False)
    monkeypatch.setenv("GRADERKIT_SANDBOX_TIMEOUT", "soon")
    with pytest.raises(ValueError, match="GRADERKIT_SANDBOX_TIMEOUT"):
        resolve_runner_config(working_dir=tmp_path)


def test_journal_appends_json_lines(tmp_path: Path) -> None:
    journal = RunJournal(tmp_path / "nested" / "journal.jsonl")
    journal.log(RunEvent(stage="unpacked", message="Entered unpacked", payload={"files": 2}))
    journal.log({"stage": "released", "message": "done"})
    lines = (tmp_path / "nested" / "journal.jsonl").read_text(encoding="utf-8").splitlines()
    records = [json.loads(line) for line in lines]
    assert [record["stage"] for record in records] == ["unpacked", "released"]
    assert records[0]["payload"] == {"files": 2}


def test_disabled_journal_writes_nothing(tmp_path: Path) -> None:
    journal = RunJournal(None)
    event = journal.log({"stage": "init", "message": "start"})
    assert not journal.enabled
    assert event.stage == "init"
    assert list(tmp_path.iterdir()) == []
