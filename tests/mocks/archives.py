"""Helpers building submission archives and throwaway plugins for tests."""

from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional

from graderkit.core.config import RunnerConfig
from graderkit.core.registry import Criterion
from graderkit.core.results import Result
from graderkit.runtime.plugin import CheckPlugin, Plugin


def build_archive(path: Path, files: Mapping[str, str | bytes]) -> Path:
    """Write ``files`` (relative name -> content) into a zip archive at ``path``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as bundle:
        for name, content in files.items():
            bundle.writestr(name, content)
    return path


class StaticCriterion(Criterion):
    def __init__(self, result: Optional[Result] = None) -> None:
        self.result = result if result is not None else Result()
        self.calls = 0

    def check(self) -> Result:
        self.calls += 1
        return self.result


class RaisingCriterion(Criterion):
    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    def check(self) -> Result:
        raise self.exc


class RecordingPlugin(Plugin):
    """Plugin assembled from callables; remembers its workspace folders."""

    def __init__(
        self,
        config: RunnerConfig | None = None,
        *,
        setup: Callable[["RecordingPlugin", List[str]], None] | None = None,
        execute: Callable[["RecordingPlugin"], None] | None = None,
    ) -> None:
        super().__init__(config or RunnerConfig())
        self._setup = setup
        self._execute = execute
        self.seen_dirs: List[Path] = []
        self.params: List[str] = []

    def set_up(self, params: List[str]) -> None:
        self.params = list(params)
        self.seen_dirs = [self.data_dir, self.output_dir]
        if self._setup is not None:
            self._setup(self, params)

    def execute(self) -> None:
        if self._execute is not None:
            self._execute(self)


class RecordingCheckPlugin(CheckPlugin):
    def __init__(self, setup: Callable[["RecordingCheckPlugin", List[str]], None], config: RunnerConfig | None = None):
        super().__init__(config or RunnerConfig())
        self._setup = setup
        self.seen_dirs: List[Path] = []

    def set_up(self, params: List[str]) -> None:
        self.seen_dirs = [self.data_dir, self.output_dir]
        self._setup(self, params)


def files_in(folder: Path) -> Dict[str, str]:
    return {
        path.relative_to(folder).as_posix(): path.read_text(encoding="utf-8")
        for path in sorted(folder.rglob("*"))
        if path.is_file()
    }
