"""Plugin compiling the submitted ``src`` folder and calling one of its methods."""

from __future__ import annotations

import sys
from typing import Dict, List, Sequence

from graderkit.checks.source_run import (
    ARGUMENT,
    ENTRY_TYPE,
    EXPECTED_OUTPUT,
    METHOD,
    OUTPUT_FILE,
    SOURCE_DIR,
    SourceRunCheck,
)
from graderkit.runtime.plugin import CheckPlugin

SOURCE_FOLDER = "src"
OUTPUT_NAME = "output.txt"


class SourceRunPlugin(CheckPlugin):
    """Arguments: ``<entryType> <method> [argument] [expectedOutput]``."""

    name = "source-run"

    def set_up(self, params: List[str]) -> None:
        self.require_params(params, ["entry type (module.Class)", "method name"])
        check_params: Dict[str, str] = {
            ENTRY_TYPE: params[0],
            METHOD: params[1],
            OUTPUT_FILE: self.settings.get("output_file", OUTPUT_NAME),
        }
        if len(params) > 2:
            check_params[ARGUMENT] = params[2]
        if len(params) > 3:
            check_params[EXPECTED_OUTPUT] = params[3]
        self.add_check_as_criterion(
            SourceRunCheck(
                {SOURCE_DIR: self.source_file(SOURCE_FOLDER)},
                check_params,
                self.output_dir,
                limits=self.config.sandbox if self.config is not None else None,
            )
        )


def main(argv: Sequence[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    print(SourceRunPlugin().run(args))
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry point
    raise SystemExit(main())
