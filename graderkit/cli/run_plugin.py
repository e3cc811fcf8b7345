"""CLI entry point running one built-in plugin and printing its reply."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Sequence

from graderkit.core.config import RunnerConfig
from graderkit.plugins import BUILTIN_PLUGINS, get_plugin
from graderkit.runtime.bootstrap import resolve_runner_config
from graderkit.runtime.plugin import INVALID_CONFIG_MESSAGE
from graderkit.runtime.protocol import encode_failure

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Grade a submission archive with a built-in plugin and print the plugin reply.",
    )
    parser.add_argument("plugin", choices=sorted(BUILTIN_PLUGINS), help="Plugin to run.")
    parser.add_argument(
        "plugin_args",
        nargs=argparse.REMAINDER,
        help="Submission archive path followed by plugin-specific arguments.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Runner config YAML (default: $GRADERKIT_CONFIG, else built-in defaults).",
    )
    parser.add_argument(
        "--verbose-errors",
        action="store_true",
        help="Append the full cause chain to failure replies.",
    )
    parser.add_argument(
        "--report-file",
        default=None,
        help="Also write the reply to this file.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for messages on stderr (default: WARNING).",
    )
    return parser


def _load_config(args: argparse.Namespace) -> RunnerConfig:
    config = resolve_runner_config(Path(args.config) if args.config else None)
    if args.verbose_errors:
        config = config.model_copy(update={"verbose_errors": True})
    return config


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(stream=sys.stderr, level=getattr(logging, args.log_level))

    plugin_args: List[str] = list(args.plugin_args)
    if plugin_args and plugin_args[0] == "--":
        plugin_args = plugin_args[1:]

    try:
        config = _load_config(args)
    except (OSError, ValueError) as exc:
        LOGGER.error("Cannot load runner configuration: %s", exc)
        reply = encode_failure(f"{INVALID_CONFIG_MESSAGE}: {exc}")
    else:
        plugin = get_plugin(args.plugin)(config)
        reply = plugin.run(plugin_args)

    print(reply)
    if args.report_file:
        report_path = Path(args.report_file).expanduser()
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_path.write_text(reply + "\n", encoding="utf-8")
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry point
    raise SystemExit(main())
