"""Recursive listing of whatever the submission contains."""

from __future__ import annotations

from pathlib import Path

from graderkit.core.checks import Check
from graderkit.utils.text import indent

BASE_DIR = "baseDir"
LISTING_FILE = "listingFile"
SOME_INPUT_EXISTS = "someInputExists"


def folder_listing(folder: Path) -> str:
    """List ``folder`` recursively: subfolders (``name/`` plus indented contents) first, then files."""

    if not folder.is_dir():
        return ""
    entries = sorted(folder.iterdir(), key=lambda path: path.name)
    lines = []
    for entry in entries:
        if entry.is_dir():
            lines.append(f"{entry.name}/\n")
            lines.append(indent(folder_listing(entry), 1, "  "))
    for entry in entries:
        if entry.is_file():
            lines.append(f"{entry.name}\n")
    return "".join(lines)


class ListingCheck(Check):
    """Passes when the base folder holds anything; writes its listing to ``listingFile``."""

    name = "listing"

    def set_goals(self) -> None:
        self.add_goal(SOME_INPUT_EXISTS, "Include something to list")

    def do_check(self) -> None:
        self.require_sources(BASE_DIR)
        self.require_params(LISTING_FILE)

        listing = folder_listing(self.source_file(BASE_DIR)).strip()
        self.save_text_file(self.param(LISTING_FILE), listing)
        self.goal(SOME_INPUT_EXISTS).reach_on_condition(bool(listing), "No files/folders found")


__all__ = ["BASE_DIR", "LISTING_FILE", "ListingCheck", "SOME_INPUT_EXISTS", "folder_listing"]
