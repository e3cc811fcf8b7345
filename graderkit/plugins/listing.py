"""Plugin listing the submitted files into an output text file."""

from __future__ import annotations

import sys
from typing import List, Sequence

from graderkit.checks.listing import BASE_DIR, LISTING_FILE, ListingCheck
from graderkit.runtime.plugin import CheckPlugin

DEFAULT_LISTING_FILE = "listing.txt"


class ListingPlugin(CheckPlugin):
    """Single criterion: the submission is not empty. Its listing is returned as output."""

    name = "listing"

    def set_up(self, params: List[str]) -> None:
        listing_file = params[0] if params else DEFAULT_LISTING_FILE
        self.add_check_as_criterion(
            ListingCheck(
                {BASE_DIR: self.source_file(".")},
                {LISTING_FILE: listing_file},
                self.output_dir,
            )
        )


def main(argv: Sequence[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    print(ListingPlugin().run(args))
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry point
    raise SystemExit(main())
