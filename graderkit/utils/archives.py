"""Zip helpers for packing and unpacking directory trees."""

from __future__ import annotations

import zipfile
from pathlib import Path


class UnsafeArchiveError(ValueError):
    """Raised when an archive entry would land outside the destination folder."""


def unzip(archive: Path, dest_dir: Path) -> int:
    """Expand ``archive`` into ``dest_dir`` and return the number of files written.

    Raises ``zipfile.BadZipFile`` for malformed archives and
    ``UnsafeArchiveError`` for entries escaping ``dest_dir``.
    """

    dest_root = dest_dir.resolve()
    written = 0
    with zipfile.ZipFile(archive) as bundle:
        for entry in bundle.infolist():
            target = (dest_root / entry.filename).resolve()
            if target != dest_root and dest_root not in target.parents:
                raise UnsafeArchiveError(f"Archive entry escapes destination: {entry.filename}")
            if entry.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            with bundle.open(entry) as source, target.open("wb") as handle:
                while True:
                    chunk = source.read(64 * 1024)
                    if not chunk:
                        break
                    handle.write(chunk)
            written += 1
    return written


def zip_dir(source_dir: Path, archive: Path) -> int:
    """Pack the contents of ``source_dir`` into ``archive``; returns the file count."""

    count = 0
    with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED) as bundle:
        for path in sorted(source_dir.rglob("*")):
            relative = path.relative_to(source_dir).as_posix()
            if path.is_dir():
                if not any(path.iterdir()):
                    bundle.writestr(f"{relative}/", "")
                continue
            bundle.write(path, relative)
            count += 1
    return count
