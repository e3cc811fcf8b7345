"""
Lifecycle of the temporary folders backing one run.

``allocate`` creates the folders, ``unpack`` fills the data folder from the
submission archive, ``pack`` zips whatever the plugin wrote into the output
folder and ``release`` removes both folders again without ever raising.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import zipfile
from pathlib import Path
from typing import Optional

from graderkit.core.errors import PluginDataError, PluginError
from graderkit.utils.archives import UnsafeArchiveError, unzip, zip_dir

from .context import Workspace

LOGGER = logging.getLogger(__name__)
DATA_PREFIX = "graderkit-data-"
OUTPUT_PREFIX = "graderkit-output-"


class WorkspaceManager:
    """Creates, fills, packs and removes run workspaces."""

    def __init__(self, temp_root: Path | None = None, archive_dir: Path | None = None) -> None:
        self.temp_root = temp_root
        self.archive_dir = archive_dir

    def allocate(self) -> Workspace:
        root = str(self.temp_root) if self.temp_root is not None else None
        data_dir: Optional[str] = None
        try:
            data_dir = tempfile.mkdtemp(prefix=DATA_PREFIX, dir=root)
            output_dir = tempfile.mkdtemp(prefix=OUTPUT_PREFIX, dir=root)
        except OSError as exc:
            if data_dir is not None:
                shutil.rmtree(data_dir, ignore_errors=True)
            raise PluginError(f"Cannot create temporary workspace: {exc}") from exc
        workspace = Workspace(data_dir=data_dir, output_dir=output_dir)
        LOGGER.debug("Allocated workspace data=%s output=%s", workspace.data_dir, workspace.output_dir)
        return workspace

    def unpack(self, archive: Path, workspace: Workspace) -> int:
        """Expand the submission ``archive`` into the workspace data folder."""

        if not archive.is_file():
            raise PluginDataError(f"Submission archive not found: {archive.name}")
        try:
            count = unzip(archive, workspace.data_dir)
        except zipfile.BadZipFile as exc:
            raise PluginDataError(f"Submission archive is not a valid zip file: {archive.name}") from exc
        except UnsafeArchiveError as exc:
            raise PluginDataError(f"Submission archive is malformed: {exc}") from exc
        except OSError as exc:
            raise PluginDataError(f"Cannot unpack submission archive {archive.name}: {exc}") from exc
        LOGGER.debug("Unpacked %d file(s) from %s", count, archive)
        return count

    def pack(self, workspace: Workspace) -> Optional[Path]:
        """Zip the output folder; an empty output folder yields ``None``."""

        if workspace.output_is_empty():
            return None
        archive_dir = self.archive_dir
        if archive_dir is not None:
            archive_dir.mkdir(parents=True, exist_ok=True)
        handle, name = tempfile.mkstemp(
            prefix="graderkit-", suffix=".zip", dir=str(archive_dir) if archive_dir else None
        )
        os.close(handle)
        archive = Path(name).resolve()
        count = zip_dir(workspace.output_dir, archive)
        LOGGER.debug("Packed %d output file(s) into %s", count, archive)
        return archive

    def release(self, workspace: Workspace | None) -> bool:
        """Delete both workspace folders; returns ``False`` if anything was left behind."""

        if workspace is None:
            return True
        clean = True
        for path in workspace.directories:
            try:
                shutil.rmtree(path)
            except FileNotFoundError:
                continue
            except OSError as exc:
                clean = False
                LOGGER.warning("Resource warning: could not delete workspace folder %s: %s", path, exc)
        return clean


__all__ = ["WorkspaceManager"]
