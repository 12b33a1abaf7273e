# SPDX-License-Identifier: MIT
"""Copy one package directory into the destination tree."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import MutableSet

from .errors import VendorError

logger = logging.getLogger(__name__)


class VendorIOError(VendorError):
    """Raised when copying or writing a file fails."""

    pass


class DestinationConflictError(VendorIOError):
    """Raised when a copy would overwrite a file this run did not create."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"refusing to overwrite existing file: {path}")


def copy_package_files(
    dest_dir: Path,
    source_dir: Path,
    *,
    dry_run: bool = False,
    created: MutableSet[Path] | None = None,
) -> list[Path]:
    """Copy every regular file directly inside ``source_dir`` to ``dest_dir``.

    Subdirectories are not copied: each of them is a different package.
    Permission bits are preserved. In dry-run mode every copy is logged but
    the file system is not touched.

    Args:
        dest_dir: Destination directory (created with its parents if absent)
        source_dir: Package directory to copy from
        dry_run: Only log the intended copies
        created: Files created so far in this run; updated with new copies

    Returns:
        Destination paths of the copied files, in name order

    Raises:
        DestinationConflictError: If a destination file exists and was not
            created in this run
        VendorIOError: If the source cannot be listed or a copy fails
    """
    if created is None:
        created = set()

    try:
        sources = sorted(entry for entry in source_dir.iterdir() if entry.is_file())
    except OSError as e:
        raise VendorIOError(f"couldn't list {source_dir}: {e}") from e

    if not dry_run:
        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise VendorIOError(f"couldn't create {dest_dir}: {e}") from e

    copied: list[Path] = []
    for src in sources:
        dest = dest_dir / src.name
        if dest.exists() and dest not in created:
            raise DestinationConflictError(dest)

        logger.info("copying %s to %s", src, dest)
        if not dry_run:
            try:
                shutil.copy2(src, dest)
            except OSError as e:
                raise VendorIOError(f"couldn't copy {src} to {dest}: {e}") from e
        created.add(dest)
        copied.append(dest)

    return copied
