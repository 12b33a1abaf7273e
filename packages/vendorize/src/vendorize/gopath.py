# SPDX-License-Identifier: MIT
"""GOPATH workspace helpers.

This module describes the search environment used to locate Go packages
(``GOROOT`` plus the ``GOPATH`` list), validates import paths, and chooses
which workspace root a destination tree should live under.
"""

from __future__ import annotations

import os
import re
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence

# Characters the Go tool rejects inside import paths
_INVALID_PATH_CHARS = re.compile(r"""[\s!"#$%&'()*,:;<=>?\[\\\]^`{|}\x00-\x1f\x7f]""")


def is_valid_reference(reference: str) -> bool:
    """Check whether a string is a syntactically valid import path.

    Args:
        reference: Candidate import path (e.g., "github.com/user/proj")

    Returns:
        True if the path is non-empty, slash-separated, and free of empty,
        "." or ".." elements and of characters the Go tool rejects
    """
    if not reference or reference.startswith("/"):
        return False
    if _INVALID_PATH_CHARS.search(reference):
        return False
    return all(part not in ("", ".", "..") for part in reference.split("/"))


def join_reference(*parts: str) -> str:
    """Join import path fragments with single slashes."""
    return "/".join(part.strip("/") for part in parts if part.strip("/"))


def has_prefix(reference: str, prefix: str) -> bool:
    """Check whether an import path lies at or below a path prefix.

    Matching is element-wise, so "github.com/a/bc" does not match the
    prefix "github.com/a/b".
    """
    prefix = prefix.rstrip("/")
    if not prefix:
        return False
    return reference == prefix or reference.startswith(prefix + "/")


def _existing_depth(root: Path, parts: Sequence[str]) -> int:
    """Count how many leading elements of ``parts`` exist below ``root``.

    Returns -1 when the root itself does not exist.
    """
    if not root.is_dir():
        return -1
    depth = 0
    current = root
    for part in parts:
        current = current / part
        if not current.is_dir():
            break
        depth += 1
    return depth


def choose_gopath(gopaths: Sequence[str], destination: str) -> str:
    """Choose the workspace root that a destination import path belongs to.

    Picks the root whose existing ``src`` tree shares the deepest prefix with
    the destination path. Ties are broken toward the front of the list, so
    when nothing matches the first root wins.

    Args:
        gopaths: Candidate workspace roots, in GOPATH order
        destination: Destination import path (e.g., "github.com/user/proj")

    Returns:
        The chosen root, exactly as given in ``gopaths``

    Raises:
        ValueError: If no candidate roots are given
    """
    if not gopaths:
        raise ValueError("no GOPATH entries to choose from")

    parts = ["src", *[part for part in destination.split("/") if part]]
    best = gopaths[0]
    best_depth = -2
    for gopath in gopaths:
        depth = _existing_depth(Path(gopath), parts)
        if depth > best_depth:
            best, best_depth = gopath, depth
    return best


def _go_env_goroot() -> str | None:
    """Ask the installed Go toolchain for its GOROOT."""
    go = shutil.which("go")
    if go is None:
        return None
    try:
        result = subprocess.run(
            [go, "env", "GOROOT"],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError:
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


@dataclass
class BuildContext:
    """Search environment for resolving import paths.

    Attributes:
        goroot: Root of the Go distribution (its ``src`` holds the standard
            library), or None when unknown
        gopath: Workspace roots, searched in order
    """

    goroot: str | None = None
    gopath: list[str] = field(default_factory=list)

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "BuildContext":
        """Build a context from GOROOT and GOPATH environment variables.

        When GOROOT is unset, the installed ``go`` command is asked for it.
        """
        env = os.environ if environ is None else environ
        goroot = env.get("GOROOT") or _go_env_goroot()
        gopath = [p for p in env.get("GOPATH", "").split(os.pathsep) if p]
        return cls(goroot=goroot, gopath=gopath)

    def candidate_dirs(self, reference: str) -> list[tuple[Path, bool]]:
        """List the directories a reference may live in, in search order.

        Returns:
            (directory, is_goroot) pairs; GOROOT comes first
        """
        candidates: list[tuple[Path, bool]] = []
        if self.goroot:
            candidates.append((Path(self.goroot) / "src" / reference, True))
        for gopath in self.gopath:
            candidates.append((Path(gopath) / "src" / reference, False))
        return candidates
