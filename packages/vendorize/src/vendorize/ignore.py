# SPDX-License-Identifier: MIT
"""Rules deciding which packages are left out of copying."""

from __future__ import annotations

from typing import Container, Iterable

from .gopath import has_prefix


def is_ignored(
    reference: str,
    ignore: Iterable[str],
    root_reference: str,
    destination: str,
    assigned: Container[str] | None = None,
) -> bool:
    """Check whether a package must not be copied.

    Rules, in priority order:
    1. The package already has a destination assigned in this run.
    2. The package lies under an ignore prefix, under the root package,
       or under the destination (copying those would nest the project
       inside itself).

    Args:
        reference: Import path to check
        ignore: User supplied import path prefixes
        root_reference: Import path of the package being vendored
        destination: Destination import path prefix
        assigned: Import paths already assigned a destination, if tracked

    Returns:
        True if the package must not be copied
    """
    if assigned is not None and reference in assigned:
        return True
    return any(has_prefix(reference, prefix) for prefix in (*ignore, root_reference, destination))
