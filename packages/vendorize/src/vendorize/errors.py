# SPDX-License-Identifier: MIT
"""Exception hierarchy shared by the vendoring components."""

from __future__ import annotations


class VendorError(Exception):
    """Base class for every error raised while vendoring a package."""

    pass
