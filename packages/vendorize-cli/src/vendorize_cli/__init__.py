# SPDX-License-Identifier: MIT
"""Command line interface for vendoring Go packages."""

__version__ = "0.1.0"
