# SPDX-License-Identifier: MIT
"""Allow running as ``python -m vendorize_cli``."""

from .main import main

main()
