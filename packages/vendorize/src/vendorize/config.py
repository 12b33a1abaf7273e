# SPDX-License-Identifier: MIT
"""Vendoring configuration.

This module provides the configuration dataclass that controls a vendoring
run, loadable from a ``vendorize.toml`` file.
"""

from __future__ import annotations

import enum
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from .errors import VendorError
from .gopath import BuildContext, is_valid_reference

CONFIG_FILENAME = "vendorize.toml"


class VendorConfigError(VendorError):
    """Raised when vendor configuration is invalid."""

    pass


class ParseErrorPolicy(str, enum.Enum):
    """What to do when a source file cannot be parsed."""

    ABORT = "abort"
    SKIP = "skip"


@dataclass
class VendorConfig:
    """Configuration for one vendoring run.

    Attributes:
        package: Import path of the package to vendor dependencies for
        destination: Import path prefix that copies are placed under
        dry_run: Log intended actions without touching the file system
        verbose: Report every action
        ignore: Import path prefixes that are never copied
        on_parse_error: Policy for unparsable source files
        gopath: Workspace roots (defaults to the GOPATH environment variable)
        goroot: Go distribution root (defaults to GOROOT or ``go env``)
    """

    package: str
    destination: str
    dry_run: bool = False
    verbose: bool = False
    ignore: list[str] = field(default_factory=list)
    on_parse_error: ParseErrorPolicy = ParseErrorPolicy.ABORT
    gopath: list[str] | None = None
    goroot: str | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.package:
            raise VendorConfigError("package is required")
        if not self.destination:
            raise VendorConfigError("destination is required")
        self.destination = self.destination.strip("/")
        for label, value in (("package", self.package), ("destination", self.destination)):
            if not is_valid_reference(value):
                raise VendorConfigError(f"Invalid {label} import path: {value!r}")
        self.ignore = [prefix.strip("/") for prefix in self.ignore if prefix.strip("/")]
        try:
            self.on_parse_error = ParseErrorPolicy(self.on_parse_error)
        except ValueError:
            choices = ", ".join(p.value for p in ParseErrorPolicy)
            raise VendorConfigError(
                f"Invalid on_parse_error: {self.on_parse_error!r}. Must be one of: {choices}"
            ) from None

    def build_context(self) -> BuildContext:
        """Get the search environment, preferring explicit settings."""
        context = BuildContext.from_environ()
        if self.goroot is not None:
            context.goroot = self.goroot
        if self.gopath is not None:
            context.gopath = list(self.gopath)
        return context

    @classmethod
    def from_toml(cls, config_path: str | Path, **overrides: Any) -> "VendorConfig":
        """Create VendorConfig from a ``vendorize.toml`` file.

        Reads the ``[vendorize]`` table. Keyword overrides (e.g., from the
        command line) take precedence over values in the file; overrides
        that are None are ignored.

        Raises:
            VendorConfigError: If the file is invalid or missing required fields
            FileNotFoundError: If the file does not exist
        """
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"{CONFIG_FILENAME} not found: {path}")

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise VendorConfigError(f"Invalid TOML syntax: {e}") from e

        return cls.from_toml_dict(data, **overrides)

    @classmethod
    def from_toml_dict(cls, data: dict[str, Any], **overrides: Any) -> "VendorConfig":
        """Create VendorConfig from a parsed ``vendorize.toml`` dictionary.

        Raises:
            VendorConfigError: If required fields are missing or have the wrong type
        """
        table = dict(data.get("vendorize", {}))

        # Repeated command line prefixes extend the file's list
        extra_ignore = overrides.pop("ignore", None) or []
        ignore = table.get("ignore", [])
        if not isinstance(ignore, list):
            raise VendorConfigError("'ignore' must be a list of import path prefixes")
        table["ignore"] = ignore + list(extra_ignore)

        table.update({key: value for key, value in overrides.items() if value is not None})

        for key in ("package", "destination"):
            if not table.get(key):
                raise VendorConfigError(f"Missing required field: '{key}' in [vendorize] section")
        if isinstance(table.get("gopath"), str):
            raise VendorConfigError("'gopath' must be a list of directories")

        known = {
            "package",
            "destination",
            "dry_run",
            "verbose",
            "ignore",
            "on_parse_error",
            "gopath",
            "goroot",
        }
        unknown = sorted(set(table) - known)
        if unknown:
            raise VendorConfigError(f"Unknown field(s) in [vendorize] section: {', '.join(unknown)}")

        return cls(**table)
