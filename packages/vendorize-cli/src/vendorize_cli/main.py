# SPDX-License-Identifier: MIT
"""CLI entry point for the vendorize command."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click

from vendorize import (
    ParseErrorPolicy,
    VendorConfig,
    VendorConfigError,
    VendorError,
    VendorReport,
    vendorize,
)

from . import __version__


def echo_error(message: str) -> None:
    """Print an error message to stderr."""
    click.secho(f"Error: {message}", fg="red", err=True)


def echo_success(message: str) -> None:
    """Print a success message."""
    click.secho(message, fg="green")


def echo_info(message: str) -> None:
    """Print an info message."""
    click.echo(message)


def echo_warning(message: str) -> None:
    """Print a warning message."""
    click.secho(f"Warning: {message}", fg="yellow", err=True)


class ClickHandler(logging.Handler):
    """Route library log records through click so CliRunner captures them."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
        except Exception:
            self.handleError(record)
            return
        if record.levelno >= logging.WARNING:
            echo_warning(message)
        else:
            click.echo(message, err=True)


def configure_logging(verbose: bool, dry_run: bool) -> None:
    """Attach a handler to the vendorize logger.

    Intended actions are shown when verbose or in dry-run mode; otherwise
    only warnings are.
    """
    logger = logging.getLogger("vendorize")
    for handler in list(logger.handlers):
        if isinstance(handler, ClickHandler):
            logger.removeHandler(handler)
    handler = ClickHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    if verbose:
        logger.setLevel(logging.DEBUG)
    elif dry_run:
        logger.setLevel(logging.INFO)
    else:
        logger.setLevel(logging.WARNING)


def _print_summary(report: VendorReport, verbose: bool) -> None:
    verb = "Would copy" if report.dry_run else "Copied"
    echo_success(
        f"{verb} {len(report.copied)} package(s) into {report.destination} "
        f"and rewrote {len(report.rewritten)} file(s)"
    )
    if verbose:
        for module in report.copied:
            echo_info(f"  {module.reference} -> {module.destination}")
    for path in report.skipped_files:
        echo_warning(f"left unparsable file unchanged: {path}")


@click.command()
@click.version_option(version=__version__)
@click.argument("package", required=False)
@click.argument("destination", required=False)
@click.option(
    "-n",
    "--dry-run",
    is_flag=True,
    help="Show what would be copied and rewritten without doing it.",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose output.",
)
@click.option(
    "-i",
    "--ignore",
    "ignore",
    multiple=True,
    metavar="PREFIX",
    help="Import path prefix to leave alone (repeatable).",
)
@click.option(
    "--on-parse-error",
    type=click.Choice([p.value for p in ParseErrorPolicy]),
    default=None,
    help="Abort the run or skip the file when a Go file cannot be parsed.",
)
@click.option(
    "--gopath",
    metavar="PATHS",
    help="Workspace roots, separated like GOPATH (defaults to $GOPATH).",
)
@click.option(
    "--goroot",
    type=click.Path(file_okay=False, path_type=Path),
    help="Go distribution root (defaults to $GOROOT).",
)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read settings from a vendorize.toml file.",
)
def cli(
    package: Optional[str],
    destination: Optional[str],
    dry_run: bool,
    verbose: bool,
    ignore: tuple[str, ...],
    on_parse_error: Optional[str],
    gopath: Optional[str],
    goroot: Optional[Path],
    config_path: Optional[Path],
) -> None:
    """Copy PACKAGE's dependencies under DESTINATION and rewrite imports.

    Every non-standard package PACKAGE imports, directly or transitively, is
    copied to DESTINATION/<import path> in the GOPATH workspace, and the
    imports of the copies and of PACKAGE itself are rewritten to match.

    \b
    Examples:
        vendorize -n github.com/me/app github.com/me/app/third_party
        vendorize -i golang.org/x github.com/me/app github.com/me/app/vendor
        vendorize --config vendorize.toml
    """
    overrides = {
        "package": package,
        "destination": destination,
        # Flags only override the config file when given
        "dry_run": dry_run or None,
        "verbose": verbose or None,
        "ignore": list(ignore),
        "on_parse_error": on_parse_error,
        "gopath": [p for p in gopath.split(os.pathsep) if p] if gopath else None,
        "goroot": str(goroot) if goroot else None,
    }
    try:
        if config_path is not None:
            config = VendorConfig.from_toml(config_path, **overrides)
        else:
            if not package:
                raise click.UsageError("need a package name")
            if not destination:
                raise click.UsageError("need a destination path")
            config = VendorConfig.from_toml_dict({}, **overrides)
    except VendorConfigError as e:
        echo_error(str(e))
        raise SystemExit(1)

    configure_logging(config.verbose, config.dry_run)
    if config.dry_run:
        echo_info("Dry run: no files will be written.")

    try:
        report = vendorize(config)
    except VendorError as e:
        echo_error(str(e))
        raise SystemExit(1)

    _print_summary(report, config.verbose)


def main() -> None:
    """Main entry point for the CLI."""
    try:
        cli()
    except FileNotFoundError as e:
        echo_error(str(e))
        sys.exit(1)
    except Exception as e:
        echo_error(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
