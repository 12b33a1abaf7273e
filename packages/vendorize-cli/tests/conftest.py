# SPDX-License-Identifier: MIT
"""Pytest configuration and fixtures for CLI tests."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Generator

import pytest
from click.testing import CliRunner


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_vendorize_logger() -> Generator[None, None, None]:
    """Remove handlers the CLI attaches to the library logger."""
    logger = logging.getLogger("vendorize")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    logger.handlers = handlers
    logger.setLevel(level)


@pytest.fixture
def go_workspace(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a GOROOT and GOPATH holding a small application.

    example.com/app imports fmt and github.com/a/lib, which imports
    github.com/a/util.
    """
    goroot = tmp_path / "goroot"
    fmt_dir = goroot / "src" / "fmt"
    fmt_dir.mkdir(parents=True)
    (fmt_dir / "print.go").write_text("package fmt\n\nfunc Println() {}\n")

    gopath = tmp_path / "gopath"
    app_dir = gopath / "src" / "example.com" / "app"
    app_dir.mkdir(parents=True)
    (app_dir / "main.go").write_text(
        """package main

import (
	"fmt"

	"github.com/a/lib"
)

func main() {
	fmt.Println(lib.Hello())
}
"""
    )

    lib_dir = gopath / "src" / "github.com" / "a" / "lib"
    lib_dir.mkdir(parents=True)
    (lib_dir / "lib.go").write_text(
        """package lib // import "github.com/a/lib"

import "github.com/a/util"

func Hello() string { return util.Greeting }
"""
    )

    util_dir = gopath / "src" / "github.com" / "a" / "util"
    util_dir.mkdir(parents=True)
    (util_dir / "util.go").write_text('package util\n\nconst Greeting = "hello"\n')

    yield tmp_path


@pytest.fixture
def workspace_options(go_workspace: Path) -> list[str]:
    """Command line options pointing vendorize at the test workspace."""
    return ["--goroot", str(go_workspace / "goroot"), "--gopath", str(go_workspace / "gopath")]
