# SPDX-License-Identifier: MIT
"""Integration test: vendor the sample workspace end to end.

This test verifies the complete vendoring flow on a small Go program:
- Third-party dependencies, including test-only ones, are copied once
- The program and the copies import from the destination tree
- Standard library and project-internal imports are left alone
- Dry runs announce the same actions and leave the tree untouched
"""

import logging
import shutil
from pathlib import Path

import pytest

from vendorize import VendorConfig, WalkError, vendorize
from vendorize.gosource import parse_header

ROOT = "github.com/example/greeter"
DEST = "github.com/example/greeter/third_party"


def snapshot(base: Path) -> dict[str, str]:
    return {
        str(path.relative_to(base)): path.read_text(encoding="utf-8")
        for path in sorted(base.rglob("*"))
        if path.is_file()
    }


class TestVendorSampleWorkspace:
    """Integration tests for vendoring the sample workspace."""

    @pytest.fixture
    def workspace(self, tmp_path: Path) -> Path:
        """Copy the sample workspace so every test starts clean."""
        target = tmp_path / "workspace"
        shutil.copytree(Path(__file__).parent / "sample_workspace", target)
        return target

    @pytest.fixture
    def config(self, workspace: Path) -> VendorConfig:
        return VendorConfig(
            package=ROOT,
            destination=DEST,
            gopath=[str(workspace / "gopath")],
            goroot=str(workspace / "goroot"),
        )

    def src(self, workspace: Path, reference: str) -> Path:
        return workspace.joinpath("gopath", "src", *reference.split("/"))

    def test_dependencies_copied(self, workspace: Path, config: VendorConfig):
        """Every third-party package in the closure is copied exactly once."""
        report = vendorize(config)

        assert sorted(report.copied_references()) == [
            "github.com/pkg/errors",
            "github.com/pmezard/go-difflib/difflib",
            "github.com/stretchr/testify/assert",
            "gopkg.in/yaml.v2",
        ]
        # errors is shared by the program and yaml but copied once
        assert report.copied_references()[0] == "github.com/pkg/errors"
        assert (self.src(workspace, f"{DEST}/github.com/pkg/errors") / "LICENSE").exists()
        assert not self.src(workspace, f"{DEST}/{ROOT}/internal/text").exists()

    def test_program_imports_rewritten(self, workspace: Path, config: VendorConfig):
        """The program's imports point at the copies, aliases intact."""
        vendorize(config)

        main_go = (self.src(workspace, ROOT) / "main.go").read_text(encoding="utf-8")
        assert parse_header(main_go).import_paths == [
            "fmt",
            "os",
            f"{ROOT}/internal/text",
            f"{DEST}/github.com/pkg/errors",
            f"{DEST}/gopkg.in/yaml.v2",
        ]
        assert f'yaml "{DEST}/gopkg.in/yaml.v2"' in main_go
        assert main_go.startswith("// Command greeter prints a greeting read from a YAML file.\n")

        main_test_go = (self.src(workspace, ROOT) / "main_test.go").read_text(encoding="utf-8")
        assert f'"{DEST}/github.com/stretchr/testify/assert"' in main_test_go

    def test_copies_rewritten(self, workspace: Path, config: VendorConfig):
        """Copies import each other from the destination tree."""
        report = vendorize(config)

        yaml_go = self.src(workspace, f"{DEST}/gopkg.in/yaml.v2") / "yaml.go"
        assert parse_header(yaml_go.read_text(encoding="utf-8")).import_paths == [
            f"{DEST}/github.com/pkg/errors"
        ]
        errors_go = self.src(workspace, f"{DEST}/github.com/pkg/errors") / "errors.go"
        header = parse_header(errors_go.read_text(encoding="utf-8"))
        assert header.import_comment is None
        assert 'package errors // vendored from "github.com/pkg/errors"' in errors_go.read_text(
            encoding="utf-8"
        )
        # Originals stay where they were
        original = self.src(workspace, "gopkg.in/yaml.v2") / "yaml.go"
        assert '"github.com/pkg/errors"' in original.read_text(encoding="utf-8")
        assert len(report.rewritten) == 5

    def test_dry_run_matches_real_run(self, workspace: Path, config: VendorConfig, caplog):
        """A dry run logs the real run's actions without touching anything."""
        before = snapshot(workspace)
        dry = VendorConfig(
            package=config.package,
            destination=config.destination,
            dry_run=True,
            gopath=config.gopath,
            goroot=config.goroot,
        )

        with caplog.at_level(logging.INFO, logger="vendorize"):
            vendorize(dry)
        planned = [record.getMessage() for record in caplog.records]
        caplog.clear()
        assert snapshot(workspace) == before

        with caplog.at_level(logging.INFO, logger="vendorize"):
            vendorize(config)
        performed = [record.getMessage() for record in caplog.records]

        assert planned == performed
        assert snapshot(workspace) != before

    def test_second_run_refuses_to_overwrite(self, workspace: Path, config: VendorConfig):
        """Existing copies from an earlier run are never overwritten."""
        vendorize(config)
        pristine = Path(__file__).parent / "sample_workspace" / "gopath" / "src" / ROOT / "main.go"
        shutil.copy(pristine, self.src(workspace, ROOT) / "main.go")

        with pytest.raises(WalkError, match="refusing to overwrite"):
            vendorize(config)
