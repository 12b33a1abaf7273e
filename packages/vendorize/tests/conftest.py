# SPDX-License-Identifier: MIT
"""Pytest configuration and fixtures for vendoring tests."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pytest

from vendorize.config import VendorConfig
from vendorize.gopath import BuildContext


def go_file(
    package: str,
    imports: Iterable[str] = (),
    *,
    import_comment: str | None = None,
    body: str = "",
) -> str:
    """Render a small Go source file."""
    clause = f"package {package}"
    if import_comment is not None:
        clause += f' // import "{import_comment}"'
    lines = [clause, ""]
    imports = list(imports)
    if len(imports) == 1:
        lines.append(f'import "{imports[0]}"')
    elif imports:
        lines.append("import (")
        lines.extend(f'\t"{path}"' for path in imports)
        lines.append(")")
    lines.append("")
    lines.append(body or f"func {package.capitalize()}() {{}}")
    return "\n".join(lines) + "\n"


class GoWorkspace:
    """A throwaway GOROOT plus GOPATH tree for tests."""

    def __init__(self, root: Path):
        self.goroot = root / "goroot"
        self.gopath = [root / "gopath"]
        (self.goroot / "src").mkdir(parents=True)
        (self.gopath[0] / "src").mkdir(parents=True)

    go_file = staticmethod(go_file)

    def add_package(
        self,
        reference: str,
        files: dict[str, str] | None = None,
        *,
        imports: Iterable[str] = (),
        goroot: bool = False,
        import_comment: str | None = None,
    ) -> Path:
        """Create a package directory and return it.

        Without explicit files, a single ``<name>.go`` importing ``imports``
        is written.
        """
        base = self.goroot if goroot else self.gopath[0]
        directory = base.joinpath("src", *reference.split("/"))
        directory.mkdir(parents=True, exist_ok=True)
        name = reference.rsplit("/", 1)[-1].replace(".", "_").replace("-", "_")
        if files is None:
            files = {f"{name}.go": go_file(name, imports, import_comment=import_comment)}
        for filename, text in files.items():
            (directory / filename).write_text(text, encoding="utf-8")
        return directory

    def src(self, reference: str) -> Path:
        return self.gopath[0].joinpath("src", *reference.split("/"))

    def build_context(self) -> BuildContext:
        return BuildContext(goroot=str(self.goroot), gopath=[str(p) for p in self.gopath])

    def config(self, package: str, destination: str, **kwargs) -> VendorConfig:
        return VendorConfig(
            package=package,
            destination=destination,
            gopath=[str(p) for p in self.gopath],
            goroot=str(self.goroot),
            **kwargs,
        )

    def snapshot(self) -> dict[str, str]:
        """Relative path to contents of every file in the workspace."""
        result: dict[str, str] = {}
        for base in (self.goroot, *self.gopath):
            for path in sorted(base.rglob("*")):
                if path.is_file():
                    result[str(path.relative_to(base.parent))] = path.read_text(encoding="utf-8")
        return result


@pytest.fixture
def workspace(tmp_path: Path) -> GoWorkspace:
    """Create an empty GOROOT/GOPATH pair with a few standard packages."""
    ws = GoWorkspace(tmp_path)
    for std in ("fmt", "os", "strings", "net/http", "testing"):
        ws.add_package(std, goroot=True)
    return ws
