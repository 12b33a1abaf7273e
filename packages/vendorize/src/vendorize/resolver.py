# SPDX-License-Identifier: MIT
"""Package resolution against a GOPATH workspace.

This module locates the directory of an import path, classifies its Go
source files by role, and collects the import paths they declare. Results
are cached for the lifetime of a resolver.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .constraint import excluded_by_build_constraints
from .errors import VendorError
from .gopath import BuildContext, is_valid_reference
from .gosource import ParseError, SourceHeader, parse_header

logger = logging.getLogger(__name__)

# Pseudo-package used by cgo; it has no directory and is never resolved
CGO_PSEUDO_PACKAGE = "C"


class ResolutionError(VendorError):
    """Raised when a package or its sources cannot be located.

    Attributes:
        reference: Import path that failed to resolve
        reason: Why resolution failed
    """

    def __init__(self, reference: str, reason: str):
        self.reference = reference
        self.reason = reason
        super().__init__(f"cannot find package {reference!r}: {reason}")


class GorootViolation(VendorError):
    """Raised when the root of a vendoring run is a standard library package."""

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"can't vendorize packages from GOROOT: {reference}")


@dataclass
class Module:
    """A resolved Go package.

    Attributes:
        reference: Import path of the package
        dir: Directory holding the package sources
        name: Package name from the package clauses (last path element for
            standard packages, whose sources are not read)
        goroot: True if the package is part of the Go distribution
        go_files: Non-test sources without cgo
        cgo_files: Non-test sources that import "C"
        test_go_files: In-package test sources
        xtest_go_files: External test sources (package <name>_test)
        invalid_go_files: Sources that failed to parse and were tolerated
        ignored_go_files: Sources excluded from every build by an "ignore"
            build constraint; copied but never parsed or rewritten
        imports: Imports of go_files and cgo_files
        test_imports: Imports of test_go_files
        xtest_imports: Imports of xtest_go_files
        import_comment: Canonical import path declared by the package, if any
    """

    reference: str
    dir: Path
    name: str
    goroot: bool = False
    go_files: list[str] = field(default_factory=list)
    cgo_files: list[str] = field(default_factory=list)
    test_go_files: list[str] = field(default_factory=list)
    xtest_go_files: list[str] = field(default_factory=list)
    invalid_go_files: list[str] = field(default_factory=list)
    ignored_go_files: list[str] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    test_imports: list[str] = field(default_factory=list)
    xtest_imports: list[str] = field(default_factory=list)
    import_comment: str | None = None

    def source_files(self) -> list[str]:
        """All source files, role by role, ready for rewriting."""
        return [
            *self.go_files,
            *self.cgo_files,
            *self.test_go_files,
            *self.xtest_go_files,
            *self.invalid_go_files,
        ]

    def all_imports(self) -> list[str]:
        """Union of normal, test and external test imports, sorted."""
        return sorted({*self.imports, *self.test_imports, *self.xtest_imports})


def _is_source_name(name: str) -> bool:
    """Check whether a file name is one the Go tool would consider."""
    return name.endswith(".go") and not name.startswith(("_", "."))


def _read_source(path: Path) -> str:
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


class ModuleResolver:
    """Resolves import paths to Modules, caching successful lookups.

    Failed lookups are not cached: asking again retries the file system.
    """

    def __init__(self, context: BuildContext, *, allow_parse_errors: bool = False):
        """Initialize the resolver.

        Args:
            context: Search environment (GOROOT and GOPATH)
            allow_parse_errors: Record unparsable files in
                ``Module.invalid_go_files`` instead of failing
        """
        self.context = context
        self.allow_parse_errors = allow_parse_errors
        self._cache: dict[str, Module] = {}

    def __contains__(self, reference: str) -> bool:
        return reference in self._cache

    def resolve(self, reference: str) -> Module:
        """Resolve an import path.

        Args:
            reference: Import path to resolve

        Returns:
            The resolved Module (the cached instance on repeated calls)

        Raises:
            ResolutionError: If the package cannot be located or read
            ParseError: If a source file is malformed and parse errors are
                not allowed
        """
        cached = self._cache.get(reference)
        if cached is not None:
            return cached

        module = self._resolve(reference)
        self._cache[reference] = module
        return module

    def _resolve(self, reference: str) -> Module:
        if reference.startswith(("./", "../")) or reference in (".", ".."):
            raise ResolutionError(reference, "relative import paths are not supported")
        if not is_valid_reference(reference):
            raise ResolutionError(reference, "invalid import path")

        searched: list[str] = []
        for directory, goroot in self.context.candidate_dirs(reference):
            searched.append(str(directory))
            if not directory.is_dir():
                continue
            logger.debug("resolved %s to %s", reference, directory)
            if goroot:
                # Standard packages are never copied, so their sources are not read
                name = reference.rsplit("/", 1)[-1]
                return Module(reference, dir=directory, name=name, goroot=True)
            return self._scan(reference, directory)

        if not searched:
            raise ResolutionError(reference, "neither GOROOT nor GOPATH is set")
        raise ResolutionError(reference, "not found in any of:\n  " + "\n  ".join(searched))

    def _scan(self, reference: str, directory: Path) -> Module:
        try:
            names = sorted(
                entry.name
                for entry in directory.iterdir()
                if entry.is_file() and _is_source_name(entry.name)
            )
        except OSError as e:
            raise ResolutionError(reference, f"cannot list {directory}: {e}") from e

        headers: dict[str, SourceHeader] = {}
        invalid: list[str] = []
        ignored: list[str] = []
        for name in names:
            path = directory / name
            try:
                text = _read_source(path)
            except OSError as e:
                raise ResolutionError(reference, f"cannot read {path}: {e}") from e
            except UnicodeDecodeError as e:
                raise ResolutionError(reference, f"{path} is not valid UTF-8: {e}") from e
            if excluded_by_build_constraints(text, str(path)):
                logger.debug("%s: skipping %s, excluded by build constraints", reference, name)
                ignored.append(name)
                continue
            try:
                headers[name] = parse_header(text, str(path))
            except ParseError as e:
                if not self.allow_parse_errors:
                    raise
                logger.warning("skipping unparsable file %s: %s", path, e)
                invalid.append(name)

        if not headers:
            raise ResolutionError(reference, f"no buildable Go source files in {directory}")

        package_name = self._package_name(reference, directory, headers)
        module = Module(
            reference=reference,
            dir=directory,
            name=package_name,
            invalid_go_files=invalid,
            ignored_go_files=ignored,
        )

        imports: set[str] = set()
        test_imports: set[str] = set()
        xtest_imports: set[str] = set()
        for name, header in headers.items():
            if name.endswith("_test.go"):
                if header.package == package_name + "_test":
                    module.xtest_go_files.append(name)
                    xtest_imports.update(header.import_paths)
                else:
                    module.test_go_files.append(name)
                    test_imports.update(header.import_paths)
                continue

            if header.uses_cgo:
                module.cgo_files.append(name)
            else:
                module.go_files.append(name)
            imports.update(header.import_paths)
            if header.import_comment is not None and module.import_comment is None:
                module.import_comment = header.import_comment.path

        # A package never depends on itself, even when its external tests import it
        module.imports = sorted(imports - {reference})
        module.test_imports = sorted(test_imports - {reference})
        module.xtest_imports = sorted(xtest_imports - {reference})
        return module

    @staticmethod
    def _package_name(reference: str, directory: Path, headers: dict[str, SourceHeader]) -> str:
        """Determine the package name, rejecting mixed packages."""
        names: dict[str, str] = {}
        for filename, header in headers.items():
            package = header.package
            if filename.endswith("_test.go") and package.endswith("_test"):
                package = package[: -len("_test")]
            names.setdefault(package, filename)

        if len(names) > 1:
            found = ", ".join(f"{pkg} ({filename})" for pkg, filename in sorted(names.items()))
            raise ResolutionError(reference, f"found packages {found} in {directory}")
        return next(iter(names))
