# SPDX-License-Identifier: MIT
"""Depth-first vendoring of a package and its dependency closure.

The walker resolves the root package, recurses into every dependency that
has to be copied, and only then copies the current package and rewrites its
imports. Dependencies are therefore finished before their importers, and
each importer's rewrite map only needs its direct dependencies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .config import ParseErrorPolicy, VendorConfig, VendorConfigError
from .copier import copy_package_files
from .errors import VendorError
from .gopath import BuildContext, choose_gopath, join_reference
from .gosource import ParseError
from .ignore import is_ignored
from .resolver import CGO_PSEUDO_PACKAGE, GorootViolation, Module, ModuleResolver
from .rewriter import RewriteResult, rewrite_file

logger = logging.getLogger(__name__)


class WalkError(VendorError):
    """Raised when vendoring fails somewhere in the dependency graph.

    Attributes:
        chain: Import paths from the root down to the failing package
        cause: The underlying error
    """

    def __init__(self, chain: list[str], cause: Exception):
        self.chain = chain
        self.cause = cause
        super().__init__(f"couldn't vendorize {' -> '.join(chain)}: {cause}")

    @property
    def reference(self) -> str:
        """The package that was being processed when the error occurred."""
        return self.chain[-1]

    @classmethod
    def wrap(cls, reference: str, error: Exception) -> "WalkError":
        """Prefix an error with the package being processed."""
        if isinstance(error, WalkError):
            return cls([reference, *error.chain], error.cause)
        return cls([reference], error)


@dataclass
class CopiedModule:
    """A package copied into the destination tree."""

    reference: str
    destination: str
    source_dir: Path
    dest_dir: Path
    files: list[Path] = field(default_factory=list)


@dataclass
class VendorReport:
    """Everything a vendoring run did (or would do, in dry-run mode).

    Attributes:
        root: Import path of the vendored package
        destination: Destination import path prefix
        dest_root: Workspace root the destination lives under
        dry_run: Whether the file system was left untouched
        copied: Packages copied, in completion order
        rewritten: Files whose imports changed
        skipped_files: Files left alone because they could not be parsed
        rewrite_maps: Rewrite map used for each package
    """

    root: str
    destination: str
    dest_root: Path
    dry_run: bool = False
    copied: list[CopiedModule] = field(default_factory=list)
    rewritten: list[RewriteResult] = field(default_factory=list)
    skipped_files: list[Path] = field(default_factory=list)
    rewrite_maps: dict[str, dict[str, str]] = field(default_factory=dict)

    def copied_references(self) -> list[str]:
        """Import paths of the copied packages."""
        return [module.reference for module in self.copied]


@dataclass
class TraversalContext:
    """State owned by a single vendoring run.

    Attributes:
        config: Run configuration
        build: Search environment
        resolver: Package resolver and its cache
        dest_root: Workspace root chosen for the destination tree
        visited: Packages already entered
        assigned: Destination import path of every copied package
        created: Files created by this run
        report: Accumulated actions
    """

    config: VendorConfig
    build: BuildContext
    resolver: ModuleResolver
    dest_root: Path
    visited: set[str] = field(default_factory=set)
    assigned: dict[str, str] = field(default_factory=dict)
    created: set[Path] = field(default_factory=set)
    report: VendorReport | None = None

    @classmethod
    def from_config(cls, config: VendorConfig, build: BuildContext | None = None) -> "TraversalContext":
        """Create a fresh context for one run.

        Raises:
            VendorConfigError: If no GOPATH is available for the destination
        """
        build = build or config.build_context()
        if not build.gopath:
            raise VendorConfigError("GOPATH is not set")
        resolver = ModuleResolver(
            build,
            allow_parse_errors=config.on_parse_error is ParseErrorPolicy.SKIP,
        )
        dest_root = Path(choose_gopath(build.gopath, config.destination))
        context = cls(config=config, build=build, resolver=resolver, dest_root=dest_root)
        context.report = VendorReport(
            root=config.package,
            destination=config.destination,
            dest_root=dest_root,
            dry_run=config.dry_run,
        )
        return context

    def is_ignored(self, reference: str, *, track_assigned: bool = True) -> bool:
        return is_ignored(
            reference,
            self.config.ignore,
            self.config.package,
            self.config.destination,
            self.assigned if track_assigned else None,
        )

    def destination_for(self, reference: str) -> str:
        """Destination import path of a copied package."""
        return join_reference(self.config.destination, reference)

    def dest_dir(self, destination: str) -> Path:
        """Directory of a destination import path."""
        return self.dest_root.joinpath("src", *destination.split("/"))


def dependencies(context: TraversalContext, module: Module) -> list[str]:
    """Direct dependencies of a package that the walker must visit.

    Drops the cgo pseudo-package, ignored packages and standard library
    packages. Resolution failures are reported against the dependency.
    """
    result: list[str] = []
    for reference in module.all_imports():
        if reference == CGO_PSEUDO_PACKAGE:
            continue
        if context.is_ignored(reference, track_assigned=False):
            logger.debug("%s: not vendoring ignored package %s", module.reference, reference)
            continue
        try:
            dependency = context.resolver.resolve(reference)
        except VendorError as e:
            raise WalkError.wrap(reference, e) from e
        if dependency.goroot:
            continue
        result.append(reference)
    return result


def walk(context: TraversalContext, reference: str) -> str | None:
    """Vendor a package after all of its dependencies.

    A package is marked visited before its dependencies are walked, so
    cycles terminate and diamonds are processed once.

    Returns:
        The destination import path of the package, or None if it is not
        copied

    Raises:
        WalkError: If anything fails at this package or below it
    """
    if reference in context.visited:
        return context.assigned.get(reference)

    context.visited.add(reference)
    try:
        module = context.resolver.resolve(reference)
        ignored = context.is_ignored(reference)
        if not ignored:
            context.assigned[reference] = context.destination_for(reference)

        rewrites: dict[str, str] = {}
        for dependency in dependencies(context, module):
            destination = walk(context, dependency)
            if destination is not None:
                rewrites[dependency] = destination

        if ignored:
            target_dir = module.dir
        else:
            target_dir = _copy(context, module)
        _rewrite(context, module, target_dir, rewrites, copied=not ignored)
    except VendorError as e:
        raise WalkError.wrap(reference, e) from e

    return context.assigned.get(reference)


def _copy(context: TraversalContext, module: Module) -> Path:
    destination = context.assigned[module.reference]
    dest_dir = context.dest_dir(destination)
    files = copy_package_files(
        dest_dir,
        module.dir,
        dry_run=context.config.dry_run,
        created=context.created,
    )
    context.report.copied.append(
        CopiedModule(
            reference=module.reference,
            destination=destination,
            source_dir=module.dir,
            dest_dir=dest_dir,
            files=files,
        )
    )
    return dest_dir


def _rewrite(
    context: TraversalContext,
    module: Module,
    target_dir: Path,
    rewrites: dict[str, str],
    *,
    copied: bool,
) -> None:
    context.report.rewrite_maps[module.reference] = dict(rewrites)
    # Copies still need their canonical import comment neutralized
    if not rewrites and not (copied and module.import_comment):
        return

    for name in module.source_files():
        try:
            result = rewrite_file(
                module.dir / name,
                target_dir / name,
                rewrites,
                dry_run=context.config.dry_run,
                neutralize_import_comment=copied,
            )
        except ParseError as e:
            if context.config.on_parse_error is not ParseErrorPolicy.SKIP:
                raise
            logger.warning("%s: leaving %s unchanged: %s", module.reference, name, e)
            context.report.skipped_files.append(target_dir / name)
            continue
        if result.modified:
            context.report.rewritten.append(result)


def vendorize(config: VendorConfig, build: BuildContext | None = None) -> VendorReport:
    """Vendor a package's dependencies into the destination tree.

    Every non-standard package the root depends on (transitively, including
    test imports) is copied to ``<destination>/<import path>`` and the
    imports of the copies and of the root package are rewritten to point at
    them. Ignored packages are neither copied nor recursed into.

    Args:
        config: Run configuration
        build: Search environment (defaults to ``config.build_context()``)

    Returns:
        VendorReport describing the run

    Raises:
        GorootViolation: If the root package is part of the Go distribution
        VendorConfigError: If no GOPATH is available
        WalkError: If resolving, copying or rewriting fails; nothing is
            rolled back
    """
    context = TraversalContext.from_config(config, build)
    logger.debug(
        "vendorizing %s into %s under %s", config.package, config.destination, context.dest_root
    )

    try:
        root = context.resolver.resolve(config.package)
    except VendorError as e:
        raise WalkError.wrap(config.package, e) from e
    if root.goroot:
        raise GorootViolation(config.package)

    walk(context, config.package)
    return context.report
