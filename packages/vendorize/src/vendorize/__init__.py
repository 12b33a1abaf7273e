# SPDX-License-Identifier: MIT
"""Vendoring of Go packages into a project-local GOPATH tree.

This package copies a Go package's non-standard dependencies (transitively)
under a destination import path and rewrites the imports of the copies and
of the vendored package so that they resolve only within the new tree.

Example:
    >>> from vendorize import VendorConfig, vendorize
    >>>
    >>> config = VendorConfig(
    ...     package="github.com/me/app",
    ...     destination="github.com/me/app/third_party",
    ...     dry_run=True,
    ... )
    >>> report = vendorize(config)
    >>> report.copied_references()
    ['github.com/pkg/errors', 'gopkg.in/yaml.v2']
"""

__version__ = "0.1.0"

from .config import (
    CONFIG_FILENAME,
    ParseErrorPolicy,
    VendorConfig,
    VendorConfigError,
)
from .constraint import excluded_by_build_constraints
from .copier import (
    DestinationConflictError,
    VendorIOError,
    copy_package_files,
)
from .errors import VendorError
from .gopath import (
    BuildContext,
    choose_gopath,
    has_prefix,
    is_valid_reference,
    join_reference,
)
from .gosource import (
    GoSyntaxError,
    ImportSpec,
    ParseError,
    SourceHeader,
    parse_header,
)
from .ignore import is_ignored
from .resolver import (
    CGO_PSEUDO_PACKAGE,
    GorootViolation,
    Module,
    ModuleResolver,
    ResolutionError,
)
from .rewriter import (
    ImportRewriteError,
    RewriteResult,
    rewrite_file,
    rewrite_source,
)
from .walker import (
    CopiedModule,
    TraversalContext,
    VendorReport,
    WalkError,
    vendorize,
    walk,
)

__all__ = [
    # Config
    "CONFIG_FILENAME",
    "ParseErrorPolicy",
    "VendorConfig",
    "VendorConfigError",
    # Errors
    "VendorError",
    "ResolutionError",
    "GorootViolation",
    "ParseError",
    "GoSyntaxError",
    "ImportRewriteError",
    "VendorIOError",
    "DestinationConflictError",
    "WalkError",
    # Workspace
    "BuildContext",
    "choose_gopath",
    "has_prefix",
    "is_valid_reference",
    "join_reference",
    # Source scanning
    "ImportSpec",
    "SourceHeader",
    "parse_header",
    "excluded_by_build_constraints",
    # Resolver
    "CGO_PSEUDO_PACKAGE",
    "Module",
    "ModuleResolver",
    # Ignore rules
    "is_ignored",
    # Copier
    "copy_package_files",
    # Rewriter
    "RewriteResult",
    "rewrite_file",
    "rewrite_source",
    # Walker
    "CopiedModule",
    "TraversalContext",
    "VendorReport",
    "vendorize",
    "walk",
]
