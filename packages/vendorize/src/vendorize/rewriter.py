# SPDX-License-Identifier: MIT
"""Import path rewriting for vendored Go packages.

This module rewrites the import declarations of Go source files so that
imports of vendored packages point at their copies, while leaving every
other byte of the file untouched.

Example:
    Original:
        package yaml // import "gopkg.in/yaml.v2"

        import (
            "fmt"
            "github.com/pkg/errors"
        )

    Rewritten (errors vendored under "example.com/app/vendor"):
        package yaml // vendored from "gopkg.in/yaml.v2"

        import (
            "fmt"
            "example.com/app/vendor/github.com/pkg/errors"
        )
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .copier import VendorIOError
from .gosource import ParseError, parse_header, quote

logger = logging.getLogger(__name__)

# Replaces the canonical import comment so the Go tool stops enforcing it
VENDORED_MARKER = "vendored from"


class ImportRewriteError(ParseError):
    """Raised when a file cannot be parsed for rewriting."""

    pass


@dataclass
class RewriteResult:
    """Result of rewriting imports in a file.

    Attributes:
        source_path: File the original text was read from
        output_path: File the rewritten text belongs to
        imports_rewritten: Number of imports that were rewritten
        imports_preserved: Number of imports left unchanged
        import_comment_neutralized: Whether a canonical import comment was replaced
        modified: Whether the text changed
    """

    source_path: Path
    output_path: Path
    imports_rewritten: int = 0
    imports_preserved: int = 0
    import_comment_neutralized: bool = False
    modified: bool = False


def _neutralize_comment(comment: str, path: str) -> str:
    """Turn a canonical import comment into an inert provenance marker."""
    body = comment.rstrip()
    trailing = comment[len(body) :]
    if body.startswith("/*"):
        return f"/* {VENDORED_MARKER} {quote(path)} */{trailing}"
    return f"// {VENDORED_MARKER} {quote(path)}{trailing}"


def rewrite_source(
    source: str,
    rewrites: Mapping[str, str],
    filename: str = "<source>",
    *,
    neutralize_import_comment: bool = True,
) -> tuple[str, int, int, bool]:
    """Rewrite import paths in Go source code.

    Imports whose path is a key of ``rewrites`` are replaced with the mapped
    path, and unless disabled a canonical import comment on the package
    clause is neutralized. Running the result through again with the same
    map changes nothing.

    Args:
        source: Go source code
        rewrites: Old import path to new import path
        filename: Filename for error messages
        neutralize_import_comment: Replace a canonical import comment on
            the package clause with an inert marker

    Returns:
        Tuple of (rewritten_source, imports_rewritten, imports_preserved,
        import_comment_neutralized)

    Raises:
        ParseError: If the source cannot be parsed
    """
    header = parse_header(source, filename)

    edits: list[tuple[tuple[int, int], str]] = []
    rewritten = 0
    preserved = 0
    for spec in header.imports:
        replacement = rewrites.get(spec.path)
        if replacement is None or replacement == spec.path:
            preserved += 1
            continue
        edits.append((spec.span, quote(replacement)))
        rewritten += 1

    neutralized = False
    if neutralize_import_comment and header.import_comment is not None:
        comment = header.import_comment
        edits.append((comment.span, _neutralize_comment(comment.text, comment.path)))
        neutralized = True

    result = source
    for (start, end), text in sorted(edits, reverse=True):
        result = result[:start] + text + result[end:]

    return result, rewritten, preserved, neutralized


def _atomic_write(path: Path, text: str, mode: int | None) -> None:
    """Write text next to ``path`` and move it into place."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def rewrite_file(
    source_path: Path,
    output_path: Path,
    rewrites: Mapping[str, str],
    *,
    dry_run: bool = False,
    neutralize_import_comment: bool = True,
) -> RewriteResult:
    """Rewrite imports in a single Go file.

    The text is read from ``source_path`` and, when it changed, written to
    ``output_path`` through a temporary file in the same directory, so a
    crash never leaves a half-written file behind. The output keeps the
    source's permission bits. Both paths may be the same file.

    Args:
        source_path: Path to read the original text from
        output_path: Path the rewritten text is written to
        rewrites: Old import path to new import path
        dry_run: Only log the intended rewrite
        neutralize_import_comment: Replace a canonical import comment (for
            copies, which no longer live at the canonical path)

    Returns:
        RewriteResult with statistics

    Raises:
        ParseError: If the file cannot be parsed
        VendorIOError: If reading or writing fails
    """
    result = RewriteResult(source_path=source_path, output_path=output_path)

    try:
        with open(source_path, encoding="utf-8", newline="") as f:
            source = f.read()
        mode = stat.S_IMODE(source_path.stat().st_mode)
    except (OSError, UnicodeDecodeError) as e:
        raise VendorIOError(f"Failed to read {source_path}: {e}") from e

    try:
        rewritten, imports_rewritten, imports_preserved, neutralized = rewrite_source(
            source,
            rewrites,
            filename=str(source_path),
            neutralize_import_comment=neutralize_import_comment,
        )
    except ParseError as e:
        raise ImportRewriteError(f"couldn't rewrite file {source_path.name!r}: {e}") from e

    result.imports_rewritten = imports_rewritten
    result.imports_preserved = imports_preserved
    result.import_comment_neutralized = neutralized
    result.modified = rewritten != source

    if not result.modified:
        return result

    logger.info("rewriting %s (%d imports)", output_path, imports_rewritten)
    if dry_run:
        return result

    try:
        _atomic_write(output_path, rewritten, mode)
    except OSError as e:
        raise VendorIOError(f"Failed to write {output_path}: {e}") from e

    return result
