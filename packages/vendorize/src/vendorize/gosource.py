# SPDX-License-Identifier: MIT
"""Go source file headers, parsed with tree-sitter.

Only the parts of a Go file that vendoring cares about are extracted: the
package clause, an optional canonical import comment attached to it, and the
import declarations. Every extracted element carries its character span in
the original text, so callers can edit a file by replacing spans and leave
every other character exactly as it was.

The whole file is parsed, so any syntax error in it rejects the file.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import tree_sitter_go
from tree_sitter import Language, Node, Parser

from .errors import VendorError

GO_LANGUAGE = Language(tree_sitter_go.language())

# Canonical import comments: `// import "path"` or `/* import "path" */`
_IMPORT_COMMENT = re.compile(r'^(?://\s*import\s+("[^"]*")\s*|/\*\s*import\s+("[^"]*")\s*\*/)$')

_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
}


class ParseError(VendorError):
    """Raised when a source file is not structurally well-formed."""

    pass


class GoSyntaxError(ParseError):
    """Raised when a Go file cannot be parsed.

    Attributes:
        filename: File being parsed
        line: 1-based line of the offending node
        reason: Description of the problem
    """

    def __init__(self, filename: str, line: int, reason: str):
        self.filename = filename
        self.line = line
        self.reason = reason
        super().__init__(f"{filename}:{line}: {reason}")


@dataclass(frozen=True)
class ImportSpec:
    """One import declaration entry.

    Attributes:
        path: Unquoted import path
        name: Local name ("." and "_" included), or None
        span: (start, end) of the quoted path literal
        line: Line of the path literal
    """

    path: str
    name: str | None
    span: tuple[int, int]
    line: int


@dataclass(frozen=True)
class ImportComment:
    """Canonical import comment attached to a package clause."""

    path: str
    text: str
    span: tuple[int, int]


@dataclass
class SourceHeader:
    """Parsed header of a Go source file."""

    package: str
    package_span: tuple[int, int]
    imports: list[ImportSpec] = field(default_factory=list)
    import_comment: ImportComment | None = None

    @property
    def import_paths(self) -> list[str]:
        """Import paths in declaration order."""
        return [spec.path for spec in self.imports]

    @property
    def uses_cgo(self) -> bool:
        """True if the file imports the "C" pseudo-package."""
        return "C" in self.import_paths


def unquote(literal: str) -> str:
    """Decode a Go string literal (interpreted or raw).

    Raises:
        ValueError: If the literal is malformed
    """
    if len(literal) >= 2 and literal[0] == literal[-1] == "`":
        return literal[1:-1].replace("\r", "")
    if len(literal) < 2 or literal[0] != '"' or literal[-1] != '"':
        raise ValueError(f"not a string literal: {literal!r}")

    body = literal[1:-1]
    out: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\":
            if ch == '"' or ch == "\n":
                raise ValueError(f"invalid character in string literal: {ch!r}")
            out.append(ch)
            i += 1
            continue
        if i + 1 >= len(body):
            raise ValueError("escape sequence not terminated")
        esc = body[i + 1]
        if esc in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[esc])
            i += 2
        elif esc in "xuU":
            width = {"x": 2, "u": 4, "U": 8}[esc]
            digits = body[i + 2 : i + 2 + width]
            if len(digits) != width or not re.fullmatch(r"[0-9A-Fa-f]+", digits):
                raise ValueError(f"invalid \\{esc} escape")
            out.append(chr(int(digits, 16)))
            i += 2 + width
        elif esc in "01234567":
            digits = body[i + 1 : i + 4]
            if not re.fullmatch(r"[0-7]{3}", digits):
                raise ValueError("invalid octal escape")
            out.append(chr(int(digits, 8)))
            i += 4
        else:
            raise ValueError(f"unknown escape sequence: \\{esc}")
    return "".join(out)


def quote(value: str) -> str:
    """Encode a string as a Go interpreted string literal."""
    out = ['"']
    for ch in value:
        if ch in ('"', "\\"):
            out.append("\\" + ch)
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\t":
            out.append("\\t")
        elif ch.isprintable():
            out.append(ch)
        elif ord(ch) < 0x80:
            out.append(f"\\x{ord(ch):02x}")
        elif ord(ch) <= 0xFFFF:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(f"\\U{ord(ch):08x}")
    out.append('"')
    return "".join(out)


def _valid_import_path(path: str) -> bool:
    """Check an import path literal the way the Go parser does."""
    if not path:
        return False
    for ch in path:
        if not ch.isprintable() or ch.isspace() or ch in "!\"#$%&'()*,:;<=>?[\\]^`{|}�":
            return False
    return True


def _first_error(node: Node) -> Node:
    """Innermost error or missing node, in document order."""
    for child in node.children:
        if child.is_missing:
            return child
        if child.has_error:
            return _first_error(child)
    return node


class _Source:
    """Maps tree-sitter byte offsets back to the decoded text."""

    def __init__(self, text: str, filename: str):
        self.text = text
        self.data = text.encode("utf-8")
        self.filename = filename
        self._ascii = len(self.data) == len(text)

    def offset(self, byte_offset: int) -> int:
        if self._ascii:
            return byte_offset
        return len(self.data[:byte_offset].decode("utf-8"))

    def span(self, node: Node) -> tuple[int, int]:
        return self.offset(node.start_byte), self.offset(node.end_byte)

    def node_text(self, node: Node) -> str:
        return self.data[node.start_byte : node.end_byte].decode("utf-8")

    def error(self, reason: str, node: Node | None = None) -> GoSyntaxError:
        line = node.start_point.row + 1 if node is not None else 1
        return GoSyntaxError(self.filename, line, reason)

    def syntax_error(self, node: Node) -> GoSyntaxError:
        if node.is_missing:
            return self.error(f"missing {node.type!r}", node)
        snippet = self.node_text(node).splitlines()[0] if node.end_byte > node.start_byte else ""
        if len(snippet) > 30:
            snippet = snippet[:30] + "..."
        return self.error(f"syntax error near {snippet!r}", node)


def _import_comment(source: _Source, clause: Node, name: Node) -> ImportComment | None:
    """The canonical import comment trailing the package clause, if any."""
    candidates = [child for child in clause.children if child.type == "comment"]
    sibling = clause.next_sibling
    while sibling is not None and sibling.type == "comment":
        candidates.append(sibling)
        sibling = sibling.next_sibling

    for comment in candidates:
        if comment.start_byte < name.end_byte:
            continue
        if comment.start_point.row != name.end_point.row:
            return None
        text = source.node_text(comment)
        match = _IMPORT_COMMENT.match(text.rstrip("\r"))
        if match is None:
            return None
        try:
            path = unquote(match.group(1) or match.group(2))
        except ValueError as e:
            raise source.error(f"invalid import comment: {e}", comment) from e
        return ImportComment(path=path, text=text, span=source.span(comment))
    return None


def _import_specs(declaration: Node) -> list[Node]:
    specs: list[Node] = []
    for child in declaration.named_children:
        if child.type == "import_spec":
            specs.append(child)
        elif child.type == "import_spec_list":
            specs.extend(c for c in child.named_children if c.type == "import_spec")
    return specs


def _import_spec(source: _Source, spec: Node) -> ImportSpec:
    path_node = spec.child_by_field_name("path")
    if path_node is None:
        raise source.error("expected import path", spec)
    try:
        path = unquote(source.node_text(path_node))
    except ValueError as e:
        raise source.error(f"invalid import path literal: {e}", path_node) from e
    if not _valid_import_path(path):
        raise source.error(f"invalid import path: {path!r}", path_node)

    name_node = spec.child_by_field_name("name")
    return ImportSpec(
        path=path,
        name=source.node_text(name_node) if name_node is not None else None,
        span=source.span(path_node),
        line=path_node.start_point.row + 1,
    )


def parse_header(text: str, filename: str = "<source>") -> SourceHeader:
    """Parse the package clause and imports of a Go source file.

    Args:
        text: Complete file contents
        filename: Filename for error messages

    Returns:
        SourceHeader with spans into ``text``

    Raises:
        GoSyntaxError: If the file is malformed
    """
    source = _Source(text, filename)
    root = Parser(GO_LANGUAGE).parse(source.data).root_node
    if root.has_error:
        raise source.syntax_error(_first_error(root))

    declarations = [node for node in root.named_children if node.type != "comment"]
    if not declarations or declarations[0].type != "package_clause":
        raise source.error("expected 'package' clause", declarations[0] if declarations else None)
    clause = declarations[0]

    name = next((c for c in clause.named_children if c.type == "package_identifier"), None)
    if name is None or source.node_text(name) == "_":
        raise source.error("expected package name", clause)
    header = SourceHeader(package=source.node_text(name), package_span=source.span(name))
    header.import_comment = _import_comment(source, clause, name)

    seen_other = False
    for node in declarations[1:]:
        if node.type == "package_clause":
            raise source.error("unexpected second package clause", node)
        if node.type != "import_declaration":
            seen_other = True
            continue
        if seen_other:
            raise source.error("imports must appear before other declarations", node)
        header.imports.extend(_import_spec(source, spec) for spec in _import_specs(node))

    return header
