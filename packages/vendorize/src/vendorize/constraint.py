# SPDX-License-Identifier: MIT
"""Build constraints in Go source file headers.

Only one question is answered here: is a file excluded from every build
because it is tagged ``ignore``? Such files (code generators, examples) often
declare ``package main`` inside a library directory, and the Go tool never
considers them part of the package.

Every tag other than ``ignore`` is treated as unknown, since vendoring copies
a package for all platforms at once. A constraint excludes a file only when
it is false no matter what the unknown tags are, e.g. ``ignore`` or
``ignore && linux``, but not ``ignore || linux`` or ``!ignore``.

Example:
    //go:build ignore

    package main
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

# Tag that no build ever sets
IGNORE_TAG = "ignore"

_GO_BUILD = re.compile(r"^//go:build(?:\s|$)")
_PLUS_BUILD = re.compile(r"^//\s*\+build(?:\s|$)")
_EXPR_TOKEN = re.compile(r"\s*(\|\||&&|!|\(|\)|[A-Za-z0-9_.]+)")


class ConstraintSyntaxError(ValueError):
    """Raised for a malformed build constraint expression."""

    pass


def _tag(name: str) -> bool | None:
    """Truth value of a single tag: False for ignore, unknown otherwise."""
    return False if name == IGNORE_TAG else None


def _not(value: bool | None) -> bool | None:
    return None if value is None else not value


def _and(left: bool | None, right: bool | None) -> bool | None:
    if left is False or right is False:
        return False
    if left is None or right is None:
        return None
    return True


def _or(left: bool | None, right: bool | None) -> bool | None:
    if left is True or right is True:
        return True
    if left is None or right is None:
        return None
    return False


class _Expression:
    """Recursive descent evaluator for ``//go:build`` expressions."""

    def __init__(self, text: str):
        self.tokens: list[str] = []
        pos = 0
        text = text.rstrip()
        while pos < len(text):
            match = _EXPR_TOKEN.match(text, pos)
            if match is None:
                raise ConstraintSyntaxError(f"unexpected character in {text!r}")
            self.tokens.append(match.group(1))
            pos = match.end()
        self.pos = 0

    def _peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self) -> str:
        token = self._peek()
        if token is None:
            raise ConstraintSyntaxError("unexpected end of expression")
        self.pos += 1
        return token

    def evaluate(self) -> bool | None:
        value = self._or()
        if self._peek() is not None:
            raise ConstraintSyntaxError(f"unexpected token {self._peek()!r}")
        return value

    def _or(self) -> bool | None:
        value = self._and()
        while self._peek() == "||":
            self._next()
            value = _or(value, self._and())
        return value

    def _and(self) -> bool | None:
        value = self._not()
        while self._peek() == "&&":
            self._next()
            value = _and(value, self._not())
        return value

    def _not(self) -> bool | None:
        token = self._next()
        if token == "!":
            return _not(self._not())
        if token == "(":
            value = self._or()
            if self._next() != ")":
                raise ConstraintSyntaxError("missing ')'")
            return value
        if token in ("||", "&&", ")"):
            raise ConstraintSyntaxError(f"unexpected token {token!r}")
        return _tag(token)


def evaluate_go_build(expression: str) -> bool | None:
    """Evaluate a ``//go:build`` expression.

    Args:
        expression: Text after ``//go:build``

    Returns:
        False if no build satisfies it, True if every build does, None
        otherwise

    Raises:
        ConstraintSyntaxError: If the expression is malformed
    """
    return _Expression(expression).evaluate()


def evaluate_plus_build(line: str) -> bool | None:
    """Evaluate the options of one ``// +build`` line.

    Space separated options are alternatives, comma separated terms within
    an option must all hold, and a leading ``!`` negates a term.

    Raises:
        ConstraintSyntaxError: If a term is malformed
    """
    value: bool | None = False
    for option in line.split():
        term_value: bool | None = True
        for term in option.split(","):
            negated = term.startswith("!")
            name = term[1:] if negated else term
            if not name or not re.fullmatch(r"[A-Za-z0-9_.]+", name):
                raise ConstraintSyntaxError(f"invalid build tag {term!r}")
            tag = _tag(name)
            term_value = _and(term_value, _not(tag) if negated else tag)
        value = _or(value, term_value)
    return value


def _header_lines(text: str) -> list[str]:
    """Lines before the package clause that may hold constraints.

    Blank lines are kept as "" so that ``// +build`` lines can be checked
    for the blank line that must follow them. Block comments are skipped.
    """
    lines: list[str] = []
    in_block = False
    for raw in text.splitlines():
        line = raw.strip()
        if in_block:
            if "*/" in line:
                in_block = False
                if line.split("*/", 1)[1].strip():
                    break
            continue
        if not line or line.startswith("//"):
            lines.append(line)
        elif line.startswith("/*"):
            rest = line[2:]
            if "*/" not in rest:
                in_block = True
            elif rest.split("*/", 1)[1].strip():
                break
            lines.append("/*")
        else:
            break
    return lines


def excluded_by_build_constraints(text: str, filename: str = "<source>") -> bool:
    """Check whether a Go file's build constraints exclude it from every build.

    A ``//go:build`` line takes precedence over ``// +build`` lines. The
    latter only count when a blank line follows the comment block holding
    them. Malformed constraints never exclude a file.

    Args:
        text: Complete file contents
        filename: Filename for log messages

    Returns:
        True if the file is tagged so that no build includes it
    """
    lines = _header_lines(text)
    try:
        for line in lines:
            if _GO_BUILD.match(line):
                return evaluate_go_build(line[len("//go:build") :]) is False

        value: bool | None = True
        for index, line in enumerate(lines):
            match = _PLUS_BUILD.match(line)
            if match is None:
                continue
            following = lines[index + 1 :]
            # Must be separated from the package clause by a blank line
            if "" not in following:
                continue
            value = _and(value, evaluate_plus_build(line[match.end() :]))
        return value is False
    except ConstraintSyntaxError as e:
        logger.debug("%s: ignoring malformed build constraint: %s", filename, e)
        return False
