# SPDX-License-Identifier: MIT
"""Tests for build constraint evaluation."""

import pytest

from vendorize.constraint import (
    ConstraintSyntaxError,
    evaluate_go_build,
    evaluate_plus_build,
    excluded_by_build_constraints,
)


class TestGoBuildExpressions:
    """Tests for evaluate_go_build."""

    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("ignore", False),
            ("!ignore", True),
            ("linux", None),
            ("ignore && linux", False),
            ("ignore || linux", None),
            ("!ignore || linux", True),
            ("(ignore || ignore) && !windows", False),
            ("!(linux && ignore)", True),
            ("go1.21 && !ignore", None),
        ],
    )
    def test_evaluation(self, expression, expected):
        assert evaluate_go_build(expression) is expected

    @pytest.mark.parametrize("expression", ["", "ignore &&", "(ignore", "ignore linux", "a | b"])
    def test_malformed_expression(self, expression):
        with pytest.raises(ConstraintSyntaxError):
            evaluate_go_build(expression)


class TestPlusBuildLines:
    """Tests for evaluate_plus_build."""

    def test_single_tag(self):
        assert evaluate_plus_build("ignore") is False

    def test_options_are_alternatives(self):
        assert evaluate_plus_build("ignore linux") is None

    def test_terms_must_all_hold(self):
        assert evaluate_plus_build("linux,ignore") is False

    def test_negation(self):
        assert evaluate_plus_build("!ignore") is True

    def test_invalid_term(self):
        with pytest.raises(ConstraintSyntaxError):
            evaluate_plus_build("linux,!")


class TestExcludedByBuildConstraints:
    """Tests for excluded_by_build_constraints."""

    def test_go_build_ignore(self):
        """Generator files tagged ignore are excluded."""
        assert excluded_by_build_constraints("//go:build ignore\n\npackage main\n")

    def test_go_build_ignore_without_blank_line(self):
        assert excluded_by_build_constraints("//go:build ignore\npackage main\n")

    def test_plus_build_ignore(self):
        assert excluded_by_build_constraints("// +build ignore\n\npackage main\n")

    def test_plus_build_needs_blank_line(self):
        """A +build line directly above the package clause is documentation."""
        assert not excluded_by_build_constraints("// +build ignore\npackage main\n")

    def test_go_build_takes_precedence(self):
        source = "//go:build linux\n// +build ignore\n\npackage lib\n"
        assert not excluded_by_build_constraints(source)

    def test_plus_build_lines_combine(self):
        source = "// +build linux darwin\n// +build ignore\n\npackage lib\n"
        assert excluded_by_build_constraints(source)

    def test_after_license_comments(self):
        source = (
            "// Copyright 2024 The Authors.\n"
            "/* Licensed under\n   some terms. */\n"
            "\n"
            "//go:build ignore\n"
            "\n"
            "package main\n"
        )
        assert excluded_by_build_constraints(source)

    @pytest.mark.parametrize(
        "source",
        [
            "package lib\n",
            "//go:build linux\n\npackage lib\n",
            "//go:build !ignore\n\npackage lib\n",
            "//go:build ignore || linux\n\npackage lib\n",
            "// +build ignore linux\n\npackage lib\n",
        ],
    )
    def test_buildable_files_kept(self, source):
        assert not excluded_by_build_constraints(source)

    def test_constraint_after_package_clause_ignored(self):
        assert not excluded_by_build_constraints("package lib\n\n//go:build ignore\n")

    def test_malformed_constraint_keeps_file(self):
        assert not excluded_by_build_constraints("//go:build ignore &&\n\npackage main\n")
