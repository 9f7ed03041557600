"""Tests for free-text review context parsing."""

import pytest

from reviewkit_core.context import merge_context, parse_context


class TestParseContext:
    def test_database_and_downtime(self):
        hints = parse_context("PostgreSQL 14, zero downtime")
        assert hints.db_engine == "postgresql"
        assert hints.db_version == "14"
        assert hints.is_postgres
        assert hints.zero_downtime

    @pytest.mark.parametrize(
        "text, attribute, value",
        [
            ("strict backward compatibility", "strict_compat", True),
            ("no breaking changes please", "strict_compat", True),
            ("we use URL versioning", "versioning", "url"),
            ("header-based versioning", "versioning", "header"),
            ("semver", "versioning", "semver"),
            ("MySQL 8.0", "db_engine", "mysql"),
            ("mariadb", "db_engine", "mysql"),
            ("99.95% availability", "slo", 99.95),
            ("React 18 app", "framework", "react"),
            ("Next.js", "framework", "next.js"),
            ("150kb budget", "bundle_budget_kb", 150),
            ("this is a patch release", "release_type", "patch"),
            ("coverage target 85%", "coverage_target", 85),
        ],
    )
    def test_known_phrases(self, text, attribute, value):
        assert getattr(parse_context(text), attribute) == value

    def test_coverage_figure_is_not_an_slo(self):
        hints = parse_context("coverage target 80%")
        assert hints.coverage_target == 80
        assert hints.slo is None

    def test_unknown_text_is_kept(self):
        hints = parse_context("PostgreSQL 14, zero downtime, team prefers tabs")
        assert hints.unrecognized == "team prefers tabs"

    @pytest.mark.parametrize("text", [None, "", "   ", "%%% ??? ,,,"])
    def test_never_raises(self, text):
        hints = parse_context(text)
        assert hints.db_engine is None
        assert hints.describe() == []

    def test_describe_lists_parameters(self):
        notes = parse_context("PostgreSQL 14, 99.9% availability").describe()
        assert "database: postgresql 14" in notes
        assert "availability SLO: 99.9%" in notes


def test_merge_context_skips_blanks():
    assert merge_context("postgres", None, "  ", " zero downtime ") == "postgres, zero downtime"
