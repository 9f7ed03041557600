"""Tests for the release checklist and manifest version parsing."""

import pytest

from reviewkit_core.checklists.versions import bump_kind, find_version
from reviewkit_core.models import Severity


@pytest.mark.parametrize(
    "line, expected",
    [
        ('  "version": "1.4.2",', "1.4.2"),
        ('version = "0.9.0"', "0.9.0"),
        ('__version__ = "2.0.0rc1"', "2.0.0rc1"),
        ("appVersion: 3.1.0", "3.1.0"),
        ("1.2.3", "1.2.3"),
        ('name = "reviewkit"', None),
    ],
)
def test_find_version(line, expected):
    assert find_version(line) == expected


@pytest.mark.parametrize(
    "old, new, kind",
    [
        ("1.2.0", "2.0.0", "major"),
        ("1.2.0", "1.3.0", "minor"),
        ("1.2.0", "1.2.1", "patch"),
        ("0.4.0", "0.5.0", "major"),
        ("1.2.0", "1.1.9", "downgrade"),
        ("1.2.0", "1.2.0", None),
        (None, "1.0.0", None),
    ],
)
def test_bump_kind(old, new, kind):
    assert bump_kind(old, new) == kind


def _bump(make_diff, old, new):
    return make_diff("pyproject.toml", added=[f'version = "{new}"'], removed=[f'version = "{old}"'], start=3)


def _findings(result, rule_id):
    return [f for f in result.findings if f.rule_id == rule_id]


class TestVersioning:
    def test_bump_without_changelog(self, run_checklist, make_diff):
        [finding] = _findings(run_checklist("release", diffs=[_bump(make_diff, "1.2.0", "1.3.0")]), "REL-002")
        assert finding.severity == Severity.HIGH
        assert finding.evidence == "version 1.2.0 → 1.3.0"

    def test_changelog_entry_satisfies_bump(self, run_checklist, make_diff, ids):
        diffs = [
            _bump(make_diff, "1.2.0", "1.3.0"),
            make_diff("CHANGELOG.md", added=["## 1.3.0", "", "- Added exports"], start=3),
        ]
        assert ids(run_checklist("release", diffs=diffs)) == []

    def test_breaking_note_without_major_bump(self, run_checklist, make_diff):
        diffs = [
            _bump(make_diff, "1.2.0", "1.3.0"),
            make_diff("CHANGELOG.md", added=["## 1.3.0", "- BREAKING: removed the v1 API"], start=3),
        ]
        [finding] = _findings(run_checklist("release", diffs=diffs), "REL-001")
        assert finding.severity == Severity.BLOCKER
        assert finding.location.line == 4

    def test_breaking_note_with_major_bump(self, run_checklist, make_diff, ids):
        diffs = [
            _bump(make_diff, "1.2.0", "2.0.0"),
            make_diff("CHANGELOG.md", added=["## 2.0.0", "- BREAKING: removed the v1 API"], start=3),
        ]
        assert "REL-001" not in ids(run_checklist("release", diffs=diffs))

    def test_downgrade(self, run_checklist, make_diff, ids):
        assert "REL-003" in ids(run_checklist("release", diffs=[_bump(make_diff, "1.2.0", "1.1.0")]))

    def test_release_type_mismatch(self, run_checklist, make_diff):
        result = run_checklist("release", diffs=[_bump(make_diff, "1.2.0", "1.3.0")], context="patch release")
        [finding] = _findings(result, "REL-004")
        assert "minor bump" in finding.evidence


class TestChangelogAndPins:
    def test_unreleased_heading_left_behind(self, run_checklist, make_diff):
        changelog = "# Changelog\n\n## Unreleased\n\n- Added exports\n"
        diffs = [
            _bump(make_diff, "1.2.0", "1.3.0"),
            make_diff("CHANGELOG.md", added=["- Added exports"], start=5),
        ]
        result = run_checklist("release", files={"CHANGELOG.md": changelog}, diffs=diffs)
        [finding] = _findings(result, "REL-006")
        assert finding.location.line == 3
        assert not _findings(result, "REL-002")

    def test_unstable_pins(self, run_checklist):
        requirements = "requests==2.32.0\nhttpx==0.28.0rc1\nflask @ git+https://github.com/pallets/flask\n"
        result = run_checklist("release", files={"requirements.txt": requirements})
        assert [f.location.line for f in _findings(result, "REL-005")] == [2, 3]
