"""Tests for the migrations checklist."""

from reviewkit_core.checklists.base import Hit
from reviewkit_core.checklists.migrations import statements
from reviewkit_core.models import Artifact, Severity

SQL_PATH = "db/migrations/0002_users.sql"


def _by_rule(evaluation, rule_id):
    return [f for f in evaluation.findings if f.rule_id == rule_id]


class TestStatements:
    def test_splits_on_semicolons_and_tracks_start_line(self):
        artifact = Artifact(
            file=SQL_PATH,
            kind="sql",
            snippet="",
            lines=((1, "ALTER TABLE users"), (2, "  ADD COLUMN age INT;"), (3, "DROP TABLE old; -- gone")),
        )
        assert statements(artifact) == [(1, "ALTER TABLE users ADD COLUMN age INT"), (3, "DROP TABLE old")]

    def test_non_sql_files_are_read_line_by_line(self):
        artifact = Artifact(
            file="alembic/versions/1_x.py",
            kind="migration",
            snippet="",
            lines=((1, "def upgrade():"), (2, ""), (3, "    op.drop_table('x')")),
        )
        assert statements(artifact) == [(1, "def upgrade():"), (3, "    op.drop_table('x')")]


class TestAddColumn:
    def test_not_null_without_default_is_blocker(self, run_checklist):
        result = run_checklist("migrations", files={SQL_PATH: "ALTER TABLE users ADD COLUMN email TEXT NOT NULL;\n"})
        [finding] = _by_rule(result, "MIG-001")
        assert finding.severity == Severity.BLOCKER
        assert finding.location.line == 1

    def test_default_makes_it_safe(self, run_checklist, ids):
        sql = "ALTER TABLE users ADD COLUMN email TEXT NOT NULL DEFAULT '';\n"
        assert "MIG-001" not in ids(run_checklist("migrations", files={SQL_PATH: sql}))

    def test_multi_line_statement_reported_at_first_line(self, run_checklist):
        sql = "-- add age\nALTER TABLE users\n  ADD COLUMN age INT NOT NULL;\n"
        [finding] = _by_rule(run_checklist("migrations", files={SQL_PATH: sql}), "MIG-001")
        assert finding.location.line == 2


class TestIndexes:
    SQL = "CREATE INDEX idx_users_email ON users (email);\n"

    def test_blocking_index_flagged_when_engine_unknown(self, run_checklist):
        [finding] = _by_rule(run_checklist("migrations", files={SQL_PATH: self.SQL}), "MIG-005")
        assert finding.severity == Severity.HIGH

    def test_zero_downtime_escalates_to_blocker(self, run_checklist):
        result = run_checklist("migrations", files={SQL_PATH: self.SQL}, context="PostgreSQL 15, zero downtime")
        [finding] = _by_rule(result, "MIG-005")
        assert finding.severity == Severity.BLOCKER

    def test_not_applicable_to_mysql(self, run_checklist, ids):
        assert "MIG-005" not in ids(run_checklist("migrations", files={SQL_PATH: self.SQL}, context="mysql 8"))

    def test_concurrently_is_fine(self, run_checklist, ids):
        sql = "CREATE INDEX CONCURRENTLY idx_users_email ON users (email);\n"
        assert "MIG-005" not in ids(run_checklist("migrations", files={SQL_PATH: sql}))


class TestDestructiveChanges:
    def test_drop_table_is_blocker(self, run_checklist):
        [finding] = _by_rule(run_checklist("migrations", files={SQL_PATH: "DROP TABLE sessions;\n"}), "MIG-002")
        assert finding.severity == Severity.BLOCKER

    def test_drop_column_escalates_under_zero_downtime(self, run_checklist):
        sql = "ALTER TABLE users DROP COLUMN legacy_id;\n"
        assert _by_rule(run_checklist("migrations", files={SQL_PATH: sql}), "MIG-003")[0].severity == Severity.HIGH
        escalated = run_checklist("migrations", files={SQL_PATH: sql}, context="zero-downtime deploy")
        assert _by_rule(escalated, "MIG-003")[0].severity == Severity.BLOCKER

    def test_update_without_where(self, run_checklist, ids):
        assert "MIG-007" in ids(run_checklist("migrations", files={SQL_PATH: "UPDATE users SET active = true;\n"}))
        scoped = "UPDATE users SET active = true WHERE id < 1000;\n"
        assert "MIG-007" not in ids(run_checklist("migrations", files={SQL_PATH: scoped}))

    def test_foreign_key_only_checked_on_postgres(self, run_checklist, ids):
        sql = "ALTER TABLE orders ADD CONSTRAINT fk_user FOREIGN KEY (user_id) REFERENCES users (id);\n"
        assert "MIG-008" not in ids(run_checklist("migrations", files={SQL_PATH: sql}))
        assert "MIG-008" in ids(run_checklist("migrations", files={SQL_PATH: sql}, context="postgres"))


class TestDowngrade:
    PATH = "alembic/versions/abc123_add_age.py"

    def test_empty_downgrade_flagged(self, run_checklist):
        script = (
            "def upgrade():\n"
            "    op.add_column('users', sa.Column('age', sa.Integer(), nullable=True))\n"
            "\n"
            "\n"
            "def downgrade():\n"
            "    pass\n"
        )
        [finding] = _by_rule(run_checklist("migrations", files={self.PATH: script}), "MIG-010")
        assert finding.location.line == 5

    def test_real_downgrade_accepted(self, run_checklist, ids):
        script = (
            "def upgrade():\n"
            "    op.add_column('users', sa.Column('age', sa.Integer(), nullable=True))\n"
            "\n"
            "\n"
            "def downgrade():\n"
            "    op.drop_column('users', 'age')\n"
        )
        assert "MIG-010" not in ids(run_checklist("migrations", files={self.PATH: script}))


class TestScopeOfChecks:
    def test_only_added_lines_of_a_diff_are_checked(self, run_checklist, make_diff, ids):
        diff = make_diff(SQL_PATH, added=["SELECT 1;"], removed=["DROP TABLE sessions;"])
        assert ids(run_checklist("migrations", diffs=[diff])) == []

    def test_removed_sql_comment_keeps_line_numbers(self, run_checklist, make_diff):
        diff = make_diff(SQL_PATH, added=["DROP TABLE sessions;"], removed=["-- sessions are obsolete"], start=5)
        [finding] = _by_rule(run_checklist("migrations", diffs=[diff]), "MIG-002")
        assert finding.location.file == SQL_PATH
        assert finding.location.line == 5

    def test_non_migration_files_are_ignored(self, run_checklist, ids):
        assert ids(run_checklist("migrations", files={"README.md": "DROP TABLE users;"})) == []

    def test_expand_contract_needs_a_judge(self, run_checklist):
        result = run_checklist("migrations", files={SQL_PATH: "SELECT 1;\n"})
        assert any(item.startswith("MIG-J01") for item in result.unevaluated)

    def test_judge_verdict_becomes_a_finding(self, run_checklist, mocker):
        judge = mocker.MagicMock()
        judge.evaluate.return_value = [Hit(SQL_PATH, 1, "old code still reads the renamed column")]
        result = run_checklist("migrations", files={SQL_PATH: "SELECT 1;\n"}, judge=judge)
        [finding] = _by_rule(result, "MIG-J01")
        assert finding.evidence == "old code still reads the renamed column"
        assert not result.unevaluated
