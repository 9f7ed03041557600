"""Database migration review: locking, data loss and rollback safety."""

from __future__ import annotations

import re

from reviewkit_core.checklists.base import (
    ArtifactSelector,
    Checklist,
    Hit,
    JudgmentRule,
    PredicateRule,
    clip,
)
from reviewkit_core.models import Artifact, Confidence, Severity

MIGRATION_DIRS = ("migrations/", "migration/", "alembic/versions/", "db/migrate/", "migrate/")

SELECTORS = (
    ArtifactSelector("sql", ("*.sql",)),
    ArtifactSelector("migration", MIGRATION_DIRS, exclude=("*.sql", "*.md", "__init__.py", "*.pyc")),
)

_COMMENT = re.compile(r"--.*$")


def statements(artifact: Artifact) -> list[tuple[int, str]]:
    """(first line, text) per statement in the artifact's added lines.

    SQL files are split on ``;``; migration scripts (alembic, Django, Rails)
    are examined line by line since their operations rarely span lines.
    """
    if artifact.kind != "sql":
        return [(line_no, text) for line_no, text in artifact.lines if text.strip()]

    result = []
    start, parts = None, []
    for line_no, text in artifact.lines:
        text = _COMMENT.sub("", text)
        if not text.strip():
            continue
        for i, piece in enumerate(text.split(";")):
            if i > 0:
                if parts:
                    result.append((start, " ".join(parts)))
                start, parts = None, []
            if piece.strip():
                if start is None:
                    start = line_no
                parts.append(piece.strip())
    if parts:
        result.append((start, " ".join(parts)))
    return [(line_no, stmt) for line_no, stmt in result if stmt]


def statement_rule(pattern: str, unless: str | None = None):
    """Predicate flagging statements that match ``pattern`` (case-insensitive) but not ``unless``."""
    match_re = re.compile(pattern, re.I | re.S)
    unless_re = re.compile(unless, re.I | re.S) if unless else None

    def predicate(artifact, hints) -> list[Hit]:
        hits = []
        for line_no, stmt in statements(artifact):
            if match_re.search(stmt) and not (unless_re and unless_re.search(stmt)):
                hits.append(Hit(artifact.file, line_no, clip(stmt)))
        return hits

    return predicate


def _zero_downtime(hints) -> bool:
    return hints.zero_downtime


def _postgres_or_unknown(hints) -> bool:
    return hints.db_engine in (None, "postgresql")


_UPGRADE = re.compile(r"^def upgrade\(", re.M)
_DOWNGRADE = re.compile(r"^def downgrade\([^)]*\)[^:]*:\s*\n((?:[ \t]+.*\n?|\s*\n)*)", re.M)
_EMPTY_BODY = re.compile(r"^\s*(?:pass|\.\.\.|\"\"\".*\"\"\"|#.*)?\s*$")


def _missing_downgrade(artifact, hints) -> list[Hit]:
    if not artifact.file.endswith(".py") or not _UPGRADE.search(artifact.content):
        return []
    match = _DOWNGRADE.search(artifact.content)
    if match and not all(_EMPTY_BODY.match(line) for line in match.group(1).splitlines()):
        return []
    line = next((n for n, text in enumerate(artifact.content.splitlines(), 1) if text.startswith("def downgrade")), 1)
    return [Hit(artifact.file, line, "downgrade() is missing or empty")]


ADD_NOT_NULL_WITHOUT_DEFAULT = PredicateRule(
    id="MIG-001",
    title="NOT NULL column added without a default",
    category="Backward compatibility",
    severity=Severity.BLOCKER,
    kinds=("sql", "migration"),
    predicate=statement_rule(
        r"\bADD\s+(?:COLUMN\s+)?(?:IF\s+NOT\s+EXISTS\s+)?\S+\s+[^;]*\bNOT\s+NULL\b"
        r"|\bop\.add_column\(.*nullable\s*=\s*False|\badd_column\b.*null:\s*false",
        unless=r"\bDEFAULT\b|\bADD\s+CONSTRAINT\b|server_default\s*=|default:",
    ),
    remediation="Add the column nullable (or with a default), backfill, then add the NOT NULL constraint.",
)

DROP_TABLE = PredicateRule(
    id="MIG-002",
    title="Table dropped",
    category="Data loss",
    severity=Severity.BLOCKER,
    kinds=("sql", "migration"),
    predicate=statement_rule(r"\bDROP\s+TABLE\b|\bop\.drop_table\(|\bdrop_table\b|migrations\.DeleteModel\("),
    remediation="Stop reading and writing the table first; drop it in a later release after a backup.",
)

DROP_COLUMN = PredicateRule(
    id="MIG-003",
    title="Column dropped",
    category="Data loss",
    severity=Severity.HIGH,
    escalate_when=_zero_downtime,
    escalated=Severity.BLOCKER,
    kinds=("sql", "migration"),
    predicate=statement_rule(r"\bDROP\s+COLUMN\b|\bop\.drop_column\(|\bremove_column\b|migrations\.RemoveField\("),
    remediation="Remove all code references and deploy first; drop the column in a follow-up migration.",
)

RENAME = PredicateRule(
    id="MIG-004",
    title="Column or table renamed in place",
    category="Backward compatibility",
    severity=Severity.HIGH,
    escalate_when=_zero_downtime,
    escalated=Severity.BLOCKER,
    kinds=("sql", "migration"),
    predicate=statement_rule(
        r"\bRENAME\s+(?:COLUMN\b|TO\b)|\bRENAME\s+TABLE\b|\bop\.alter_column\(.*new_column_name"
        r"|\bop\.rename_table\(|\brename_column\b|\brename_table\b|migrations\.Rename(?:Field|Model)\("
    ),
    remediation="Expand/contract: add the new name, dual-write, migrate readers, then drop the old name.",
)

INDEX_NOT_CONCURRENT = PredicateRule(
    id="MIG-005",
    title="Index created without CONCURRENTLY",
    category="Locking & availability",
    severity=Severity.HIGH,
    escalate_when=_zero_downtime,
    escalated=Severity.BLOCKER,
    kinds=("sql", "migration"),
    when=_postgres_or_unknown,
    predicate=statement_rule(
        r"\bCREATE\s+(?:UNIQUE\s+)?INDEX\b|\bop\.create_index\(",
        unless=r"\bCONCURRENTLY\b|postgresql_concurrently\s*=\s*True",
    ),
    remediation="Use `CREATE INDEX CONCURRENTLY` (outside a transaction) to avoid blocking writes.",
)

COLUMN_TYPE_CHANGE = PredicateRule(
    id="MIG-006",
    title="Column type changed",
    category="Locking & availability",
    severity=Severity.HIGH,
    kinds=("sql", "migration"),
    predicate=statement_rule(
        r"\bALTER\s+COLUMN\s+\S+\s+(?:SET\s+DATA\s+)?TYPE\b|\bMODIFY\s+(?:COLUMN\s+)?\S+\s+\w+"
        r"|\bop\.alter_column\(.*\btype_\s*=|\bchange_column\b"
    ),
    remediation="Most type changes rewrite the table under an exclusive lock; add a new column and backfill.",
)

UNBOUNDED_DML = PredicateRule(
    id="MIG-007",
    title="UPDATE or DELETE without a WHERE clause",
    category="Data loss",
    severity=Severity.MED,
    confidence=Confidence.MED,
    kinds=("sql", "migration"),
    predicate=statement_rule(
        r"^\s*(?:UPDATE\s+\S+\s+SET\b|DELETE\s+FROM\s+\S+)|execute\(\s*['\"](?:UPDATE|DELETE)\b",
        unless=r"\bWHERE\b",
    ),
    remediation="Scope the statement, and batch large backfills to keep transactions short.",
)

FOREIGN_KEY_VALIDATED = PredicateRule(
    id="MIG-008",
    title="Foreign key added without NOT VALID",
    category="Locking & availability",
    severity=Severity.MED,
    kinds=("sql", "migration"),
    when=lambda hints: hints.is_postgres,
    predicate=statement_rule(r"\bADD\s+(?:CONSTRAINT\s+\S+\s+)?FOREIGN\s+KEY\b", unless=r"\bNOT\s+VALID\b"),
    remediation="Add the constraint `NOT VALID`, then `VALIDATE CONSTRAINT` in a separate transaction.",
)

SET_NOT_NULL = PredicateRule(
    id="MIG-009",
    title="NOT NULL enforced on an existing column",
    category="Locking & availability",
    severity=Severity.MED,
    escalate_when=_zero_downtime,
    escalated=Severity.HIGH,
    kinds=("sql", "migration"),
    when=_postgres_or_unknown,
    predicate=statement_rule(r"\bALTER\s+COLUMN\s+\S+\s+SET\s+NOT\s+NULL\b|\bop\.alter_column\(.*nullable\s*=\s*False"),
    remediation="Add a `CHECK (col IS NOT NULL) NOT VALID` constraint and validate it before setting NOT NULL.",
)

MISSING_DOWNGRADE = PredicateRule(
    id="MIG-010",
    title="Migration cannot be rolled back",
    category="Rollback",
    severity=Severity.MED,
    kinds=("migration",),
    predicate=_missing_downgrade,
    remediation="Implement `downgrade()` or document why the migration is irreversible.",
)

EXPAND_CONTRACT = JudgmentRule(
    id="MIG-J01",
    title="Schema and application rollout are not compatible",
    category="Backward compatibility",
    severity=Severity.HIGH,
    kinds=("sql", "migration"),
    question=(
        "During rollout, old and new application versions run side by side. Is the application code "
        "that ships with this migration compatible with both the old and the new schema?"
    ),
)

CHECKLIST = Checklist(
    domain="migrations",
    title="Database Migrations",
    selectors=SELECTORS,
    rules=(
        ADD_NOT_NULL_WITHOUT_DEFAULT,
        DROP_TABLE,
        DROP_COLUMN,
        RENAME,
        INDEX_NOT_CONCURRENT,
        COLUMN_TYPE_CHANGE,
        UNBOUNDED_DML,
        FOREIGN_KEY_VALIDATED,
        SET_NOT_NULL,
        MISSING_DOWNGRADE,
        EXPAND_CONTRACT,
    ),
    categories=("Data loss", "Locking & availability", "Backward compatibility", "Rollback"),
)
