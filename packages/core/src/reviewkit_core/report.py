"""Report composition and rendering.

A report is rendered once, to a fixed markdown layout:

    YAML front matter (command, session_slug, scope, target, paths, completed,
    recommendation, summary, files_reviewed, rules)
    Summary → Findings → Category Breakdown → Checks Not Evaluated → Recommendations

The front matter is the machine-readable part; history and stats read it back
through parse_front_matter().
"""

from __future__ import annotations

from collections import Counter
from datetime import date
from typing import Iterable

import yaml
from rich.console import Console
from rich.table import Table

from reviewkit_core.checklists.registry import CHECKLISTS
from reviewkit_core.models import (
    SEVERITY_ORDER,
    Finding,
    Recommendation,
    ReviewReport,
    ReviewRequest,
    Session,
    Severity,
)

_FRONT_MATTER_FENCE = "---"

_RECOMMENDATION_TEXT = {
    Recommendation.BLOCK: "Do not merge: at least one BLOCKER must be resolved first.",
    Recommendation.REQUEST_CHANGES: "Changes requested: resolve the HIGH findings before merging.",
    Recommendation.APPROVE_WITH_COMMENTS: "Approve once the comments below have been considered.",
    Recommendation.APPROVE: "Approve: no blocking or notable issues found.",
}

SEVERITY_STYLE = {
    Severity.BLOCKER: "bold red",
    Severity.HIGH: "red",
    Severity.MED: "yellow",
    Severity.LOW: "blue",
    Severity.NIT: "dim",
}

RECOMMENDATION_STYLE = {
    Recommendation.BLOCK: "bold red",
    Recommendation.REQUEST_CHANGES: "red",
    Recommendation.APPROVE_WITH_COMMENTS: "yellow",
    Recommendation.APPROVE: "green",
}


def count_by_severity(findings: Iterable[Finding]) -> dict[Severity, int]:
    counts = Counter(f.severity for f in findings)
    return {severity: counts.get(severity, 0) for severity in SEVERITY_ORDER}


def recommend(counts: dict[Severity, int]) -> Recommendation:
    if counts.get(Severity.BLOCKER):
        return Recommendation.BLOCK
    if counts.get(Severity.HIGH):
        return Recommendation.REQUEST_CHANGES
    if counts.get(Severity.MED) or counts.get(Severity.LOW):
        return Recommendation.APPROVE_WITH_COMMENTS
    return Recommendation.APPROVE


def compose_report(
    session: Session,
    request: ReviewRequest,
    domain: str,
    findings: Iterable[Finding],
    completed: date | None = None,
    files_reviewed: int = 0,
    unevaluated: Iterable[str] = (),
    context_notes: Iterable[str] = (),
) -> ReviewReport:
    """Build the immutable report; counts and recommendation derive from ``findings`` only."""
    # Stable sort: ties keep the evaluator's rule-table/file/line order.
    ordered = tuple(sorted(findings, key=lambda f: (-f.severity.rank, -f.confidence.rank)))
    counts = count_by_severity(ordered)
    return ReviewReport(
        session=session,
        request=request,
        domain=domain,
        findings=ordered,
        summary_counts=counts,
        recommendation=recommend(counts),
        completed=completed or date.today(),
        files_reviewed=files_reviewed,
        unevaluated=tuple(unevaluated),
        context_notes=tuple(context_notes),
    )


def report_filename(domain: str, completed: date) -> str:
    return f"{domain}-{completed.isoformat()}.md"


def front_matter(report: ReviewReport) -> dict:
    return {
        "command": report.command,
        "session_slug": report.session.slug,
        "scope": report.request.scope.value,
        "target": report.request.target,
        "paths": list(report.request.paths),
        "completed": report.completed,
        "recommendation": report.recommendation.value,
        "summary": {s.value: report.summary_counts.get(s, 0) for s in SEVERITY_ORDER},
        "files_reviewed": report.files_reviewed,
        "rules": dict(Counter(f.rule_id for f in report.findings)),
    }


def parse_front_matter(text: str) -> dict:
    """Return the YAML front matter of a rendered report, or {} when there is none."""
    lines = text.splitlines()
    if not lines or lines[0].strip() != _FRONT_MATTER_FENCE:
        return {}
    for end, line in enumerate(lines[1:], 1):
        if line.strip() == _FRONT_MATTER_FENCE:
            try:
                data = yaml.safe_load("\n".join(lines[1:end])) or {}
            except yaml.YAMLError:
                return {}
            return data if isinstance(data, dict) else {}
    return {}


def _fence(text: str) -> str:
    return text.replace("```", "'''")


def _cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def _title(domain: str) -> str:
    checklist = CHECKLISTS.get(domain)
    return checklist.title if checklist else domain.replace("-", " ").title()


def _describe_scope(request: ReviewRequest) -> str:
    text = f"`{request.scope.value}`"
    if request.target:
        text += f" `{request.target}`"
    if request.paths:
        text += " (paths: " + ", ".join(f"`{p}`" for p in request.paths) + ")"
    return text


def _summary(report: ReviewReport) -> list[str]:
    lines = [
        "## Summary",
        "",
        f"**Session:** {report.session.slug} · **Scope:** {_describe_scope(report.request)} · "
        f"**Completed:** {report.completed.isoformat()} · **Files reviewed:** {report.files_reviewed}",
        "",
    ]
    if report.context_notes:
        lines += [f"**Context:** {'; '.join(report.context_notes)}", ""]
    lines += ["| Severity | Count |", "|----------|------:|"]
    lines += [f"| {s.value} | {report.summary_counts.get(s, 0)} |" for s in SEVERITY_ORDER]
    lines += ["", f"**Recommendation: {report.recommendation.value}**", ""]
    return lines


def _findings(report: ReviewReport) -> list[str]:
    lines = ["## Findings", ""]
    if not report.findings:
        return lines + ["No findings.", ""]
    for n, f in enumerate(report.findings, 1):
        lines += [
            f"### {n}. [{f.severity.value}] {f.title}",
            "",
            f"- **ID:** {f.id}",
            f"- **Location:** `{f.location}`",
            f"- **Confidence:** {f.confidence.value}",
            f"- **Category:** {f.category}",
            "- **Evidence:**",
            "",
            "  ```",
            f"  {_fence(f.evidence)}",
            "  ```",
            "",
        ]
        if f.remediation:
            lines += [f"- **Remediation:** {f.remediation}", ""]
    return lines


def _category_breakdown(report: ReviewReport) -> list[str]:
    lines = ["## Category Breakdown", ""]
    if not report.findings:
        return lines + ["No findings in any category.", ""]
    table: dict[str, Counter] = {}
    for f in report.findings:
        table.setdefault(f.category, Counter())[f.severity] += 1
    header = "| Category | " + " | ".join(s.value for s in SEVERITY_ORDER) + " | Total |"
    lines += [header, "|" + "---|" * (len(SEVERITY_ORDER) + 2)]
    for category in sorted(table):
        counts = table[category]
        cells = " | ".join(str(counts.get(s, 0)) for s in SEVERITY_ORDER)
        lines.append(f"| {_cell(category)} | {cells} | {sum(counts.values())} |")
    return lines + [""]


def _not_evaluated(report: ReviewReport) -> list[str]:
    if not report.unevaluated:
        return []
    return ["## Checks Not Evaluated", "", *[f"- {item}" for item in report.unevaluated], ""]


def _recommendations(report: ReviewReport) -> list[str]:
    lines = ["## Recommendations", "", _RECOMMENDATION_TEXT[report.recommendation], ""]
    by_rule: dict[str, list[Finding]] = {}
    for f in report.findings:
        by_rule.setdefault(f.rule_id, []).append(f)
    for n, (rule_id, group) in enumerate(by_rule.items(), 1):
        first = group[0]
        where = ", ".join(f"`{g.location}`" for g in group[:3])
        if len(group) > 3:
            where += f" and {len(group) - 3} more"
        action = first.remediation or "Review and address."
        lines.append(f"{n}. **[{first.severity.value}] {rule_id}** {first.title} ({where}): {action}")
    return lines + [""] if by_rule else lines


def render_markdown(report: ReviewReport) -> str:
    meta = yaml.safe_dump(front_matter(report), sort_keys=False, default_flow_style=False, allow_unicode=True)
    lines = [
        _FRONT_MATTER_FENCE,
        meta.rstrip("\n"),
        _FRONT_MATTER_FENCE,
        "",
        f"# {_title(report.domain)} Review",
        "",
    ]
    lines += _summary(report)
    lines += _findings(report)
    lines += _category_breakdown(report)
    lines += _not_evaluated(report)
    lines += _recommendations(report)
    return "\n".join(lines).rstrip("\n") + "\n"


def print_console_summary(report: ReviewReport, console: Console, report_path: str | None = None) -> None:
    """Counts per severity, BLOCKER/HIGH titles, and the recommendation."""
    table = Table(title=f"{report.command} · {report.session.slug}", show_header=True, header_style="bold cyan")
    table.add_column("Severity", style="bold")
    table.add_column("Count", justify="right")
    for severity in SEVERITY_ORDER:
        style = SEVERITY_STYLE[severity]
        table.add_row(f"[{style}]{severity.value}[/{style}]", str(report.summary_counts.get(severity, 0)))
    console.print(table)

    serious = [f for f in report.findings if f.severity in (Severity.BLOCKER, Severity.HIGH)]
    for f in serious:
        style = SEVERITY_STYLE[f.severity]
        console.print(f"  [{style}]{f.severity.value}[/{style}] {f.title} [dim]({f.location})[/dim]")
    if report.unevaluated:
        console.print(f"[dim]{len(report.unevaluated)} check(s) not evaluated; see the report.[/dim]")

    style = RECOMMENDATION_STYLE[report.recommendation]
    console.print(f"\n[bold]Recommendation:[/bold] [{style}]{report.recommendation.value}[/{style}]")
    if report_path:
        console.print(f"[dim]Report written to {report_path}[/dim]")
