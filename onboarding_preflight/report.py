"""Aggregation of probe results into a final report."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from onboarding_preflight.models.result import ProbeResult, Verdict

STATUS_SYMBOLS = {
    "PASS": "✅",
    "WARNING": "⚠️",
    "FAIL": "❌",
    "RUNNING": "⏳",
    "PENDING": "…",
}

OVERALL_LABELS: dict[Verdict, str] = {
    "PASS": "ALL PASSED",
    "WARNING": "PASSED WITH WARNINGS",
    "FAIL": "NEEDS ATTENTION",
}

CALL_TO_ACTION = (
    "Some critical checks failed. Share this report with your IT department "
    "and resolve the issues listed above before onboarding."
)


@dataclass(frozen=True, kw_only=True)
class ReportSummary:
    """Counts of results by verdict and the overall verdict."""

    total: int
    passed: int
    warnings: int
    failed: int
    verdict: Verdict


@dataclass(frozen=True, kw_only=True)
class ActionItem:
    """A test needing attention, with what to do about it."""

    name: str
    recommendations: Sequence[str]


@dataclass(frozen=True, kw_only=True)
class Report:
    """Final checklist report handed to the export collaborator."""

    summary: ReportSummary
    results: Sequence[ProbeResult]
    critical_issues: Sequence[ActionItem] = field(default_factory=tuple)
    warnings: Sequence[ActionItem] = field(default_factory=tuple)
    call_to_action: str | None = None
    identity: str | None = None
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def overall_verdict(results: Sequence[ProbeResult]) -> Verdict:
    """FAIL if any result failed, else WARNING if any warned, else PASS."""
    statuses = {result.status for result in results}
    if "FAIL" in statuses:
        return "FAIL"
    if "WARNING" in statuses:
        return "WARNING"
    return "PASS"


def summarize(results: Sequence[ProbeResult]) -> ReportSummary:
    """Count results by verdict."""
    return ReportSummary(
        total=len(results),
        passed=sum(1 for r in results if r.status == "PASS"),
        warnings=sum(1 for r in results if r.status == "WARNING"),
        failed=sum(1 for r in results if r.status == "FAIL"),
        verdict=overall_verdict(results),
    )


def build_report(
    results: Sequence[ProbeResult], identity: str | None = None
) -> Report:
    """Reduce a completed result list into a report.

    Raises:
        ValueError: If a result has not reached a verdict

    """
    if unfinished := [r.name for r in results if not r.is_terminal]:
        raise ValueError(f"Results still pending: {unfinished}")
    summary = summarize(results)
    critical = tuple(
        ActionItem(name=r.name, recommendations=tuple(r.recommendations))
        for r in results
        if r.status == "FAIL"
    )
    warnings = tuple(
        ActionItem(name=r.name, recommendations=tuple(r.recommendations))
        for r in results
        if r.status == "WARNING"
    )
    return Report(
        summary=summary,
        results=tuple(results),
        critical_issues=critical,
        warnings=warnings,
        call_to_action=CALL_TO_ACTION if critical else None,
        identity=identity,
    )


def log_results_summary(log: logging.Logger, report: Report) -> None:
    """Log a formatted summary of the report."""
    log.info("=" * 80)
    log.info("Checklist Results Summary:")
    log.info("=" * 80)

    for result in report.results:
        symbol = STATUS_SYMBOLS.get(result.status, "?")
        log.info(
            "%s %s: %s (%.2fs)",
            symbol,
            result.name,
            result.status,
            result.duration or 0.0,
        )
        log.info("  Message: %s", result.message)
        if result.error:
            log.info("  Error: %s", result.error)
        for recommendation in result.recommendations:
            log.info("  - %s", recommendation)

    summary = report.summary
    log.info("=" * 80)
    log.info(
        "%s: %d passed, %d warning(s), %d failed of %d",
        OVERALL_LABELS[summary.verdict],
        summary.passed,
        summary.warnings,
        summary.failed,
        summary.total,
    )
    if report.call_to_action:
        log.info(report.call_to_action)


def _format_result(result: ProbeResult) -> dict[str, Any]:
    measurements = (
        {k: v for k, v in vars(result.measurements).items() if v is not None}
        if result.measurements is not None
        else None
    )
    return {
        "id": result.test_id,
        "kind": result.kind,
        "name": result.name,
        "status": result.status,
        "message": result.message,
        "details": result.details,
        "recommendations": list(result.recommendations),
        "duration": result.duration,
        "error": result.error,
        "measurements": measurements,
    }


def format_output(report: Report) -> dict[str, Any]:
    """Format a report as a JSON-serializable document."""
    summary = report.summary
    return {
        "identity": report.identity,
        "generated_at": report.generated_at.isoformat(),
        "verdict": summary.verdict,
        "overall": OVERALL_LABELS[summary.verdict],
        "total": summary.total,
        "passed": summary.passed,
        "warnings": summary.warnings,
        "failed": summary.failed,
        "results": [_format_result(result) for result in report.results],
        "action_items": {
            "critical": [
                {"name": item.name, "recommendations": list(item.recommendations)}
                for item in report.critical_issues
            ],
            "warnings": [
                {"name": item.name, "recommendations": list(item.recommendations)}
                for item in report.warnings
            ],
        },
        "call_to_action": report.call_to_action,
        "ready": summary.verdict == "PASS",
    }
