"""Markdown report for a run of the test battery."""

from __future__ import annotations

import platform
from datetime import datetime
from pathlib import Path

from epsilon_suite import __version__
from epsilon_suite.stats import proportion_passing, uniformity_p_value
from epsilon_suite.test_suite import DEFAULT_SIGNIFICANCE_LEVEL, TestResult, calculate_quality_score


def _grade_icon(grade: str) -> str:
    return {"A": "✅", "B": "✅", "C": "⚠️", "D": "⚠️", "F": "❌"}.get(grade, "❓")


def _pass_icon(passed: bool) -> str:
    return "✅" if passed else "❌"


def _summary_lines(results: list[TestResult], significance_level: float) -> list[str]:
    p_values = [p for r in results if r.error is None for p in r.p_values]
    passed = sum(1 for r in results if r.passed)
    lines = [
        f"- **Tests run:** {len(results)}",
        f"- **Passed:** {passed}/{len(results)}",
        f"- **Quality score:** {calculate_quality_score(results):.1f}/100",
    ]
    if p_values:
        summary = proportion_passing(p_values, significance_level)
        verdict = "within" if summary.acceptable else "outside"
        lines.append(
            f"- **Proportion of p-values >= {significance_level}:** {summary.proportion:.4f} "
            f"({verdict} {summary.lower:.4f}-{summary.upper:.4f})")
        lines.append(f"- **Uniformity of p-values (P-value_T):** "
                     f"{uniformity_p_value(p_values):.6f}")
    return lines


def generate_report(
    input_label: str,
    results: list[TestResult],
    significance_level: float = DEFAULT_SIGNIFICANCE_LEVEL,
    output_path: str | Path | None = None,
) -> str:
    """Generate a markdown report for *results*; write it when *output_path* is given."""
    now = datetime.now()

    lines = [
        "# Randomness Test Report",
        "",
        f"**Input:** {input_label}",
        f"**Generated:** {now.strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Machine:** {platform.node()} ({platform.machine()}, {platform.system()} {platform.release()})",
        f"**epsilon-suite:** {__version__} (Python {platform.python_version()})",
        f"**Significance level:** {significance_level}",
        "",
        "## Summary",
        "",
        *_summary_lines(results, significance_level),
        "",
        "## Results",
        "",
        "| # | Test | Result | Grade | P-Value | Details |",
        "|---|------|--------|-------|---------|---------|",
    ]

    for i, r in enumerate(results, 1):
        p_str = f"{r.p_value:.6f}" if r.p_value is not None else "N/A"
        lines.append(
            f"| {i} | {r.description} | {_pass_icon(r.passed)} "
            f"| {_grade_icon(r.grade)} {r.grade} | {p_str} | {r.details} |"
        )

    errors = [(i, r) for i, r in enumerate(results, 1) if r.error is not None]
    if errors:
        lines += ["", "## Errors", ""]
        lines += [f"- #{i} {r.name}: {r.error} ({r.details})" for i, r in errors]

    lines.append("")
    report = "\n".join(lines)

    if output_path:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(report, encoding="utf-8")

    return report
