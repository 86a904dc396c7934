"""HTML report for one stored run summary."""

from __future__ import annotations

from typing import TYPE_CHECKING

from jinja2 import Environment, FileSystemLoader, select_autoescape

from loadtest.script import TEMPLATES_DIR

if TYPE_CHECKING:
    from loadtest.models import StoredSummary

_env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(["html", "html.j2"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def _rows(s: StoredSummary) -> list[tuple[str, str, str]]:
    return [
        ("Total Requests", f"{s.total_requests}", "Number of logical requests or iterations"),
        ("Requests per Second (RPS)", f"{s.total_requests_rate}", "RPS, Requests per second"),
        ("Success Count", f"{s.success_count}", "Requests that passed all checks"),
        ("Failure Count", f"{s.failed_count}", "Requests that failed a check"),
        ("Transport Failures", f"{s.transport_failed_count}", "Requests k6 marked as failed"),
        ("Error Rate", f"{s.error_rate}%", "ceil(failedRequests / totalRequests) * 100"),
        ("Success Rate", f"{s.success_rate}%", "ceil(successRequests / totalRequests) * 100"),
        ("Average Duration", f"{s.avg_duration} ms", "Avg full round-trip time, Lower is better"),
        ("Average Waiting", f"{s.avg_waiting} ms", "Avg server responsiveness, Lower is better"),
        ("Min Duration", f"{s.min_duration} ms", "Useful for spotting spikes"),
        ("Max Duration", f"{s.max_duration} ms", "Useful for spotting spikes"),
        ("P50 (Median)", f"{s.p50} ms", "More realistic than avg if you have outliers"),
        ("P95", f"{s.p95} ms", "95th Percentile, Target SLA Metric"),
        ("P99", f"{s.p99} ms", "99th Percentile, Detects tail latency issues"),
        ("Time to First Byte (TTFB)", f"{s.ttfb} ms", "Network + server latency combined"),
    ]


def render_report(summary: StoredSummary) -> str:
    """Render a standalone HTML report."""
    template = _env.get_template("report.html.j2")
    return template.render(s=summary, rows=_rows(summary))
