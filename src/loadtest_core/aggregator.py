"""Run aggregator: parse → classify → accumulate → reduce for one test run.

Each run gets its own RunAggregator; nothing is shared between runs, so
several runs can be summarised concurrently without locking.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from loadtest_core.accumulator import RunAccumulator
from loadtest_core.classifier import MetricClassifier
from loadtest_core.parser import parse_records, read_records
from loadtest_core.reducer import ceiling_rate_percent, reduce_summary

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from loadtest_core.models import MetricRouting, SummaryResult
    from loadtest_core.reducer import RateFormula

logger = logging.getLogger("loadtest_core.aggregator")


class RunAggregator:
    """Single-use pipeline for one run's event log."""

    def __init__(
        self,
        *,
        routing: MetricRouting | None = None,
        rate_formula: RateFormula = ceiling_rate_percent,
    ) -> None:
        self._accumulator = RunAccumulator(MetricClassifier(routing))
        self._rate_formula = rate_formula

    def consume_lines(self, lines: Iterable[str]) -> None:
        self._accumulator.feed_all(parse_records(lines))

    def consume_file(self, path: Path) -> None:
        self._accumulator.feed_all(read_records(path))

    def finish(self) -> SummaryResult:
        state = self._accumulator.drain()
        return reduce_summary(state, rate_formula=self._rate_formula)


def summarize_lines(lines: Iterable[str], *, routing: MetricRouting | None = None) -> SummaryResult:
    """Summarise an in-memory line sequence."""
    aggregator = RunAggregator(routing=routing)
    aggregator.consume_lines(lines)
    return aggregator.finish()


def summarize_file(path: Path, *, routing: MetricRouting | None = None) -> SummaryResult:
    """Summarise a k6 JSON output file."""
    aggregator = RunAggregator(routing=routing)
    aggregator.consume_file(path)
    summary = aggregator.finish()
    logger.debug(
        "Summarised %s: %d request(s), %s req/s",
        path.name,
        summary.total_requests,
        summary.total_requests_rate,
    )
    return summary
