"""Summary reducer: drained AccumulatorState → SummaryResult.

Formulas are kept numerically identical to the historical summary files:

- Percentiles are nearest-rank by floor: p(K) = sorted[floor(n * K)], no
  interpolation between ranks.
- Error and success rates are ceil(part / total) * 100. This collapses any
  nonzero failure fraction to 100 (known defect). The formula lives in
  ceiling_rate_percent alone; pass a different `rate_formula` to change it.
- Rounded values use half-up on the exact binary value, which is what
  JavaScript's Number.toFixed(2) produced in the old reports.
"""

from __future__ import annotations

import math
import statistics
from collections.abc import Callable
from decimal import ROUND_HALF_UP, Decimal

from loadtest_core.models import AccumulatorState, SummaryResult

RateFormula = Callable[[float, float], int]

PERCENTILES = (0.50, 0.95, 0.99)

_CENTS = Decimal("0.01")


def to_fixed(value: float) -> Decimal:
    """Round to 2 decimals as fixed point."""
    return Decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP)


def ceiling_rate_percent(part: float, total: float) -> int:
    """ceil(part / total) * 100, or 0 when either side is not positive.

    Any 0 < part < total yields 100.
    """
    if total <= 0 or part <= 0:
        return 0
    return math.ceil(part / total) * 100


def rank_percentile(sorted_samples: list[float], k: float) -> float:
    """Nearest-rank percentile on an ascending list; 0 when empty."""
    n = len(sorted_samples)
    if n == 0:
        return 0.0
    return sorted_samples[min(math.floor(n * k), n - 1)]


def requests_per_second(state: AccumulatorState) -> float:
    if (
        state.earliest_timestamp_ms is None
        or state.latest_timestamp_ms is None
        or state.request_count <= 0
    ):
        return 0.0
    duration_seconds = (state.latest_timestamp_ms - state.earliest_timestamp_ms) / 1000
    if duration_seconds <= 0:
        return 0.0
    return state.request_count / duration_seconds


def _mean(samples: list[float]) -> float:
    return statistics.mean(samples) if samples else 0.0


def reduce_summary(
    state: AccumulatorState,
    *,
    rate_formula: RateFormula = ceiling_rate_percent,
) -> SummaryResult:
    """Compute the run summary. Pure: `state` is read, never modified."""
    total = state.request_count
    failed = round(state.failure_count_primary)
    succeeded = total - failed

    durations = sorted(state.duration_samples)
    p50, p95, p99 = (rank_percentile(durations, k) for k in PERCENTILES)
    avg_waiting = to_fixed(_mean(state.waiting_samples))

    return SummaryResult(
        total_requests=total,
        total_requests_rate=to_fixed(requests_per_second(state)),
        failed_count=failed,
        success_count=succeeded,
        error_rate=rate_formula(failed, total),
        success_rate=rate_formula(succeeded, total),
        status_codes=dict(state.status_histogram),
        avg_duration=to_fixed(_mean(durations)),
        avg_waiting=avg_waiting,
        ttfb=avg_waiting,
        min_duration=to_fixed(durations[0] if durations else 0.0),
        max_duration=to_fixed(durations[-1] if durations else 0.0),
        p50=to_fixed(p50),
        p95=to_fixed(p95),
        p99=to_fixed(p99),
        transport_failed_count=round(state.failure_count_secondary),
        checks_total=to_fixed(state.checks_total),
    )
