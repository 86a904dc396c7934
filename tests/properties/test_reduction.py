"""Property tests for the aggregation pipeline.

- Request count is independent of interleaving with other metrics
- Reduction is pure and deterministic
- Rank percentiles are monotone
- Malformed lines never change the result
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from loadtest_core.aggregator import summarize_lines
from loadtest_core.models import AccumulatorState
from loadtest_core.reducer import reduce_summary

from ..k6_lines import point
from .strategies import accumulator_states, durations, garbage_lines, k6_points

# =============================================================================
# COUNTING
# =============================================================================


@given(others=st.lists(k6_points(metrics=("checks", "http_req_duration", "vus")), max_size=50),
       requests=st.integers(min_value=0, max_value=50),
       data=st.data())
@settings(max_examples=200)
def test_total_requests_counts_request_records(others, requests, data):
    """Property: totalRequests == number of http_reqs points, however interleaved."""
    lines = list(others)
    for _ in range(requests):
        index = data.draw(st.integers(min_value=0, max_value=len(lines)))
        lines.insert(index, point("http_reqs", 1))
    assert summarize_lines(lines).total_requests == requests


@given(lines=st.lists(k6_points(), max_size=60), seed=st.randoms(use_true_random=False))
@settings(max_examples=200)
def test_counters_independent_of_order(lines, seed):
    """Property: counts, histogram and time span do not depend on line order."""
    shuffled = list(lines)
    seed.shuffle(shuffled)
    a, b = summarize_lines(lines), summarize_lines(shuffled)
    assert a.total_requests == b.total_requests
    assert a.failed_count == b.failed_count
    assert a.transport_failed_count == b.transport_failed_count
    assert a.status_codes == b.status_codes
    assert a.total_requests_rate == b.total_requests_rate
    assert (a.min_duration, a.p50, a.p95, a.p99, a.max_duration) == (
        b.min_duration,
        b.p50,
        b.p95,
        b.p99,
        b.max_duration,
    )


# =============================================================================
# PURITY
# =============================================================================


@given(state=accumulator_states())
@settings(max_examples=300)
def test_reduce_is_idempotent(state: AccumulatorState):
    """Property: reducing the same state twice gives identical results and leaves it intact."""
    before = state.model_copy(deep=True)
    assert reduce_summary(state) == reduce_summary(state)
    assert state == before


# =============================================================================
# PERCENTILES
# =============================================================================


@given(samples=st.lists(durations, min_size=1, max_size=500))
@settings(max_examples=300)
def test_percentiles_are_monotone(samples):
    """Property: min <= p50 <= p95 <= p99 <= max for any non-empty sample set."""
    summary = reduce_summary(AccumulatorState(duration_samples=samples))
    assert summary.min_duration <= summary.p50 <= summary.p95 <= summary.p99 <= summary.max_duration


# =============================================================================
# RATES
# =============================================================================


@given(state=accumulator_states())
@settings(max_examples=300)
def test_rates_are_zero_or_hundred(state: AccumulatorState):
    """Property: the ceiling rate formula only ever yields 0 or 100 for valid counts."""
    summary = reduce_summary(state)
    assert summary.error_rate in (0, 100)
    assert summary.success_rate in (0, 100)
    assert (summary.error_rate == 100) == (summary.failed_count > 0)


# =============================================================================
# ROBUSTNESS
# =============================================================================


@given(lines=st.lists(k6_points(), max_size=40), data=st.data())
@settings(max_examples=200)
def test_garbage_lines_are_ignored(lines, data):
    """Property: inserting malformed lines anywhere never changes the summary."""
    noisy = list(lines)
    for _ in range(data.draw(st.integers(min_value=1, max_value=5))):
        index = data.draw(st.integers(min_value=0, max_value=len(noisy)))
        noisy.insert(index, data.draw(garbage_lines))
    assert summarize_lines(noisy) == summarize_lines(lines)
