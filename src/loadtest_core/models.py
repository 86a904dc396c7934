"""Data models for the k6 metrics-aggregation engine.

Three shapes flow through a run:
- MeasurementRecord: one decoded line of k6 JSON output (immutable)
- AccumulatorState: the running reduction for one test run (mutable, one per run)
- SummaryResult: the final statistics, produced once from a drained state (immutable)

SummaryResult serializes with camelCase keys because the persisted summary
files and the report/API consumers read those names verbatim.
"""

from decimal import Decimal
from enum import StrEnum
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

# 2-decimal fixed point, emitted as "30.00" in JSON like the historical reports
FixedPoint = Annotated[
    Decimal,
    PlainSerializer(lambda v: f"{v:.2f}", return_type=str, when_used="json"),
]

# Whole percent. Older summary files hold null for a zero-request run (NaN in JSON)
RatePercent = Annotated[int, BeforeValidator(lambda v: 0 if v is None else v)]


class RecordType(StrEnum):
    """k6 JSON output line types. Only points carry measurements."""

    POINT = "Point"
    METRIC = "Metric"
    OTHER = "other"


class MetricRole(StrEnum):
    """What a metric contributes to the accumulator."""

    REQUEST_COUNT = "request_count"
    CHECKS = "checks"
    PRIMARY_FAILURE = "primary_failure"  # custom application-level check failure
    SECONDARY_FAILURE = "secondary_failure"  # transport-level failure
    DURATION = "duration"
    WAITING = "waiting"


class MeasurementRecord(BaseModel):
    """One observed event from the load generator."""

    model_config = ConfigDict(frozen=True)

    record_type: RecordType
    metric_name: str
    value: float = 0.0
    timestamp_ms: float | None = None
    tags: dict[str, str] = Field(default_factory=dict)

    @property
    def is_point(self) -> bool:
        return self.record_type == RecordType.POINT

    @property
    def status(self) -> str | None:
        return self.tags.get("status") or None


class MetricRouting(BaseModel):
    """Metric name → role table. Defaults are the names the generated k6 script emits."""

    request_count: str = "http_reqs"
    checks: str = "checks"
    primary_failure: str = "custom_http_req_failed"
    secondary_failure: str = "http_req_failed"
    duration: str = "http_req_duration"
    waiting: str = "http_req_waiting"

    def by_name(self) -> dict[str, tuple[MetricRole, ...]]:
        """Roles per metric name. One name may carry several roles, e.g. when
        the headline failure count follows k6's built-in http_req_failed."""
        roles: dict[str, tuple[MetricRole, ...]] = {}
        for role in MetricRole:
            name = getattr(self, role.value)
            roles[name] = (*roles.get(name, ()), role)
        return roles

    @property
    def shared_failure_metric(self) -> bool:
        return self.primary_failure == self.secondary_failure


class AccumulatorState(BaseModel):
    """Running reduction for exactly one test run.

    INVARIANT: earliest_timestamp_ms <= latest_timestamp_ms once both are set.
    INVARIANT: len(duration_samples) == number of duration records seen.
    """

    request_count: int = 0
    checks_total: float = 0.0
    failure_count_primary: float = 0.0
    failure_count_secondary: float = 0.0
    duration_samples: list[float] = Field(default_factory=list)
    waiting_samples: list[float] = Field(default_factory=list)
    status_histogram: dict[str, int] = Field(default_factory=dict)
    earliest_timestamp_ms: float | None = None
    latest_timestamp_ms: float | None = None


class SummaryResult(BaseModel):
    """Final statistics for one run. Created once, never mutated."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total_requests: int = 0
    total_requests_rate: FixedPoint = Decimal("0.00")
    failed_count: int = 0
    success_count: int = 0
    error_rate: RatePercent = 0
    success_rate: RatePercent = 0
    status_codes: dict[str, int] = Field(default_factory=dict)
    avg_duration: FixedPoint = Decimal("0.00")
    avg_waiting: FixedPoint = Decimal("0.00")
    ttfb: FixedPoint = Decimal("0.00")
    min_duration: FixedPoint = Decimal("0.00")
    max_duration: FixedPoint = Decimal("0.00")
    p50: FixedPoint = Decimal("0.00")
    p95: FixedPoint = Decimal("0.00")
    p99: FixedPoint = Decimal("0.00")

    # Both failure signals stay queryable; only the primary feeds failed_count
    transport_failed_count: int = 0
    checks_total: FixedPoint = Decimal("0.00")
