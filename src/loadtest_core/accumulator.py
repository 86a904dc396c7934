"""Streaming accumulator: single-pass running reduction for one test run.

State machine:

    accumulating ──drain()──▶ drained

Records are applied in arrival order. Counter sums are order-independent,
but sample order and the moment the time bounds move are observable, so
nothing is reordered here.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from loadtest_core.classifier import MetricClassifier, Update
from loadtest_core.models import AccumulatorState

if TYPE_CHECKING:
    from collections.abc import Iterable

    from loadtest_core.models import MeasurementRecord

logger = logging.getLogger("loadtest_core.accumulator")


class AccumulatorPhase(StrEnum):
    ACCUMULATING = "accumulating"
    DRAINED = "drained"


class AccumulatorDrainedError(RuntimeError):
    """Raised when a record is fed to an accumulator that was already drained."""

    def __init__(self) -> None:
        super().__init__("Accumulator already drained; start a new run")


class RunAccumulator:
    """Owns the AccumulatorState of exactly one run. Never shared or reused."""

    def __init__(self, classifier: MetricClassifier | None = None) -> None:
        self._classifier = classifier or MetricClassifier()
        self._state = AccumulatorState()
        self._phase = AccumulatorPhase.ACCUMULATING
        self.records_seen = 0

    @property
    def phase(self) -> AccumulatorPhase:
        return self._phase

    def feed(self, record: MeasurementRecord) -> None:
        if self._phase is AccumulatorPhase.DRAINED:
            raise AccumulatorDrainedError
        self.records_seen += 1
        for update in self._classifier.classify(record):
            _apply(self._state, update, record)

    def feed_all(self, records: Iterable[MeasurementRecord]) -> None:
        for record in records:
            self.feed(record)

    def drain(self) -> AccumulatorState:
        """End the stream and hand over the final state."""
        if self._phase is AccumulatorPhase.ACCUMULATING:
            self._phase = AccumulatorPhase.DRAINED
            logger.debug(
                "Drained after %d record(s): %d request(s), %d duration sample(s)",
                self.records_seen,
                self._state.request_count,
                len(self._state.duration_samples),
            )
        return self._state


def _apply(state: AccumulatorState, update: Update, record: MeasurementRecord) -> None:
    match update:
        case Update.COUNT_REQUEST:
            state.request_count += 1
        case Update.ADD_CHECKS:
            state.checks_total += record.value
        case Update.ADD_PRIMARY_FAILURE:
            state.failure_count_primary += record.value
        case Update.ADD_SECONDARY_FAILURE:
            state.failure_count_secondary += record.value
        case Update.APPEND_DURATION:
            state.duration_samples.append(record.value)
        case Update.APPEND_WAITING:
            state.waiting_samples.append(record.value)
        case Update.COUNT_STATUS:
            code = record.tags["status"]
            state.status_histogram[code] = state.status_histogram.get(code, 0) + 1
        case Update.TRACK_TIME:
            t = record.timestamp_ms
            if state.earliest_timestamp_ms is None or t < state.earliest_timestamp_ms:
                state.earliest_timestamp_ms = t
            if state.latest_timestamp_ms is None or t > state.latest_timestamp_ms:
                state.latest_timestamp_ms = t
