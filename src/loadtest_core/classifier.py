"""Metric classifier: decides which accumulator updates a record triggers.

A record can trigger several updates at once: its metric-specific updates,
a status histogram bump and a time-bounds update are independent. Records
that are not points trigger nothing; unknown metric names still take part
in the status and time updates.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from loadtest_core.models import MetricRole, MetricRouting

if TYPE_CHECKING:
    from loadtest_core.models import MeasurementRecord


class Update(StrEnum):
    COUNT_REQUEST = "count_request"
    ADD_CHECKS = "add_checks"
    ADD_PRIMARY_FAILURE = "add_primary_failure"
    ADD_SECONDARY_FAILURE = "add_secondary_failure"
    APPEND_DURATION = "append_duration"
    APPEND_WAITING = "append_waiting"
    COUNT_STATUS = "count_status"
    TRACK_TIME = "track_time"


_ROLE_UPDATES: dict[MetricRole, Update] = {
    MetricRole.REQUEST_COUNT: Update.COUNT_REQUEST,
    MetricRole.CHECKS: Update.ADD_CHECKS,
    MetricRole.PRIMARY_FAILURE: Update.ADD_PRIMARY_FAILURE,
    MetricRole.SECONDARY_FAILURE: Update.ADD_SECONDARY_FAILURE,
    MetricRole.DURATION: Update.APPEND_DURATION,
    MetricRole.WAITING: Update.APPEND_WAITING,
}


class MetricClassifier:
    """Maps records to updates using a MetricRouting table."""

    def __init__(self, routing: MetricRouting | None = None) -> None:
        self._roles = (routing or MetricRouting()).by_name()

    def roles_of(self, metric_name: str) -> tuple[MetricRole, ...]:
        return self._roles.get(metric_name, ())

    def classify(self, record: MeasurementRecord) -> tuple[Update, ...]:
        if not record.is_point:
            return ()

        updates = [_ROLE_UPDATES[role] for role in self.roles_of(record.metric_name)]
        if record.status is not None:
            updates.append(Update.COUNT_STATUS)
        if record.timestamp_ms is not None:
            updates.append(Update.TRACK_TIME)
        return tuple(updates)
