"""Unit tests for metric classification."""

from loadtest_core.classifier import MetricClassifier, Update
from loadtest_core.models import MeasurementRecord, MetricRole, MetricRouting, RecordType


def _record(metric: str, *, record_type=RecordType.POINT, time_ms=None, **tags) -> MeasurementRecord:
    return MeasurementRecord(
        record_type=record_type, metric_name=metric, value=1.0, timestamp_ms=time_ms, tags=tags
    )


class TestDefaultRouting:
    def test_each_known_metric_has_one_update(self):
        classifier = MetricClassifier()
        expected = {
            "http_reqs": Update.COUNT_REQUEST,
            "checks": Update.ADD_CHECKS,
            "custom_http_req_failed": Update.ADD_PRIMARY_FAILURE,
            "http_req_failed": Update.ADD_SECONDARY_FAILURE,
            "http_req_duration": Update.APPEND_DURATION,
            "http_req_waiting": Update.APPEND_WAITING,
        }
        for metric, update in expected.items():
            assert classifier.classify(_record(metric)) == (update,)

    def test_failure_counters_are_distinct_roles(self):
        classifier = MetricClassifier()
        assert classifier.roles_of("custom_http_req_failed") == (MetricRole.PRIMARY_FAILURE,)
        assert classifier.roles_of("http_req_failed") == (MetricRole.SECONDARY_FAILURE,)
        assert classifier.roles_of("vus") == ()


class TestCombinedUpdates:
    def test_metric_status_and_time_together(self):
        updates = MetricClassifier().classify(_record("http_reqs", time_ms=1000.0, status="200"))
        assert updates == (Update.COUNT_REQUEST, Update.COUNT_STATUS, Update.TRACK_TIME)

    def test_unknown_metric_still_tracks_status_and_time(self):
        updates = MetricClassifier().classify(_record("vus", time_ms=1000.0, status="200"))
        assert updates == (Update.COUNT_STATUS, Update.TRACK_TIME)

    def test_unknown_metric_without_extras_is_a_no_op(self):
        assert MetricClassifier().classify(_record("iteration_duration")) == ()

    def test_non_point_records_trigger_nothing(self):
        record = _record("http_reqs", record_type=RecordType.METRIC, time_ms=1.0, status="200")
        assert MetricClassifier().classify(record) == ()


class TestCustomRouting:
    def test_headline_failure_can_follow_transport_metric(self):
        routing = MetricRouting(primary_failure="http_req_failed", secondary_failure="custom_http_req_failed")
        classifier = MetricClassifier(routing)
        assert classifier.classify(_record("http_req_failed")) == (Update.ADD_PRIMARY_FAILURE,)
        assert classifier.classify(_record("custom_http_req_failed")) == (
            Update.ADD_SECONDARY_FAILURE,
        )

    def test_shared_failure_metric_feeds_both_counters(self):
        classifier = MetricClassifier(MetricRouting(primary_failure="http_req_failed"))
        assert classifier.roles_of("http_req_failed") == (
            MetricRole.PRIMARY_FAILURE,
            MetricRole.SECONDARY_FAILURE,
        )
        assert classifier.classify(_record("http_req_failed", time_ms=5.0)) == (
            Update.ADD_PRIMARY_FAILURE,
            Update.ADD_SECONDARY_FAILURE,
            Update.TRACK_TIME,
        )
        assert classifier.classify(_record("custom_http_req_failed")) == ()
