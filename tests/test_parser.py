"""Unit tests for the k6 JSON line parser."""

import json
import warnings

from loadtest_core.models import RecordType
from loadtest_core.parser import parse_line, parse_records, read_records

from .k6_lines import metric_declaration, point


class TestParseLine:
    def test_point_line(self):
        record = parse_line(point("http_req_duration", 12.5, "2026-01-15T10:00:00Z", status="200"))
        assert record is not None
        assert record.record_type == RecordType.POINT
        assert record.metric_name == "http_req_duration"
        assert record.value == 12.5
        assert record.tags == {"status": "200"}
        assert record.status == "200"

    def test_timestamp_is_epoch_millis(self):
        a = parse_line(point("http_reqs", 1, "2026-01-15T10:00:00Z"))
        b = parse_line(point("http_reqs", 1, "2026-01-15T10:00:01.500Z"))
        assert b.timestamp_ms - a.timestamp_ms == 1500

    def test_time_conversion_raises_no_warnings(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            record = parse_line(point("http_reqs", 1, "2026-01-15T12:00:00.250+02:00"))
        assert record.timestamp_ms == 1768471200250

    def test_metric_declaration_is_not_a_point(self):
        record = parse_line(metric_declaration("http_reqs"))
        assert record is not None
        assert record.record_type == RecordType.METRIC
        assert not record.is_point

    def test_unknown_type_maps_to_other(self):
        record = parse_line(json.dumps({"type": "Summary", "metric": "x"}))
        assert record.record_type == RecordType.OTHER

    def test_missing_tags_do_not_raise(self):
        record = parse_line(point("http_reqs", 1, "2026-01-15T10:00:00Z"))
        assert record.tags == {}
        assert record.status is None

    def test_tags_without_status(self):
        record = parse_line(point("http_reqs", 1, None, method="GET"))
        assert record.status is None
        assert record.tags == {"method": "GET"}

    def test_numeric_status_is_coerced_to_string(self):
        line = json.dumps({"type": "Point", "metric": "http_reqs", "data": {"tags": {"status": 404}}})
        assert parse_line(line).status == "404"

    def test_missing_value_defaults_to_zero(self):
        line = json.dumps({"type": "Point", "metric": "checks", "data": {}})
        assert parse_line(line).value == 0.0

    def test_unparsable_time_keeps_record(self):
        record = parse_line(point("http_reqs", 1, "yesterday-ish"))
        assert record is not None
        assert record.timestamp_ms is None

    def test_extra_fields_ignored(self):
        line = json.dumps(
            {"type": "Point", "metric": "http_reqs", "extra": [1, 2], "data": {"value": 1, "x": {}}}
        )
        assert parse_line(line).metric_name == "http_reqs"

    def test_blank_line(self):
        assert parse_line("") is None
        assert parse_line("   \n") is None

    def test_non_json(self):
        assert parse_line("not json at all") is None

    def test_truncated_json(self):
        full = point("http_req_duration", 10, "2026-01-15T10:00:00Z")
        assert parse_line(full[: len(full) // 2]) is None

    def test_json_that_is_not_an_object(self):
        assert parse_line("[1, 2, 3]") is None
        assert parse_line("42") is None

    def test_non_numeric_value_is_malformed(self):
        line = json.dumps({"type": "Point", "metric": "http_reqs", "data": {"value": "lots"}})
        assert parse_line(line) is None


class TestParseRecords:
    def test_preserves_input_order(self):
        lines = [point("a"), point("b"), point("c")]
        assert [r.metric_name for r in parse_records(lines)] == ["a", "b", "c"]

    def test_skips_bad_lines_without_aborting(self):
        lines = [point("a"), "{{{ garbage", "", point("b")]
        assert [r.metric_name for r in parse_records(lines)] == ["a", "b"]

    def test_is_lazy(self):
        def lines():
            yield point("a")
            raise AssertionError("consumed past the first record")

        records = parse_records(lines())
        assert next(records).metric_name == "a"


class TestReadRecords:
    def test_reads_file(self, tmp_path):
        path = tmp_path / "result.json"
        path.write_text("\n".join([point("a"), point("b")]) + "\n", encoding="utf-8")
        assert [r.metric_name for r in read_records(path)] == ["a", "b"]

    def test_undecodable_bytes_are_a_bad_line(self, tmp_path):
        path = tmp_path / "result.json"
        path.write_bytes(point("a").encode() + b"\n\xff\xfe\xfa\n" + point("b").encode())
        assert [r.metric_name for r in read_records(path)] == ["a", "b"]
