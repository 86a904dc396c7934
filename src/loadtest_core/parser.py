"""Event parser for k6 `--out json=...` files.

One JSON object per line:

    {"type": "Point", "metric": "http_req_duration",
     "data": {"time": "2026-01-15T10:00:00.123Z", "value": 12.3, "tags": {"status": "200"}}}

Lines are decoded independently. Anything that does not decode as an object
of this shape is skipped: k6 may still be writing the file, so a torn last
line is normal and must never abort the run.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError
from whenever import Instant, OffsetDateTime

from loadtest_core.models import MeasurementRecord, RecordType

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

logger = logging.getLogger("loadtest_core.parser")


class _RawData(BaseModel):
    time: str | None = None
    value: float | None = None
    tags: dict[str, Any] | None = None


class _RawLine(BaseModel):
    type: str
    metric: str | None = None
    data: _RawData | None = None


def _parse_time_ms(raw: str | None) -> float | None:
    """RFC 3339 → epoch milliseconds. Unparsable times are dropped, not fatal."""
    if not raw:
        return None
    try:
        return Instant.parse_iso(raw).timestamp(unit="millisecond")
    except ValueError:
        pass
    try:
        return OffsetDateTime.parse_iso(raw).to_instant().timestamp(unit="millisecond")
    except ValueError:
        return None


def _record_type(raw: str) -> RecordType:
    try:
        return RecordType(raw)
    except ValueError:
        return RecordType.OTHER


def parse_line(line: str) -> MeasurementRecord | None:
    """Decode one line, or return None if it is blank or malformed."""
    line = line.strip()
    if not line:
        return None
    try:
        raw = _RawLine.model_validate_json(line)
    except ValidationError:
        return None

    data = raw.data or _RawData()
    tags = {k: str(v) for k, v in (data.tags or {}).items() if v is not None}
    return MeasurementRecord(
        record_type=_record_type(raw.type),
        metric_name=raw.metric or "",
        value=data.value or 0.0,
        timestamp_ms=_parse_time_ms(data.time),
        tags=tags,
    )


def parse_records(lines: Iterable[str]) -> Iterator[MeasurementRecord]:
    """Lazily decode a line sequence, preserving input order."""
    skipped = 0
    for line in lines:
        record = parse_line(line)
        if record is None:
            if line.strip():
                skipped += 1
            continue
        yield record
    if skipped:
        logger.debug("Skipped %d malformed line(s)", skipped)


def read_records(path: Path) -> Iterator[MeasurementRecord]:
    """Stream records from a k6 JSON output file."""
    with path.open(encoding="utf-8", errors="replace") as fh:
        yield from parse_records(fh)
