"""Streaming metrics-aggregation engine for k6 JSON output.

Quick Start:
    from pathlib import Path
    from loadtest_core import summarize_file

    summary = summarize_file(Path("results/result-1700000000000.json"))
    print(summary.model_dump_json(by_alias=True, indent=2))
"""

from loadtest_core.accumulator import AccumulatorDrainedError, RunAccumulator
from loadtest_core.aggregator import RunAggregator, summarize_file, summarize_lines
from loadtest_core.classifier import MetricClassifier, Update
from loadtest_core.models import (
    AccumulatorState,
    MeasurementRecord,
    MetricRole,
    MetricRouting,
    RecordType,
    SummaryResult,
)
from loadtest_core.parser import parse_line, parse_records, read_records
from loadtest_core.reducer import ceiling_rate_percent, rank_percentile, reduce_summary

__version__ = "0.1.0"

__all__ = [
    "AccumulatorDrainedError",
    "AccumulatorState",
    "MeasurementRecord",
    "MetricClassifier",
    "MetricRole",
    "MetricRouting",
    "RecordType",
    "RunAccumulator",
    "RunAggregator",
    "SummaryResult",
    "Update",
    "ceiling_rate_percent",
    "parse_line",
    "parse_records",
    "rank_percentile",
    "read_records",
    "reduce_summary",
    "summarize_file",
    "summarize_lines",
]
