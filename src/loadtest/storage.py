"""Result store: one directory of JSON summaries and raw k6 output.

File layout per test id:
  <results_dir>/summary-<id>.json   StoredSummary (camelCase JSON)
  <results_dir>/result-<id>.json    raw k6 `--out json` event log
  <scripts_dir>/test-<id>.js        generated k6 script
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal
from typing import TYPE_CHECKING

from pydantic import ValidationError
from whenever import Instant

from loadtest.models import HistoryEntry, RunStatistics, StoredSummary
from loadtest_core.reducer import to_fixed

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger("loadtest.storage")

_SUMMARY_PREFIX = "summary-"
_TEST_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class SummaryNotFoundError(LookupError):
    def __init__(self, test_id: str) -> None:
        self.test_id = test_id
        super().__init__(f"No summary for test {test_id}")


def _sort_key(timestamp: str) -> int:
    try:
        return Instant.parse_iso(timestamp).timestamp(unit="millisecond")
    except ValueError:
        return 0


class ResultStore:
    """Stores and indexes run artefacts on the local filesystem."""

    def __init__(self, *, results_dir: Path, scripts_dir: Path) -> None:
        self.results_dir = results_dir
        self.scripts_dir = scripts_dir

    def ensure_dirs(self) -> None:
        self.results_dir.mkdir(parents=True, exist_ok=True)
        self.scripts_dir.mkdir(parents=True, exist_ok=True)

    # -- paths ---------------------------------------------------------------

    def _check_id(self, test_id: str) -> str:
        if not _TEST_ID.match(test_id):
            raise SummaryNotFoundError(test_id)
        return test_id

    def summary_path(self, test_id: str) -> Path:
        return self.results_dir / f"{_SUMMARY_PREFIX}{self._check_id(test_id)}.json"

    def result_path(self, test_id: str) -> Path:
        return self.results_dir / f"result-{self._check_id(test_id)}.json"

    def script_path(self, test_id: str) -> Path:
        return self.scripts_dir / f"test-{self._check_id(test_id)}.js"

    # -- writes --------------------------------------------------------------

    def write_script(self, test_id: str, script: str) -> Path:
        path = self.script_path(test_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(script, encoding="utf-8")
        return path

    def save(self, summary: StoredSummary) -> Path:
        path = self.summary_path(summary.test_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(summary.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        return path

    def delete(self, test_id: str) -> list[Path]:
        """Remove every artefact of a run. Missing files are not an error."""
        removed: list[Path] = []
        for path in (
            self.summary_path(test_id),
            self.result_path(test_id),
            self.script_path(test_id),
        ):
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError:
                logger.exception("Error deleting %s", path)
                continue
            logger.info("Deleted: %s", path)
            removed.append(path)
        return removed

    # -- reads ---------------------------------------------------------------

    def get(self, test_id: str) -> StoredSummary:
        path = self.summary_path(test_id)
        try:
            return StoredSummary.model_validate_json(path.read_bytes())
        except (OSError, ValidationError) as exc:
            raise SummaryNotFoundError(test_id) from exc

    def list_ids(self) -> list[str]:
        if not self.results_dir.exists():
            return []
        return sorted(
            p.stem.removeprefix(_SUMMARY_PREFIX)
            for p in self.results_dir.glob(f"{_SUMMARY_PREFIX}*.json")
        )

    def load_all(self) -> list[StoredSummary]:
        """Every readable summary. Unreadable files are logged and skipped."""
        summaries: list[StoredSummary] = []
        for test_id in self.list_ids():
            try:
                summaries.append(self.get(test_id))
            except SummaryNotFoundError:
                logger.warning("Error reading summary file for %s", test_id, exc_info=True)
        return summaries

    def history(self) -> list[HistoryEntry]:
        """All runs, newest first."""
        entries = [_history_entry(s) for s in self.load_all()]
        entries.sort(key=lambda e: _sort_key(e.timestamp), reverse=True)
        return entries

    def statistics(self) -> RunStatistics:
        """Cross-run totals. A run counts as successful if it made any request."""
        summaries = self.load_all()
        with_requests = [s for s in summaries if s.total_requests > 0]
        timed = [s.avg_duration for s in with_requests if s.avg_duration]
        avg = to_fixed(float(sum(timed, Decimal(0)) / len(timed))) if timed else Decimal("0.00")
        return RunStatistics(
            total_tests=len(summaries),
            successful_tests=len(with_requests),
            failed_tests=len(summaries) - len(with_requests),
            avg_response_time=avg,
        )


def _history_entry(summary: StoredSummary) -> HistoryEntry:
    config = summary.config
    name = f"{config.method} {config.url}" if config else "GET Test"
    return HistoryEntry(
        test_id=summary.test_id,
        name=name,
        timestamp=summary.timestamp,
        start_time=summary.timestamp,
        end_time=summary.timestamp,
        status="completed" if summary.total_requests > 0 else "failed",
        config=config,
        results=summary.result(),
    )
