"""k6 runner: generate the script, run k6, summarise its JSON output.

A run is:
1. Write <scripts_dir>/test-<id>.js
2. k6 run --out json=<results_dir>/result-<id>.json <script>
3. Aggregate the result file (in a worker thread) and save summary-<id>.json

k6 exits non-zero when a threshold is crossed; that is a test outcome, not a
runner failure, so the summary is still produced.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from whenever import Instant

from loadtest.models import StoredSummary
from loadtest.script import generate_k6_script
from loadtest_core.aggregator import summarize_file

if TYPE_CHECKING:
    from pathlib import Path

    from loadtest.config import LoadTestSettings
    from loadtest.models import TestConfig
    from loadtest.storage import ResultStore

logger = logging.getLogger("loadtest.runner")


class K6NotInstalledError(RuntimeError):
    def __init__(self, binary: str) -> None:
        super().__init__(
            f"k6 binary '{binary}' not found. "
            "See https://k6.io/docs/getting-started/installation/"
        )


def new_test_id() -> str:
    """Epoch milliseconds, like the ids of existing result files."""
    return str(Instant.now().timestamp(unit="millisecond"))


class K6Runner:
    """Runs k6 tests in background tasks and stores their summaries."""

    def __init__(self, settings: LoadTestSettings, store: ResultStore) -> None:
        self._settings = settings
        self._store = store
        self._tasks: set[asyncio.Task[StoredSummary | None]] = set()

    @property
    def active(self) -> int:
        return len(self._tasks)

    def prepare(self, config: TestConfig, test_id: str | None = None) -> str:
        """Write the k6 script for a new run and return its test id."""
        test_id = test_id or new_test_id()
        script = generate_k6_script(config, self._settings)
        self._store.write_script(test_id, script)
        return test_id

    def start(self, config: TestConfig) -> str:
        """Prepare a run and execute it in the background. Must be called inside a loop."""
        test_id = self.prepare(config)
        logger.info("Starting Test - %s", test_id)
        task = asyncio.create_task(self.execute(test_id, config), name=f"k6-{test_id}")
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return test_id

    def _finished(self, task: asyncio.Task[StoredSummary | None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("k6 run %s cancelled", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error("k6 run %s failed", task.get_name(), exc_info=exc)

    async def wait_all(self) -> None:
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def execute(self, test_id: str, config: TestConfig) -> StoredSummary | None:
        """Run k6 for a prepared test id and store the summary."""
        script_path = self._store.script_path(test_id)
        result_path = self._store.result_path(test_id)
        result_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            await self._run_k6(script_path, result_path)
        except K6NotInstalledError:
            logger.exception("K6 execution error for %s", test_id)
        logger.info("Completed Test - %s", test_id)

        if not result_path.exists():
            logger.error("No k6 output for %s at %s", test_id, result_path)
            return None

        try:
            result = await asyncio.to_thread(
                summarize_file, result_path, routing=self._settings.routing
            )
        except Exception:
            logger.exception("Error parsing results for %s", test_id)
            return None

        summary = StoredSummary(
            **result.model_dump(),
            test_id=test_id,
            timestamp=Instant.now().format_iso(),
            config=config,
        )
        self._store.save(summary)
        return summary

    async def _run_k6(self, script_path: Path, result_path: Path) -> int:
        cmd = [
            self._settings.k6_binary,
            "run",
            "--out",
            f"json={result_path}",
            str(script_path),
        ]
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise K6NotInstalledError(self._settings.k6_binary) from None

        _stdout, stderr = await process.communicate()
        if process.returncode != 0:
            logger.warning(
                "k6 exited with %d for %s: %s",
                process.returncode,
                script_path.name,
                stderr.decode("utf-8", errors="replace").strip()[-500:],
            )
        return process.returncode
