"""k6 load-testing service: runs k6, stores and serves run summaries.

Quick Start:
    loadtest summarize results/result-1700000000000.json
    loadtest run test-config.json
    loadtest serve --port 3000

The aggregation itself lives in loadtest_core.
"""

__version__ = "0.1.0"
