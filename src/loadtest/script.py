"""k6 script generation.

Renders templates/script.js.j2 for a TestConfig. The generated script
records a custom failure Rate named after `routing.primary_failure`, which
is the metric the aggregator uses for the headline failure count. When that
name is also the transport failure metric, k6 records it itself and no
custom Rate is declared.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from loadtest.config import LoadTestSettings
from loadtest.models import HttpMethod

if TYPE_CHECKING:
    from loadtest.models import TestConfig

TEMPLATES_DIR = Path(__file__).parent / "templates"

_DEFAULT_HEADERS = {"Content-Type": "application/json"}

# k6/http names DELETE `del`
_HTTP_FUNCTIONS = {HttpMethod.DELETE: "del"}

_env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    undefined=StrictUndefined,
    keep_trailing_newline=True,
    trim_blocks=True,
    lstrip_blocks=True,
    autoescape=False,  # noqa: S701 JavaScript output, values go through tojson
)


def _fmt(value: float) -> str:
    return f"{value:g}"


def generate_k6_script(config: TestConfig, settings: LoadTestSettings | None = None) -> str:
    """Render a k6 script for the given test configuration."""
    settings = settings or LoadTestSettings()
    error_rate = config.thresholds.error_rate or settings.thresholds.error_rate
    p95 = config.thresholds.p95 or settings.thresholds.p95

    template = _env.get_template("script.js.j2")
    return template.render(
        config=config,
        routing=settings.routing,
        headers=config.headers or _DEFAULT_HEADERS,
        vus=config.vus or settings.default_vus,
        duration=config.duration or settings.default_duration,
        error_rate=_fmt(error_rate),
        checks_rate=_fmt(round(1 - error_rate, 6)),
        p95=_fmt(p95),
        http_fn=_HTTP_FUNCTIONS.get(config.method, config.method.value.lower()),
    )
