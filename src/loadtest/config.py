"""Configuration for the load-testing service.

All settings come from the environment with the LOADTEST_ prefix, e.g.
LOADTEST_RESULTS_DIR=/var/lib/loadtest/results.
"""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from loadtest_core.models import MetricRouting


class ThresholdDefaults(BaseModel):
    """Pass/fail thresholds written into generated k6 scripts."""

    error_rate: float = Field(
        default=0.1,
        description="Maximum failed-request rate before the k6 run is marked failed",
    )
    p95: float = Field(
        default=500.0,
        description="Maximum p95 request duration in milliseconds",
    )


class LoadTestSettings(BaseSettings):
    """Main configuration for the load-testing service."""

    # Storage
    results_dir: Path = Field(default=Path("results"), description="Summaries and raw k6 output")
    scripts_dir: Path = Field(default=Path("k6-scripts"), description="Generated k6 scripts")
    static_dir: Path | None = Field(default=None, description="Optional UI files served at /")

    # k6
    k6_binary: str = Field(default="k6", description="k6 executable name or path")
    default_vus: int = Field(default=10, ge=1, description="Virtual users when not given")
    default_duration: str = Field(default="30s", description="Test duration when not given")
    thresholds: ThresholdDefaults = Field(default_factory=ThresholdDefaults)

    # Aggregation
    routing: MetricRouting = Field(default_factory=MetricRouting)

    # HTTP
    host: str = Field(default="0.0.0.0", description="Bind address for `loadtest serve`")
    port: int = Field(default=3000, description="Bind port for `loadtest serve`")
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")

    model_config = {"env_prefix": "LOADTEST_", "env_nested_delimiter": "__"}
