"""Request, storage and response models for the load-testing service.

Wire names are camelCase (the UI and the stored summary files use them);
Python attributes stay snake_case.
"""

from decimal import Decimal
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from loadtest_core.models import FixedPoint, SummaryResult


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HttpMethod(StrEnum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


# =============================================================================
# REQUESTS
# =============================================================================


class ThresholdConfig(_CamelModel):
    error_rate: float | None = Field(default=None, gt=0, le=1)
    p95: float | None = Field(default=None, gt=0)


class TestConfig(_CamelModel):
    """What to hit, how hard and for how long."""

    __test__ = False  # not a pytest test class

    url: str
    method: HttpMethod = HttpMethod.GET
    headers: dict[str, str] | None = None
    body: Any = None
    vus: int | None = Field(default=None, ge=1)
    duration: str | None = None
    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)


# =============================================================================
# STORAGE
# =============================================================================


class StoredSummary(SummaryResult):
    """Summary file contents: run metadata plus the computed statistics."""

    test_id: str
    timestamp: str
    config: TestConfig | None = None

    def result(self) -> SummaryResult:
        return SummaryResult.model_validate(self.model_dump(include=set(SummaryResult.model_fields)))


# =============================================================================
# RESPONSES
# =============================================================================


class RunTestResponse(_CamelModel):
    success: bool = True
    test_id: str
    message: str = "Test started successfully"


class ResultsResponse(_CamelModel):
    results: list[str]


class HistoryEntry(_CamelModel):
    test_id: str
    name: str
    timestamp: str
    start_time: str
    end_time: str
    status: Literal["completed", "failed"]
    config: TestConfig | None = None
    results: SummaryResult


class HistoryResponse(_CamelModel):
    success: bool = True
    tests: list[HistoryEntry]


class RunStatistics(_CamelModel):
    total_tests: int = 0
    successful_tests: int = 0
    failed_tests: int = 0
    avg_response_time: FixedPoint = Decimal("0.00")


class StatisticsResponse(_CamelModel):
    success: bool = True
    statistics: RunStatistics


class MessageResponse(_CamelModel):
    success: bool = True
    message: str


class ErrorResponse(_CamelModel):
    success: bool = False
    error: str
