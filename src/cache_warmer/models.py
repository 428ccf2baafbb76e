"""Data models for sitemap records, visit outcomes and run statistics."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

DEFAULT_PRIORITY = 0.5


def parse_priority(value: Optional[str]) -> float:
    """Convert a sitemap <priority> text into a float in [0, 1].

    Missing or unparsable values fall back to the sitemap default of 0.5.
    """
    if value is None or not str(value).strip():
        return DEFAULT_PRIORITY
    try:
        priority = float(value)
    except (TypeError, ValueError):
        return DEFAULT_PRIORITY
    if priority != priority:  # NaN
        return DEFAULT_PRIORITY
    return min(1.0, max(0.0, priority))


@dataclass(frozen=True)
class UrlRecord:
    """One page URL discovered in a sitemap."""
    url: str
    last_modified: Optional[str] = None
    priority: float = DEFAULT_PRIORITY


class OutcomeStatus(str, Enum):
    """Result classification of a single page visit."""
    SUCCESS = "success"
    SUCCESS_NO_CACHE = "success_no_cache"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"


@dataclass
class Outcome:
    """Result of warming one URL."""
    url: str
    status: OutcomeStatus
    cache_generated: bool = False
    http_status: Optional[int] = None
    error: Optional[str] = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        """Whether the page answered with a 2xx/3xx status."""
        return self.status in (OutcomeStatus.SUCCESS, OutcomeStatus.SUCCESS_NO_CACHE)


@dataclass
class Statistics:
    """Counters accumulated over one run."""
    total: int = 0
    success: int = 0
    cache_generated: int = 0
    failed: int = 0
    execution_time_seconds: float = 0.0

    def record(self, outcome: Outcome) -> None:
        """Account for a single visit outcome."""
        if outcome.ok:
            self.success += 1
            if outcome.cache_generated:
                self.cache_generated += 1
        else:
            self.failed += 1

    def merge(self, other: "Statistics") -> None:
        """Add another run's counters into this one."""
        self.total += other.total
        self.success += other.success
        self.cache_generated += other.cache_generated
        self.failed += other.failed
        self.execution_time_seconds += other.execution_time_seconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "success": self.success,
            "cache_generated": self.cache_generated,
            "failed": self.failed,
            "execution_time_seconds": round(self.execution_time_seconds, 2),
        }
