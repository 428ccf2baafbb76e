"""Sitemap-driven composite cache warmer using a headless browser."""

__version__ = "0.1.0"

from cache_warmer.config import WarmerConfig, CookieSpec, QueryParam, DelayRange, settings
from cache_warmer.models import UrlRecord, Outcome, OutcomeStatus, Statistics
from cache_warmer.sitemap_parser import SitemapResolver, parse_sitemap_document
from cache_warmer.prioritizer import prioritize, is_excluded
from cache_warmer.session_runner import SessionRunner, add_cache_params
from cache_warmer.scheduler import BatchScheduler
from cache_warmer.run_lock import RunLock, LockState
from cache_warmer.coordinator import RunCoordinator
from cache_warmer.exceptions import (
    CacheWarmerError,
    FetchError,
    ParseError,
    NavigationError,
    HttpStatusError,
    ProbeError,
    LockHeldError,
    FatalStartupError,
)

# Infrastructure
from cache_warmer.infrastructure import (
    BrowserSession,
    RequestPolicy,
    RandomDelay,
)

__all__ = [
    # Core
    "RunCoordinator",
    "SitemapResolver",
    "SessionRunner",
    "BatchScheduler",
    "RunLock",
    "LockState",
    "prioritize",
    "is_excluded",
    "add_cache_params",
    "parse_sitemap_document",
    # Models
    "UrlRecord",
    "Outcome",
    "OutcomeStatus",
    "Statistics",
    # Config
    "WarmerConfig",
    "CookieSpec",
    "QueryParam",
    "DelayRange",
    "settings",
    # Errors
    "CacheWarmerError",
    "FetchError",
    "ParseError",
    "NavigationError",
    "HttpStatusError",
    "ProbeError",
    "LockHeldError",
    "FatalStartupError",
    # Infrastructure
    "BrowserSession",
    "RequestPolicy",
    "RandomDelay",
]
