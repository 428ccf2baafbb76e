"""
Configuration for the cache warmer.

WarmerConfig is a validated, immutable Pydantic snapshot of every tunable used
by one invocation. It can be built from defaults, environment variables or a
JSON file.
"""
import json
import os
import secrets
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Literal, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from .constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_BLOCKED_RESOURCE_TYPES,
    DEFAULT_BLOCKED_URL_SUBSTRINGS,
    DEFAULT_DELAY_MAX_MS,
    DEFAULT_DELAY_MIN_MS,
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_LAUNCH_ARGS,
    DEFAULT_LOCK_FILE,
    DEFAULT_LOCK_STALE_HOURS,
    DEFAULT_LOG_DIR,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_PAGE_TIMEOUT_MS,
    DEFAULT_QUERY_PARAMS,
    DEFAULT_REQUEST_TIMEOUT_MS,
    DEFAULT_SUCCESS_PROBE,
    DEFAULT_USER_AGENT,
    GUEST_ID_BYTES,
    GUEST_ID_COOKIE,
    LAST_VISIT_COOKIE,
)

load_dotenv()  # Loads variables from .env file


class Settings:
    """
    Process-level settings loaded from environment variables.
    """
    LOCK_FILE = os.getenv("WARMER_LOCK_FILE", DEFAULT_LOCK_FILE)
    LOG_DIR = os.getenv("WARMER_LOG_DIR", DEFAULT_LOG_DIR)
    LOG_LEVEL = os.getenv("WARMER_LOG_LEVEL", "INFO")
    USER_AGENT = os.getenv("WARMER_USER_AGENT", DEFAULT_USER_AGENT)


settings = Settings()


class CookieSpec(BaseModel):
    """A cookie injected into every warmed page."""

    name: str
    value: str
    path: str = "/"

    class Config:
        frozen = True

    def for_domain(self, domain: str) -> Dict[str, str]:
        """Cookie dict in the shape Playwright's add_cookies() expects."""
        return {"name": self.name, "value": self.value, "domain": domain, "path": self.path}


class QueryParam(BaseModel):
    """A cache-busting query parameter."""

    name: str
    value: str

    class Config:
        frozen = True


class DelayRange(BaseModel):
    """Randomized pause after each URL, in milliseconds."""

    min: int = Field(default=DEFAULT_DELAY_MIN_MS, ge=0)
    max: int = Field(default=DEFAULT_DELAY_MAX_MS, ge=0)

    class Config:
        frozen = True

    @model_validator(mode="after")
    def _check_order(self) -> "DelayRange":
        if self.min > self.max:
            raise ValueError(f"delay.min ({self.min}) must not exceed delay.max ({self.max})")
        return self


def default_cookies() -> List[CookieSpec]:
    """Fresh visitor cookies so every run looks like a new guest."""
    return [
        CookieSpec(name=GUEST_ID_COOKIE, value=secrets.token_hex(GUEST_ID_BYTES)),
        CookieSpec(name=LAST_VISIT_COOKIE, value=datetime.now().isoformat()),
    ]


def default_query_params() -> List[QueryParam]:
    return [QueryParam(name=name, value=value) for name, value in DEFAULT_QUERY_PARAMS]


class WarmerConfig(BaseModel):
    """
    Immutable configuration snapshot for one cache warming invocation.

    All fields are validated by Pydantic; a bad value fails at startup rather
    than in the middle of a run.
    """

    sites: List[str] = Field(
        default_factory=list,
        description="Site roots to warm, e.g. 'https://example.com'"
    )

    max_concurrency: int = Field(
        default=DEFAULT_MAX_CONCURRENCY,
        description="Concurrent pages inside one shared browser (pool mode)",
        ge=1,
    )

    max_urls_per_site: int = Field(
        default=0,
        description="Cap on URLs per site after prioritization; 0 means no cap",
        ge=0,
    )

    batch_size: int = Field(
        default=DEFAULT_BATCH_SIZE,
        description="URLs handled by one browser process before it is recycled",
        ge=1,
    )

    timeout_per_page: int = Field(
        default=DEFAULT_PAGE_TIMEOUT_MS,
        description="Navigation timeout in milliseconds",
        ge=1000,
    )

    request_timeout: int = Field(
        default=DEFAULT_REQUEST_TIMEOUT_MS,
        description="Sitemap fetch timeout in milliseconds",
        ge=1000,
    )

    user_agent: str = Field(default=settings.USER_AGENT)

    delay: DelayRange = Field(default_factory=DelayRange)

    priority_patterns: List[str] = Field(
        default_factory=list,
        description="URL substrings warmed first, in order; first match wins"
    )

    exclude_patterns: List[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS),
        description="URL substrings never warmed"
    )

    cookies: List[CookieSpec] = Field(default_factory=default_cookies)

    query_params: List[QueryParam] = Field(default_factory=default_query_params)

    success_probe: str = Field(
        default=DEFAULT_SUCCESS_PROBE,
        description="JS function evaluated in the page; true means the cache entry was generated"
    )

    blocked_resource_types: List[str] = Field(
        default_factory=lambda: list(DEFAULT_BLOCKED_RESOURCE_TYPES)
    )

    blocked_url_substrings: List[str] = Field(
        default_factory=lambda: list(DEFAULT_BLOCKED_URL_SUBSTRINGS)
    )

    execution_mode: Literal["sequential", "pool"] = Field(
        default="sequential",
        description="'sequential': one page at a time per batch; 'pool': max_concurrency workers share one browser"
    )

    headless: bool = True

    ignore_https_errors: bool = Field(
        default=False,
        description="Warm pages even when their TLS certificate is invalid"
    )

    launch_args: List[str] = Field(default_factory=lambda: list(DEFAULT_LAUNCH_ARGS))

    lock_file: str = Field(default=settings.LOCK_FILE)

    lock_stale_hours: float = Field(default=DEFAULT_LOCK_STALE_HOURS, gt=0)

    log_dir: str = Field(default=settings.LOG_DIR)

    log_level: str = Field(default=settings.LOG_LEVEL)

    class Config:
        """Pydantic model configuration."""
        frozen = True

    @property
    def lock_stale_seconds(self) -> float:
        return self.lock_stale_hours * 3600

    @property
    def query_param_pairs(self) -> List[Tuple[str, str]]:
        return [(param.name, param.value) for param in self.query_params]

    @classmethod
    def from_env(cls, prefix: str = "WARMER_") -> "WarmerConfig":
        """Load configuration from environment variables.

        Scalar fields map to PREFIX + FIELD_NAME upper-cased, e.g.
        WARMER_BATCH_SIZE=25. List fields are comma separated. The delay
        range uses WARMER_DELAY_MIN and WARMER_DELAY_MAX.

        Returns:
            WarmerConfig with values from environment
        """
        values: Dict[str, Any] = {}

        for name in ("sites", "priority_patterns", "exclude_patterns",
                     "blocked_resource_types", "blocked_url_substrings", "launch_args"):
            raw = os.getenv(f"{prefix}{name.upper()}")
            if raw is not None:
                values[name] = [item.strip() for item in raw.split(",") if item.strip()]

        for name in ("max_concurrency", "max_urls_per_site", "batch_size",
                     "timeout_per_page", "request_timeout", "lock_stale_hours",
                     "user_agent", "execution_mode", "lock_file", "log_dir", "log_level"):
            raw = os.getenv(f"{prefix}{name.upper()}")
            if raw is not None:
                values[name] = raw

        headless = os.getenv(f"{prefix}HEADLESS")
        if headless is not None:
            values["headless"] = headless.strip().lower() not in ("0", "false", "no")

        ignore_https = os.getenv(f"{prefix}IGNORE_HTTPS_ERRORS")
        if ignore_https is not None:
            values["ignore_https_errors"] = ignore_https.strip().lower() in ("1", "true", "yes")

        delay_min = os.getenv(f"{prefix}DELAY_MIN")
        delay_max = os.getenv(f"{prefix}DELAY_MAX")
        if delay_min is not None or delay_max is not None:
            values["delay"] = {
                "min": delay_min if delay_min is not None else DEFAULT_DELAY_MIN_MS,
                "max": delay_max if delay_max is not None else DEFAULT_DELAY_MAX_MS,
            }

        return cls(**values)

    @classmethod
    def from_file(cls, path: str) -> "WarmerConfig":
        """Load configuration from a JSON file.

        Values may sit at the top level or under a "warmer" key.

        Args:
            path: Path to JSON configuration file

        Returns:
            WarmerConfig with values from file (defaults if the file is missing)
        """
        file_path = Path(path)

        if not file_path.exists():
            return cls()

        with open(file_path, 'r') as f:
            config = json.load(f)

        return cls(**config.get('warmer', config))

    def to_dict(self) -> dict:
        """Convert configuration to a JSON-friendly dictionary."""
        return self.model_dump()
