"""
Request blocking policy.

Decides which sub-requests a warmed page may issue. Images, media, fonts and
third-party analytics or social widgets never influence the server-side cache,
so aborting them cuts page load time without changing the warmed result.
"""

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Tuple

from ..constants import DEFAULT_BLOCKED_RESOURCE_TYPES, DEFAULT_BLOCKED_URL_SUBSTRINGS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestPolicy:
    """Pure abort/continue decision for intercepted requests."""
    blocked_resource_types: FrozenSet[str] = field(
        default_factory=lambda: frozenset(DEFAULT_BLOCKED_RESOURCE_TYPES)
    )
    blocked_url_substrings: Tuple[str, ...] = tuple(DEFAULT_BLOCKED_URL_SUBSTRINGS)

    @classmethod
    def from_config(cls, config) -> "RequestPolicy":
        return cls(
            blocked_resource_types=frozenset(config.blocked_resource_types),
            blocked_url_substrings=tuple(config.blocked_url_substrings),
        )

    def should_abort(self, resource_type: str, request_url: str) -> bool:
        """
        Whether a request must be aborted.

        Args:
            resource_type: Playwright resource type ('document', 'image', 'script', ...)
            request_url: Full URL of the request

        Returns:
            True to abort, False to let it through unmodified
        """
        if resource_type in self.blocked_resource_types:
            return True
        return any(substring in request_url for substring in self.blocked_url_substrings)

    async def handle_route(self, route) -> None:
        """Playwright route handler applying this policy.

        The main-frame navigation is the page being warmed and always goes
        through, even when its own URL contains a blocked substring.
        """
        request = route.request
        if request.is_navigation_request() and request.frame.parent_frame is None:
            await route.continue_()
            return

        if self.should_abort(request.resource_type, request.url):
            logger.debug(f"Blocked {request.resource_type}: {request.url}")
            await route.abort()
        else:
            await route.continue_()
