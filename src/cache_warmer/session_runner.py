"""
Single page visit.

SessionRunner drives one page through the warming workflow: compose the
cache-busting URL, open an isolated page in the caller's browser session,
navigate (retrying once), classify the HTTP status and probe the page for the
composite cache marker. Every failure is turned into an Outcome; visit() never
raises.
"""
import logging
import time
from typing import List, Optional, Sequence, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from playwright.async_api import Error as PlaywrightError

from .exceptions import HttpStatusError, NavigationError, ProbeError
from .infrastructure.request_policy import RequestPolicy
from .infrastructure.throttle import RandomDelay
from .models import Outcome, OutcomeStatus, UrlRecord

logger = logging.getLogger(__name__)

# Navigation attempts per URL: the first try plus one retry
NAVIGATION_ATTEMPTS = 2

WAIT_UNTIL = "domcontentloaded"


def add_cache_params(url: str, params: Sequence[Tuple[str, str]]) -> str:
    """
    Set cache-busting query parameters on url.

    An existing parameter keeps its position and takes the new value; any
    duplicates of it are dropped. New parameters are appended. Applying the
    same parameters twice yields the same URL.

    Args:
        url: Absolute URL
        params: (name, value) pairs

    Returns:
        URL with the parameters set
    """
    parts = urlsplit(url)
    query: List[Tuple[str, str]] = parse_qsl(parts.query, keep_blank_values=True)

    for name, value in params:
        updated: List[Tuple[str, str]] = []
        replaced = False
        for key, existing in query:
            if key != name:
                updated.append((key, existing))
            elif not replaced:
                updated.append((name, value))
                replaced = True
        if not replaced:
            updated.append((name, value))
        query = updated

    return urlunsplit(parts._replace(query=urlencode(query)))


class SessionRunner:
    """
    Warms one URL at a time against a browser session owned by the caller.

    Usage:
        runner = SessionRunner(config)
        async with BrowserSession() as session:
            outcome = await runner.visit(record, session)
    """

    def __init__(
        self,
        config,
        policy: Optional[RequestPolicy] = None,
        throttle: Optional[RandomDelay] = None,
    ):
        """
        Initialize the runner.

        Args:
            config: WarmerConfig
            policy: Request blocking policy (defaults to the config's lists)
            throttle: Delay applied after every visit (defaults to config.delay)
        """
        self.config = config
        self.policy = policy or RequestPolicy.from_config(config)
        self.throttle = throttle or RandomDelay.from_config(config)

    def cookies_for(self, url: str) -> List[dict]:
        """Configured cookies scoped to url's host."""
        domain = urlsplit(url).hostname or ""
        return [cookie.for_domain(domain) for cookie in self.config.cookies]

    async def visit(self, record: UrlRecord, session) -> Outcome:
        """
        Warm a single URL.

        Args:
            record: URL to warm
            session: Open BrowserSession (or anything with a compatible open_page())

        Returns:
            Outcome of the visit
        """
        start_time = time.monotonic()
        try:
            warm_url = add_cache_params(record.url, self.config.query_param_pairs)
            outcome = await self._warm(record, warm_url, session)
        except HttpStatusError as e:
            logger.error(f"Status {e.status_code}: {record.url}")
            outcome = Outcome(
                url=record.url,
                status=OutcomeStatus.HTTP_ERROR,
                http_status=e.status_code,
            )
        except NavigationError as e:
            logger.error(f"Navigation failed: {record.url} - {e}")
            outcome = Outcome(url=record.url, status=OutcomeStatus.NETWORK_ERROR, error=str(e))
        except Exception as e:
            logger.error(f"Error: {record.url} - {type(e).__name__}: {e}")
            outcome = Outcome(url=record.url, status=OutcomeStatus.NETWORK_ERROR, error=str(e))
        finally:
            await self.throttle.wait()

        outcome.elapsed = time.monotonic() - start_time
        return outcome

    async def _warm(self, record: UrlRecord, warm_url: str, session) -> Outcome:
        async with session.open_page(
            user_agent=self.config.user_agent,
            cookies=self.cookies_for(warm_url),
            policy=self.policy,
            timeout_ms=self.config.timeout_per_page,
        ) as page:
            response = await self._navigate(page, warm_url)
            status = response.status

            if not 200 <= status < 400:
                raise HttpStatusError(record.url, status)

            if await self._probe_cache(page):
                logger.info(f"✓ CACHE GENERATED: {record.url}")
                return Outcome(
                    url=record.url,
                    status=OutcomeStatus.SUCCESS,
                    cache_generated=True,
                    http_status=status,
                )

            logger.info(f"✓ OK (no composite cache): {record.url}")
            return Outcome(
                url=record.url,
                status=OutcomeStatus.SUCCESS_NO_CACHE,
                http_status=status,
            )

    async def _navigate(self, page, url: str):
        """Navigate with one retry; raises NavigationError after the second failure."""
        last_error: Optional[Exception] = None

        for attempt in range(1, NAVIGATION_ATTEMPTS + 1):
            if attempt > 1:
                logger.info(f"Retrying: {url}")
            try:
                response = await page.goto(
                    url,
                    wait_until=WAIT_UNTIL,
                    timeout=self.config.timeout_per_page,
                )
                if response is None:
                    raise NavigationError("Navigation returned no response", url, attempts=attempt)
                return response
            except (PlaywrightError, NavigationError) as e:
                last_error = e
                logger.debug(f"Navigation attempt {attempt} failed for {url}: {e}")

        raise NavigationError(
            f"Navigation failed after {NAVIGATION_ATTEMPTS} attempts: {last_error}",
            url,
            attempts=NAVIGATION_ATTEMPTS,
        ) from last_error

    async def _probe_cache(self, page) -> bool:
        """Evaluate the success probe; evaluation errors count as no cache."""
        try:
            return await self._evaluate_probe(page)
        except ProbeError as e:
            logger.debug(f"Cache probe failed: {e}")
            return False

    async def _evaluate_probe(self, page) -> bool:
        try:
            result = await page.evaluate(self.config.success_probe)
        except Exception as e:
            raise ProbeError(str(e)) from e
        return result is True
