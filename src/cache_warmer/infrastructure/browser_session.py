"""
Browser session management.

A BrowserSession owns one Playwright driver and one Chromium process. Each
warmed URL gets its own isolated browser context (cookies, storage and user
agent) that is closed as soon as the visit ends, while the Chromium process is
shared by every page opened during the session's lifetime.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Literal, Optional

from .request_policy import RequestPolicy

logger = logging.getLogger(__name__)


class BrowserSession:
    """
    Playwright browser process shared by the pages of one batch.

    This class is designed to be used as an async context manager, managing
    its own browser lifecycle:

        async with BrowserSession(headless=True) as session:
            async with session.open_page(user_agent, cookies, policy) as page:
                response = await page.goto(url)
    """

    def __init__(
        self,
        headless: bool = True,
        launch_args: Optional[List[str]] = None,
        browser_type: Literal["chromium", "firefox", "webkit"] = "chromium",
        ignore_https_errors: bool = False,
    ):
        """
        Initialize the browser session.

        Args:
            headless: Run browser in headless mode
            launch_args: Additional browser launch arguments
            browser_type: Browser engine to launch
            ignore_https_errors: Load pages whose TLS certificate is invalid
        """
        self.headless = headless
        self.launch_args = list(launch_args or [])
        self.browser_type = browser_type
        self.ignore_https_errors = ignore_https_errors

        self._playwright = None
        self._browser = None
        self._pages_opened = 0

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> None:
        """Launch the Playwright driver and the browser process."""
        if self._browser:
            return

        try:
            from playwright.async_api import async_playwright
        except ImportError:
            raise ImportError(
                "playwright package not installed. "
                "Install with: pip install playwright && cache-warmer-install-browser"
            )

        logger.info(f"Launching {self.browser_type} browser (headless={self.headless})")

        self._playwright = await async_playwright().start()
        browser_launcher = getattr(self._playwright, self.browser_type)

        # Build launch options
        launch_options: Dict[str, Any] = {"headless": self.headless}
        if self.launch_args:
            launch_options["args"] = self.launch_args

        try:
            self._browser = await browser_launcher.launch(**launch_options)
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            raise

    async def close(self) -> None:
        """Close the browser process and stop the driver."""
        if self._browser:
            try:
                await self._browser.close()
            except Exception as e:
                logger.warning(f"Error closing browser: {e}")
            self._browser = None

        if self._playwright:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping playwright: {e}")
            self._playwright = None

        if self._pages_opened:
            logger.info(f"Browser closed after {self._pages_opened} pages")
        self._pages_opened = 0

    @asynccontextmanager
    async def open_page(
        self,
        user_agent: str,
        cookies: Optional[List[Dict[str, str]]] = None,
        policy: Optional[RequestPolicy] = None,
        timeout_ms: int = 30000,
    ):
        """
        Open a page in a fresh, isolated browser context.

        Usage:
            async with session.open_page(ua, cookies, policy) as page:
                await page.goto(url)

        Args:
            user_agent: User agent for every request of the page
            cookies: Cookies in Playwright add_cookies() shape
            policy: Request blocking policy; None lets every request through
            timeout_ms: Default navigation timeout

        Yields:
            Playwright Page
        """
        if not self._browser:
            raise RuntimeError("Browser session not started. Use it as an async context manager.")

        context = await self._browser.new_context(
            user_agent=user_agent,
            ignore_https_errors=self.ignore_https_errors,
        )
        try:
            if cookies:
                await context.add_cookies(cookies)

            page = await context.new_page()
            page.set_default_navigation_timeout(timeout_ms)

            if policy is not None:
                await page.route("**/*", policy.handle_route)

            self._pages_opened += 1
            yield page
        finally:
            # Always close context to release the page's memory
            try:
                await context.close()
            except Exception as e:
                logger.warning(f"Error closing browser context: {e}")

    @property
    def is_started(self) -> bool:
        """Whether the browser process is running."""
        return self._browser is not None

    @property
    def pages_opened(self) -> int:
        """Pages opened since the session started."""
        return self._pages_opened
