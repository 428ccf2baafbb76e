"""Shared fixtures: in-memory stand-ins for browser sessions and pages."""

import asyncio
from contextlib import asynccontextmanager

import pytest

from cache_warmer.config import CookieSpec, WarmerConfig


class FakeResponse:
    """Minimal Playwright Response."""

    def __init__(self, status: int):
        self.status = status


class FakePage:
    """Minimal Playwright Page.

    `results` is consumed one item per goto() call; the last item repeats.
    An int becomes a response with that status, None means no response and an
    exception instance is raised.
    """

    def __init__(self, results=(200,), probe=False, delay: float = 0.0):
        self.results = list(results)
        self.probe = probe
        self.delay = delay
        self.goto_calls = []
        self.evaluate_calls = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append({"url": url, "wait_until": wait_until, "timeout": timeout})
        if self.delay:
            await asyncio.sleep(self.delay)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, BaseException):
            raise result
        return None if result is None else FakeResponse(result)

    async def evaluate(self, script):
        self.evaluate_calls.append(script)
        if isinstance(self.probe, BaseException):
            raise self.probe
        return self.probe


class FakeSession:
    """Stand-in for BrowserSession that hands out FakePages."""

    def __init__(self, page_factory=None):
        self.page_factory = page_factory or FakePage
        self.opened = []
        self.closed_pages = 0
        self.entered = False
        self.exited = False
        self.active = 0
        self.max_active = 0

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.exited = True

    @asynccontextmanager
    async def open_page(self, user_agent, cookies=None, policy=None, timeout_ms=30000):
        page = self.page_factory()
        self.opened.append({
            "user_agent": user_agent,
            "cookies": cookies,
            "policy": policy,
            "timeout_ms": timeout_ms,
            "page": page,
        })
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            yield page
        finally:
            self.active -= 1
            self.closed_pages += 1


class SessionFactory:
    """Records every session handed to the scheduler."""

    def __init__(self, page_factory=None, fail_on=()):
        self.page_factory = page_factory
        self.fail_on = set(fail_on)
        self.sessions = []

    def __call__(self):
        index = len(self.sessions) + 1
        if index in self.fail_on:
            session = FailingSession()
        else:
            session = FakeSession(self.page_factory)
        self.sessions.append(session)
        return session


class FailingSession:
    """A browser that cannot be launched."""

    async def __aenter__(self):
        raise RuntimeError("Executable doesn't exist")

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


@pytest.fixture
def fake_page_cls():
    return FakePage


@pytest.fixture
def fake_session_cls():
    return FakeSession


@pytest.fixture
def session_factory_cls():
    return SessionFactory


@pytest.fixture
def fast_config(tmp_path):
    """Configuration with no throttling and deterministic cookies."""
    return WarmerConfig(
        delay={"min": 0, "max": 0},
        cookies=[CookieSpec(name="BITRIX_SM_GUEST_ID", value="guest")],
        lock_file=str(tmp_path / "cache_warmer.lock"),
        log_dir=str(tmp_path / "logs"),
    )
