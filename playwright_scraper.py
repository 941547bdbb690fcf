import asyncio
import enum
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

from playwright.async_api import async_playwright, Page, Browser, BrowserContext
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright_stealth import Stealth

import config
from errors import NotFoundError, SessionTimeoutError

T = TypeVar("T")


class SessionState(enum.Enum):
    IDLE = "idle"
    NAVIGATING = "navigating"
    WAITING_FOR_RENDER = "waiting_for_render"
    EXTRACTED = "extracted"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class BrowserOptions:
    headless: bool = config.HEADLESS
    args: tuple[str, ...] = tuple(config.BROWSER_ARGS)
    user_agent: str = config.USER_AGENT
    viewport: dict = field(default_factory=lambda: dict(config.VIEWPORT))
    locale: str = config.LOCALE
    stealth: bool = config.STEALTH
    timeout: float = config.SESSION_TIMEOUT


class BrowserSession:
    """A single Chromium process with one page, owned by one operation.

    The session walks IDLE -> NAVIGATING -> WAITING_FOR_RENDER -> EXTRACTED
    and ends in DONE or FAILED once released. ``history`` keeps every state
    it passed through.
    """

    def __init__(self, driver, browser: Browser, context: BrowserContext, page: Page):
        self.driver = driver
        self.browser = browser
        self.context = context
        self.page = page
        self.state = SessionState.IDLE
        self.history = [SessionState.IDLE]
        self.failed = False
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def _enter(self, state: SessionState):
        if self.state is not state:
            self.state = state
            self.history.append(state)

    async def navigate(self, url: str):
        self._enter(SessionState.NAVIGATING)
        logging.debug(f"NAVIGATE - {url}")
        await self.page.goto(url)

    async def wait_visible(
        self,
        selector: str,
        attempts: int = config.WAIT_ATTEMPTS,
        poll_timeout: float = config.WAIT_POLL_TIMEOUT,
        backoff: float = config.WAIT_BACKOFF,
    ):
        self._enter(SessionState.WAITING_FOR_RENDER)
        for attempt in range(attempts):
            try:
                await self.page.wait_for_selector(
                    selector, state="visible", timeout=poll_timeout * 1000
                )
                return
            except PlaywrightTimeoutError:
                logging.debug(
                    f"WAIT - {selector} not visible (attempt {attempt + 1}/{attempts})"
                )
                if attempt + 1 < attempts:
                    await asyncio.sleep(backoff * (attempt + 1))
        raise NotFoundError(f"{selector} never became visible")

    async def scroll_into_view(self, selector: str):
        await self.page.locator(selector).first.scroll_into_view_if_needed()

    async def settle(self, seconds: float = config.SETTLE_INTERVAL):
        self._enter(SessionState.WAITING_FOR_RENDER)
        await self.page.wait_for_timeout(seconds * 1000)

    async def capture(self) -> str:
        html = await self.page.content()
        self._enter(SessionState.EXTRACTED)
        return html

    async def release(self):
        if self._released:
            return
        self._released = True

        for name, close in [
            ("context", self.context.close),
            ("browser", self.browser.close),
            ("driver", self.driver.stop),
        ]:
            try:
                await close()
            except Exception as e:
                logging.warning(f"SESSION CLOSE ERROR - {name}: {e}")

        self._enter(SessionState.FAILED if self.failed else SessionState.DONE)


class SessionFactory:
    """Hands out fresh browser sessions and guarantees their release.

    Passed explicitly into every operation; nothing browser-related lives at
    module level.
    """

    def __init__(
        self,
        options: BrowserOptions | None = None,
        launcher=async_playwright,
        max_sessions: int = config.MAX_BROWSER_SESSIONS,
    ):
        self.options = options or BrowserOptions()
        self._launcher = launcher
        self._slots = asyncio.Semaphore(max(1, max_sessions))

    async def acquire(self) -> BrowserSession:
        opts = self.options
        driver = await self._launcher().start()
        browser = context = None
        try:
            browser = await driver.chromium.launch(
                headless=opts.headless, args=list(opts.args)
            )
            context = await browser.new_context(
                user_agent=opts.user_agent,
                viewport=opts.viewport,
                locale=opts.locale,
                java_script_enabled=True,
            )
            if opts.stealth:
                try:
                    await Stealth().apply_stealth_async(context)
                except Exception as e:
                    logging.info(f"STEALTH ERROR - {e}")
            page = await context.new_page()
            page.set_default_timeout(opts.timeout * 1000)
        except BaseException:
            for close in (
                context.close if context else None,
                browser.close if browser else None,
                driver.stop,
            ):
                if close is None:
                    continue
                try:
                    await close()
                except Exception as e:
                    logging.warning(f"LAUNCH CLEANUP ERROR - {e}")
            raise

        logging.debug("SESSION - browser launched")
        return BrowserSession(driver, browser, context, page)

    async def release(self, session: BrowserSession):
        await session.release()

    @asynccontextmanager
    async def _scoped(self):
        session = await self.acquire()
        try:
            yield session
        except BaseException:
            session.failed = True
            raise
        finally:
            await self.release(session)

    @asynccontextmanager
    async def session(self):
        async with self._slots, self._scoped() as session:
            yield session

    async def run(
        self,
        operation: Callable[[BrowserSession], Awaitable[T]],
        timeout: float | None = None,
    ) -> T:
        timeout = self.options.timeout if timeout is None else timeout

        async def scoped():
            async with self._scoped() as session:
                return await operation(session)

        # queueing for a slot is not part of the deadline
        async with self._slots:
            try:
                return await asyncio.wait_for(scoped(), timeout=timeout)
            except asyncio.TimeoutError as e:
                if isinstance(e, SessionTimeoutError):
                    raise
                logging.warning(f"SESSION TIMEOUT - exceeded {timeout:.0f}s")
                raise SessionTimeoutError(
                    f"browser session exceeded {timeout:.0f}s deadline"
                ) from e
