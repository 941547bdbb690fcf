"""
Shared fixtures: search-page markup builders and fake browser objects.

Nothing here launches Chromium or touches the network.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

BASE = "https://www.tiktok.com"


def result_item(
    n: int,
    href: str | None = None,
    thumbnail: str | None = None,
    caption: str | None = None,
    user: str | None = None,
) -> str:
    """One search result: the item div followed by its caption/user sibling."""
    href = f"/@user{n}/video/{1000 + n}" if href is None else href
    thumbnail = f"https://p16-sign.tiktokcdn.com/thumb{n}.jpeg" if thumbnail is None else thumbnail
    caption = f"caption {n}" if caption is None else caption
    user = f"/@user{n}" if user is None else user

    link = f'<a href="{href}">' if href else "<a>"
    img = f'<img src="{thumbnail}">' if thumbnail else "<img>"
    user_link = f'<a data-e2e="search-card-user-link" href="{user}">user{n}</a>' if user else ""
    return (
        f'<div data-e2e="search_top-item">{link}{img}</a></div>'
        f'<div class="desc">'
        f'<div data-e2e="search-card-video-caption">{caption}</div>'
        f"{user_link}</div>"
    )


def search_page(*items: str) -> str:
    return (
        "<html><body>"
        '<div data-e2e="search_top-item-list">'
        + "".join(f"<div class=\"cell\">{item}</div>" for item in items)
        + "</div></body></html>"
    )


def page_with_items(start: int, stop: int) -> str:
    return search_page(*(result_item(n) for n in range(start, stop)))


class FakeSession:
    """Stands in for BrowserSession; each capture() returns the next page.

    Entries that are exceptions are raised from capture(). The last entry
    repeats once the queue runs out.
    """

    def __init__(self, pages):
        self.pages = list(pages)
        self.navigations: list[str] = []
        self.waits: list[str] = []
        self.scrolls: list[str] = []
        self.settles: list[float] = []

    async def navigate(self, url):
        self.navigations.append(url)

    async def wait_visible(self, selector, **kwargs):
        self.waits.append(selector)

    async def scroll_into_view(self, selector):
        self.scrolls.append(selector)

    async def settle(self, seconds=0):
        self.settles.append(seconds)

    async def capture(self):
        page = self.pages.pop(0) if len(self.pages) > 1 else self.pages[0]
        if isinstance(page, BaseException):
            raise page
        return page


class FakeFactory:
    def __init__(self, session):
        self.session = session
        self.runs = 0

    async def run(self, operation, timeout=None):
        self.runs += 1
        return await operation(self.session)


@pytest.fixture
def playwright_graph():
    """Mocked async_playwright() -> driver -> browser -> context -> page."""
    page = MagicMock()
    page.goto = AsyncMock()
    page.wait_for_selector = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.content = AsyncMock(return_value="<html><body></body></html>")
    page.locator.return_value.first.scroll_into_view_if_needed = AsyncMock()

    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    driver = MagicMock()
    driver.chromium.launch = AsyncMock(return_value=browser)
    driver.stop = AsyncMock()

    manager = MagicMock()
    manager.start = AsyncMock(return_value=driver)
    launcher = MagicMock(return_value=manager)

    return {
        "launcher": launcher,
        "driver": driver,
        "browser": browser,
        "context": context,
        "page": page,
    }
