import logging
from dataclasses import dataclass
from typing import Callable
from urllib.parse import quote_plus

from playwright.async_api import Error as PlaywrightError

import config
from errors import InsufficientResultsError, InvalidInputError, NotFoundError, ParseError
from extractor import VideoRecord, extract_videos
from playwright_scraper import BrowserSession

ATTEMPT_ERRORS = (PlaywrightError, NotFoundError, ParseError)


@dataclass(frozen=True)
class SearchQuery:
    keyword: str
    page_number: int = 1

    @classmethod
    def from_params(cls, keyword: str, raw_page=None):
        if not keyword or not keyword.strip():
            raise InvalidInputError("query must not be empty")
        try:
            page = int(raw_page)
        except (TypeError, ValueError):
            page = 1
        return cls(keyword.strip(), max(page, 1))

    @property
    def url(self) -> str:
        return config.SEARCH_URL.format(query=quote_plus(self.keyword))


@dataclass(frozen=True)
class PageWindow:
    start: int
    end: int

    @classmethod
    def for_page(cls, page_number: int, items_per_page: int = config.ITEMS_PER_PAGE):
        start = (page_number - 1) * items_per_page
        return cls(start, start + items_per_page)

    def clamp(self, count: int) -> "PageWindow":
        return PageWindow(self.start, min(self.end, count))


async def load_results(
    session: BrowserSession, url: str, settle_interval: float = config.SETTLE_INTERVAL
) -> str:
    await session.navigate(url)
    await session.wait_visible(config.RESULT_LIST_SELECTOR)
    await session.scroll_into_view(config.RESULT_LIST_SELECTOR)
    await session.settle(settle_interval)
    return await session.capture()


async def search_videos(
    query: SearchQuery,
    session: BrowserSession,
    *,
    items_per_page: int = config.ITEMS_PER_PAGE,
    strategy: Callable[[str, str], list[VideoRecord]] = extract_videos,
    dedupe: bool = config.DEDUPE_RESULTS,
    max_failures: int = config.MAX_ATTEMPT_FAILURES,
    settle_interval: float = config.SETTLE_INTERVAL,
    base_origin: str = config.BASE_ORIGIN,
) -> list[VideoRecord]:
    needed = query.page_number * items_per_page
    videos: list[VideoRecord] = []
    seen: set[str] = set()
    attempts, failures = 0, 0
    last_error: Exception | None = None

    while attempts < query.page_number and len(videos) < needed:
        try:
            html = await load_results(session, query.url, settle_interval)
            found = strategy(html, base_origin)
        except ATTEMPT_ERRORS as e:
            failures += 1
            last_error = e
            logging.warning(
                f"ATTEMPT ERROR - {query.keyword} #{attempts + 1} "
                f"({failures}/{max_failures}): {e}"
            )
            if failures >= max_failures:
                break
            continue

        attempts += 1
        added = 0
        for video in found:
            if dedupe:
                if video.url in seen:
                    continue
                seen.add(video.url)
            videos.append(video)
            added += 1

        logging.info(
            f"ATTEMPT - {query.keyword} #{attempts}: +{added} video(s), total {len(videos)}/{needed}"
        )

        if dedupe and not added:
            logging.info(f"ATTEMPT - {query.keyword}: no new videos, stopping")
            break

    if not videos and last_error is not None:
        raise last_error

    window = PageWindow.for_page(query.page_number, items_per_page)
    if window.start >= len(videos):
        raise InsufficientResultsError(
            f"no more data available: page {query.page_number} starts at "
            f"{window.start}, only {len(videos)} video(s) found"
        )

    window = window.clamp(len(videos))
    return videos[window.start : window.end]
