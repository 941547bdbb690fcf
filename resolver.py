import logging
from urllib.parse import urlparse

import config
from errors import InvalidInputError
from extractor import select_media_source
from playwright_scraper import BrowserSession


def validate_page_url(url: str) -> str:
    url = (url or "").strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidInputError("invalid video URL")
    return url


async def resolve_video_url(
    video_page_url: str,
    session: BrowserSession,
    *,
    settle_interval: float = config.SETTLE_INTERVAL,
    source_index: int = config.MEDIA_SOURCE_INDEX,
) -> str:
    url = validate_page_url(video_page_url)

    await session.navigate(url)
    await session.settle(settle_interval)
    html = await session.capture()

    video_url = select_media_source(html, source_index)
    logging.info(f"RESOLVED - {url} -> {video_url[:120]}")
    return video_url
