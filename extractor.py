import logging
from dataclasses import dataclass
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

import config
from errors import NotFoundError, ParseError


@dataclass(frozen=True)
class VideoRecord:
    url: str
    thumbnail_url: str
    caption: str
    user_profile_url: str

    def to_dict(self):
        return {
            "url": self.url,
            "thumbnail": self.thumbnail_url,
            "caption": self.caption,
            "user": self.user_profile_url,
        }


def parse_markup(markup) -> BeautifulSoup:
    if not isinstance(markup, (str, bytes)) or not markup.strip():
        raise ParseError("empty or non-text markup")
    try:
        return BeautifulSoup(markup, "lxml")
    except Exception as e:
        raise ParseError(f"failed to parse markup: {e}") from e


def absolutize(href: str, base_origin: str) -> str:
    href = href.strip()
    if urlparse(href).scheme in ("http", "https"):
        return href
    return urljoin(base_origin.rstrip("/") + "/", href)


def is_http_url(url: str) -> bool:
    parsed = urlparse(url.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def attr(node: Tag | None, name: str) -> str:
    if not isinstance(node, Tag):
        return ""
    value = node.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


@dataclass(frozen=True)
class SearchResultStrategy:
    """Maps a rendered search page to video records.

    Each result item carries the video link and thumbnail; the caption and
    the author link live in the element right after it, not inside it.
    """

    item_selector: str = config.RESULT_ITEM_SELECTOR
    caption_selector: str = config.CAPTION_SELECTOR
    user_link_selector: str = config.USER_LINK_SELECTOR

    def __call__(self, markup, base_origin: str) -> list[VideoRecord]:
        soup = parse_markup(markup)
        records = []

        for item in soup.select(self.item_selector):
            record = self.extract_item(item, base_origin)
            if record:
                records.append(record)

        logging.debug(f"EXTRACTED - {len(records)} video(s)")
        return records

    def extract_item(self, item: Tag, base_origin: str) -> VideoRecord | None:
        href = attr(item.select_one("a[href]"), "href")
        if not href:
            return None

        thumbnail = attr(item.select_one("img[src]"), "src")
        if not thumbnail or not is_http_url(thumbnail):
            logging.debug(f"SKIP - Invalid thumbnail URL: {thumbnail[:80]}")
            return None

        desc = item.find_next_sibling()
        if not isinstance(desc, Tag):
            return None

        user = attr(desc.select_one(self.user_link_selector), "href")
        if not user:
            return None

        caption_node = desc.select_one(self.caption_selector)
        caption = caption_node.get_text() if caption_node else ""

        url = absolutize(href, base_origin)
        user_url = absolutize(user, base_origin)
        if not is_http_url(url) or not is_http_url(user_url):
            logging.debug(f"SKIP - Non-http link: {url[:80]}")
            return None

        return VideoRecord(
            url=url,
            thumbnail_url=thumbnail.strip(),
            caption=caption,
            user_profile_url=user_url,
        )


extract_videos = SearchResultStrategy()


def select_media_source(markup, index: int = config.MEDIA_SOURCE_INDEX) -> str:
    soup = parse_markup(markup)
    video = soup.find("video")
    sources = video.find_all("source") if isinstance(video, Tag) else []

    if len(sources) <= index:
        raise NotFoundError(
            f"video source not found: {len(sources)} <source> element(s), need {index + 1}"
        )

    src = attr(sources[index], "src")
    if not src:
        raise NotFoundError("video source not found: selected <source> has no src")
    return src
