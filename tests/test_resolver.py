"""
Tests for resolving a video page to its direct media URL.
"""

import pytest

from errors import InvalidInputError, NotFoundError
from resolver import resolve_video_url, validate_page_url
from tests.conftest import FakeSession


def video_page(count: int) -> str:
    sources = "".join(
        f'<source src="https://v16-webapp.tiktok.com/{n}.mp4" type="video/mp4">' for n in range(count)
    )
    return f"<html><body><video>{sources}</video></body></html>"


class TestResolveVideoUrl:
    @pytest.mark.asyncio
    async def test_returns_third_source(self) -> None:
        """
        Given: A rendered video page with three sources
        When: resolve_video_url() runs
        Then: The third source URL is returned after one navigation and settle
        """
        session = FakeSession([video_page(3)])
        url = "https://www.tiktok.com/@user1/video/1001"

        video_url = await resolve_video_url(url, session, settle_interval=0)

        assert video_url == "https://v16-webapp.tiktok.com/2.mp4"
        assert session.navigations == [url]
        assert session.settles == [0]
        assert session.waits == []

    @pytest.mark.asyncio
    async def test_two_sources_not_found(self) -> None:
        session = FakeSession([video_page(2)])

        with pytest.raises(NotFoundError):
            await resolve_video_url("https://www.tiktok.com/@u/video/1", session, settle_interval=0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["", "not a url", "/@u/video/1", "ftp://x.example/v", "https://"])
    async def test_invalid_url_never_navigates(self, url: str) -> None:
        session = FakeSession([video_page(3)])

        with pytest.raises(InvalidInputError):
            await resolve_video_url(url, session, settle_interval=0)

        assert session.navigations == []


class TestValidatePageUrl:
    def test_strips_whitespace(self) -> None:
        assert validate_page_url("  https://www.tiktok.com/@u/video/1 ") == "https://www.tiktok.com/@u/video/1"
