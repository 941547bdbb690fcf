import asyncio
import logging
from typing import AsyncIterator
from urllib.parse import urlparse

from aiohttp import ClientError, ClientResponse, ClientSession, ClientTimeout

import config
from errors import InvalidInputError, UpstreamError

MEDIA_HEADERS = {
    "User-Agent": config.USER_AGENT,
    "Referer": config.BASE_ORIGIN + "/",
    "Accept-Language": config.ACCEPT_LANGUAGE,
}

timeout_obj = ClientTimeout(
    total=None, sock_connect=config.RELAY_TIMEOUT, sock_read=config.RELAY_TIMEOUT
)
client_session: ClientSession | None = None
_session_lock = asyncio.Lock()


async def get_client_session():
    global client_session
    async with _session_lock:
        if client_session is None or client_session.closed:
            client_session = ClientSession(timeout=timeout_obj)
    return client_session


async def close_client_session():
    global client_session
    if client_session and not client_session.closed:
        await client_session.close()
    client_session = None


async def open_media(
    media_url: str,
    session: ClientSession | None = None,
    retries: int = config.RELAY_RETRIES,
) -> ClientResponse:
    parsed = urlparse((media_url or "").strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidInputError("invalid media URL")

    session = session or await get_client_session()
    retries = max(retries, 0)

    for attempt in range(retries + 1):
        try:
            resp = await session.get(media_url.strip(), headers=MEDIA_HEADERS)
            break
        except ClientError as e:
            logging.warning(f"RELAY ERROR - attempt {attempt + 1}/{retries + 1}: {e}")
            if attempt >= retries:
                raise UpstreamError(502, f"upstream request failed: {e}") from e

    if not 200 <= resp.status < 300:
        resp.release()
        logging.info(f"RELAY - upstream answered {resp.status} for {parsed.netloc}")
        raise UpstreamError(resp.status)
    return resp


async def iter_body(resp: ClientResponse, chunk_size: int) -> AsyncIterator[bytes]:
    try:
        async for chunk in resp.content.iter_chunked(chunk_size):
            yield chunk
    finally:
        resp.release()


async def stream_media(
    media_url: str,
    session: ClientSession | None = None,
    chunk_size: int = config.RELAY_CHUNK_SIZE,
    retries: int = config.RELAY_RETRIES,
) -> AsyncIterator[bytes]:
    resp = await open_media(media_url, session, retries)
    return iter_body(resp, chunk_size)


async def fetch_media(
    media_url: str,
    session: ClientSession | None = None,
    retries: int = config.RELAY_RETRIES,
) -> bytes:
    chunks = await stream_media(media_url, session, retries=retries)
    return b"".join([chunk async for chunk in chunks])
