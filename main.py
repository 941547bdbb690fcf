# === 📦 IMPORTS ===
import logging, time
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

import config
from errors import ScraperError
from playwright_scraper import SessionFactory
from relay import close_client_session, iter_body, open_media
from resolver import resolve_video_url, validate_page_url
from search import SearchQuery, search_videos

# === ℹ️ LOGGING ===
start_time = time.monotonic()


class ElapsedFormatter(logging.Formatter):
    def format(self, record):
        elapsed = time.monotonic() - start_time
        record.elapsed_time = f"{elapsed:.2f}s"
        return super().format(record)


formatter_str = "%(elapsed_time)s [%(levelname)s] %(message)s"

logging.basicConfig(level=config.LOG_LEVEL, format=formatter_str)

for handler in logging.getLogger().handlers:
    handler.setFormatter(ElapsedFormatter(formatter_str))

for lib in ["asyncio", "urllib3", "aiohttp"]:
    logging.getLogger(lib).setLevel(logging.WARNING)


# === 🚀 FASTAPI ROUTES ===
@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.session_factory = SessionFactory()
    logging.info(
        f"=== READY - port {config.PORT}, {config.MAX_BROWSER_SESSIONS} browser slot(s) ==="
    )
    yield
    await close_client_session()


app = FastAPI(title="Video Scraper API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)


def get_session_factory(request: Request) -> SessionFactory:
    return request.app.state.session_factory


def error_response(e: ScraperError):
    return JSONResponse({"error": str(e)}, status_code=e.http_status)


@app.get("/")
def index():
    return {
        "message": "Video Scraper API",
        "version": app.version,
        "endpoints": {
            "search": "/search/{query}?page={n}",
            "video_url": "/get-video-url?url={videoPageUrl}",
            "proxy": "/proxy-video?url={mediaUrl}",
        },
    }


@app.get("/search/{query}")
async def search(
    query: str,
    page: str = "1",
    factory: SessionFactory = Depends(get_session_factory),
):
    try:
        search_query = SearchQuery.from_params(query, page)
        logging.info(f"=== SEARCH - {search_query.keyword} (page {search_query.page_number}) ===")
        videos = await factory.run(lambda session: search_videos(search_query, session))
    except ScraperError as e:
        logging.error(f"SEARCH ERROR - {query}: {e}")
        return error_response(e)
    except Exception as e:
        logging.error(f"SEARCH ERROR - {query}: {e.__class__.__name__} - {e}")
        return JSONResponse({"error": "Failed to fetch videos"}, status_code=500)

    logging.info(f"RESULTS - {len(videos)} video(s) for {query}")
    return JSONResponse({"videos": [v.to_dict() for v in videos]})


@app.get("/get-video-url")
async def get_video_url(
    url: str | None = None,
    factory: SessionFactory = Depends(get_session_factory),
):
    if not url:
        return JSONResponse({"error": "url parameter is required"}, status_code=400)

    try:
        page_url = validate_page_url(url)
        video_url = await factory.run(lambda session: resolve_video_url(page_url, session))
    except ScraperError as e:
        logging.error(f"VIDEO URL ERROR - {url}: {e}")
        return error_response(e)
    except Exception as e:
        logging.error(f"VIDEO URL ERROR - {url}: {e.__class__.__name__} - {e}")
        return JSONResponse({"error": "Failed to fetch video URL"}, status_code=500)

    return JSONResponse({"videoUrl": video_url})


@app.get("/proxy-video")
async def proxy_video(url: str | None = None):
    if not url:
        return JSONResponse({"error": "url parameter is required"}, status_code=400)

    try:
        resp = await open_media(url)
    except ScraperError as e:
        logging.error(f"PROXY ERROR - {url}: {e}")
        return error_response(e)
    except Exception as e:
        logging.error(f"PROXY ERROR - {url}: {e.__class__.__name__} - {e}")
        return JSONResponse({"error": "Failed to proxy video content"}, status_code=500)

    return StreamingResponse(
        iter_body(resp, config.RELAY_CHUNK_SIZE),
        media_type="video/mp4",
        background=BackgroundTask(resp.release),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT)
