import os
import psutil


# === ⚙️ CONFIGURATION ===
def env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return default


def env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


def dynamic_session_limit():
    cores = os.cpu_count() or 4
    ram_gb = psutil.virtual_memory().total // 1_073_741_824
    base = max(1, min(cores // 2, 8))
    if ram_gb >= 16:
        base += 2
    elif ram_gb <= 4:
        base = max(1, base - 1)
    return base


HOST = os.getenv("HOST", "0.0.0.0")
PORT = env_int("PORT", 8080)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

BASE_ORIGIN = "https://www.tiktok.com"
SEARCH_URL = BASE_ORIGIN + "/search?q={query}"

HEADLESS = env_bool("HEADLESS", True)
STEALTH = env_bool("STEALTH", True)
SESSION_TIMEOUT = env_float("SESSION_TIMEOUT", 60.0)
SETTLE_INTERVAL = env_float("SETTLE_INTERVAL", 2.0)
MAX_BROWSER_SESSIONS = env_int("MAX_BROWSER_SESSIONS", 0) or dynamic_session_limit()

# Chromium flags for running inside containers
BROWSER_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-gpu",
    "--disable-dev-shm-usage",
]
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
ACCEPT_LANGUAGE = "en-US,en;q=0.9"
VIEWPORT = {"width": 1280, "height": 720}
LOCALE = "en-US"

ITEMS_PER_PAGE = 6
DEDUPE_RESULTS = env_bool("DEDUPE_RESULTS", True)
MAX_ATTEMPT_FAILURES = 2
WAIT_ATTEMPTS = 3
WAIT_POLL_TIMEOUT = 10.0
WAIT_BACKOFF = 1.0

RESULT_LIST_SELECTOR = 'div[data-e2e="search_top-item-list"]'
RESULT_ITEM_SELECTOR = 'div[data-e2e="search_top-item"]'
CAPTION_SELECTOR = 'div[data-e2e="search-card-video-caption"]'
USER_LINK_SELECTOR = 'a[data-e2e="search-card-user-link"]'

# third <source> is the watermark-free rendition
MEDIA_SOURCE_INDEX = 2

RELAY_TIMEOUT = env_float("RELAY_TIMEOUT", 30.0)
RELAY_RETRIES = env_int("RELAY_RETRIES", 0)
RELAY_CHUNK_SIZE = 64 * 1024
