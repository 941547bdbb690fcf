import subprocess
import sys
import time
import webbrowser
import requests

import config

# === ⚙️ SETTINGS ===
DEFAULT_RETRIES = 20
DEFAULT_DELAY = 2


# === 🧾 LOGGING ===
def log(status: str, message: str, end="\n"):
    icons = {
        "info": "ℹ️ ",
        "success": "✅",
        "error": "❌",
        "action": "🔧",
        "waiting": "⏳",
        "build": "🚀",
    }
    print(f"\r{icons.get(status, '❔')} {message}", end=end, flush=True)


# === 🧭 CHROMIUM ===
def ensure_chromium():
    log("action", "Installing Playwright Chromium...", end="")
    try:
        subprocess.run(
            [sys.executable, "-m", "playwright", "install", "chromium"],
            check=True,
            stdout=subprocess.DEVNULL,
        )
        log("success", "Chromium available.")
    except (subprocess.CalledProcessError, FileNotFoundError):
        log("error", "Playwright could not install Chromium.")
        sys.exit(1)


# === 🚀 SERVER ===
def start_server(host: str = config.HOST, port: int = config.PORT):
    log("build", f"API → launching on {host}:{port}")
    try:
        return subprocess.Popen(
            [
                sys.executable,
                "-m",
                "uvicorn",
                "main:app",
                "--host",
                host,
                "--port",
                str(port),
            ]
        )
    except OSError as e:
        log("error", f"Exception during API launch: {e}")
        sys.exit(1)


# === ⏳ WAITERS ===
def wait_for_service(
    host: str, port: int, retries=DEFAULT_RETRIES, delay=DEFAULT_DELAY
):
    url = f"http://{host}:{port}"
    msg = f"Waiting for {url}"
    log("waiting", msg, end="")

    dots = ""
    for _ in range(retries):
        try:
            if requests.get(url, timeout=2).status_code < 500:
                print("\r" + " " * (len(msg) + len(dots) + 4), end="\r")
                log("success", f"{url} is ready.")
                return True
        except requests.RequestException:
            pass

        dots += "."
        print(f"\r⏳ {msg}{dots}", end="", flush=True)
        time.sleep(delay)

    log("error", f"Timeout waiting for {url}")
    return False


# === 🌐 BROWSER ===
def open_browser(url):
    log("action", f"Opening browser at {url}")
    webbrowser.open(url)


# === 🚀 MAIN ===
def main():
    log("info", "=== 🚀 Video Scraper Bootstrap ===")
    ensure_chromium()
    server = start_server()
    if not wait_for_service("localhost", config.PORT):
        server.terminate()
        sys.exit(1)
    if "--open" in sys.argv:
        open_browser(f"http://localhost:{config.PORT}/docs")
    log("success", "🎉 All systems operational!")
    try:
        server.wait()
    except KeyboardInterrupt:
        server.terminate()


if __name__ == "__main__":
    main()
