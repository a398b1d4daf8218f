"""FastAPI web application for Vigil."""

from __future__ import annotations

import asyncio
import hmac
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any
from urllib.parse import quote_plus

import uvicorn
from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from vigil import __version__
from vigil.config import get_api_key, key_status, load_config
from vigil.errors import ConfigurationError, InvalidInputError
from vigil.models import ScanResult
from vigil.scanner import require_provider, scan_file, scan_url
from vigil.store import ResultStore
from vigil.web.telegram import handle_update

_WEB_DIR = Path(__file__).resolve().parent

SESSION_COOKIE = "vigil_session"
TELEGRAM_SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Dedicated scan executor
# ---------------------------------------------------------------------------
# Scans block on provider and AI HTTP calls, so they run here instead of
# on the event loop.  Chat-channel scans are submitted without waiting.
_scan_executor = ThreadPoolExecutor(
    max_workers=4, thread_name_prefix="vigil-scan",
)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    """FastAPI lifespan handler: shut the executor down on exit."""
    yield
    _scan_executor.shutdown(wait=False)


app = FastAPI(title="Vigil", version=__version__, lifespan=_lifespan)

templates = Jinja2Templates(directory=str(_WEB_DIR / "templates"))

app.mount("/static", StaticFiles(directory=str(_WEB_DIR / "static")), name="static")

# ---------------------------------------------------------------------------
# Configuration and result store (created once at startup)
# ---------------------------------------------------------------------------
_config: dict[str, Any] = load_config()

_results: ResultStore[ScanResult] = ResultStore(
    ttl_seconds=_config.get("store", {}).get("ttl_seconds", 600),
)


def _max_upload_bytes() -> int:
    return int(_config.get("limits", {}).get("max_upload_bytes", 32 * 1024 * 1024))


def _normalize_url(raw_url: str) -> str:
    url = (raw_url or "").strip()
    if url and not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    return url


def _session_id(request: Request) -> str:
    return request.cookies.get(SESSION_COOKIE) or uuid.uuid4().hex


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"ok": False, "error": message}, status_code=status_code)


async def _run_scan(func: Any, *args: Any) -> ScanResult:
    """Run a blocking scan function on the scan executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(_scan_executor, lambda: func(*args))


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------


@app.get("/", response_class=HTMLResponse)
async def index(request: Request) -> HTMLResponse:
    """Render the home page with the upload and URL forms."""
    return templates.TemplateResponse(
        request,
        "index.html",
        {"key_status": key_status(_config), "error": request.query_params.get("error", "")},
    )


@app.get("/faq", response_class=HTMLResponse)
async def faq(request: Request) -> HTMLResponse:
    """Render the FAQ page."""
    return templates.TemplateResponse(request, "faq.html", {})


@app.post("/scan")
async def scan_form(request: Request, file: UploadFile = File(...)) -> RedirectResponse:
    """Scan an uploaded file and redirect to the one-shot results page."""
    content = await file.read()
    if len(content) > _max_upload_bytes():
        return RedirectResponse(url="/?error=File+too+large", status_code=303)

    try:
        result = await _run_scan(scan_file, content, file.filename or "uploaded_file", _config)
    except (InvalidInputError, ConfigurationError) as exc:
        return RedirectResponse(url=f"/?error={quote_plus(str(exc))}", status_code=303)

    return _store_and_redirect(request, result)


@app.post("/scan_url")
async def scan_url_form(request: Request, url: str = Form("")) -> RedirectResponse:
    """Scan a URL submitted via form and redirect to the results page."""
    try:
        result = await _run_scan(scan_url, _normalize_url(url), _config)
    except (InvalidInputError, ConfigurationError) as exc:
        return RedirectResponse(url=f"/?error={quote_plus(str(exc))}", status_code=303)

    return _store_and_redirect(request, result)


def _store_and_redirect(request: Request, result: ScanResult) -> RedirectResponse:
    session_id = _session_id(request)
    _results.put(session_id, result)
    response = RedirectResponse(url="/results", status_code=303)
    response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
    return response


@app.get("/results", response_class=HTMLResponse)
async def results(request: Request):
    """Render the last result for this session, then forget it."""
    session_id = request.cookies.get(SESSION_COOKIE)
    result = _results.take_once(session_id) if session_id else None
    if result is None:
        return RedirectResponse(url="/", status_code=303)

    return templates.TemplateResponse(
        request,
        "results.html",
        {"result": result.to_dict()},
    )


# ---------------------------------------------------------------------------
# JSON API
# ---------------------------------------------------------------------------


@app.post("/api/scan")
async def api_scan(file: UploadFile | None = File(None)) -> JSONResponse:
    """Scan an uploaded file and return the result as JSON.

    Returns:
        ``{"ok": true, "result": {...}}``, or an error with 400 (missing
        or empty file), 413 (too large) or 403 (not configured).
    """
    try:
        require_provider(_config, "file")
    except ConfigurationError as exc:
        return _error(str(exc), 403)

    if file is None:
        return _error("No file provided.", 400)

    content = await file.read()
    if len(content) > _max_upload_bytes():
        return _error("File exceeds the maximum upload size.", 413)

    filename = file.filename or "uploaded_file"
    logger.info("Received file %s (%d bytes)", filename, len(content))

    try:
        result = await _run_scan(scan_file, content, filename, _config)
    except InvalidInputError as exc:
        return _error(str(exc), 400)
    except ConfigurationError as exc:
        return _error(str(exc), 403)

    return JSONResponse({"ok": True, "result": result.to_dict()})


@app.post("/api/scan_url")
async def api_scan_url(request: Request) -> JSONResponse:
    """Scan a URL from a JSON body ``{"url": "..."}``."""
    try:
        require_provider(_config, "url")
    except ConfigurationError as exc:
        return _error(str(exc), 403)

    try:
        body = await request.json()
    except ValueError:
        body = {}
    url = _normalize_url(body.get("url", "") if isinstance(body, dict) else "")
    if not url:
        return _error("No URL provided.", 400)

    logger.info("Received URL %s", url)

    try:
        result = await _run_scan(scan_url, url, _config)
    except InvalidInputError as exc:
        return _error(str(exc), 400)
    except ConfigurationError as exc:
        return _error(str(exc), 403)

    return JSONResponse({"ok": True, "result": result.to_dict()})


@app.get("/api/health")
async def health() -> JSONResponse:
    """Liveness probe."""
    return JSONResponse({"ok": True, "version": __version__, "runtime": "python"})


# ---------------------------------------------------------------------------
# Chat channel
# ---------------------------------------------------------------------------


@app.post("/webhook/telegram")
async def telegram_webhook(request: Request) -> JSONResponse:
    """Accept a Telegram update and scan it in the background.

    Telegram must be registered with the same ``secret_token`` as
    ``api_keys.telegram_secret``; updates without it are rejected.  The
    scan is not awaited; its outcome is sent back through the bot API.
    """
    token = get_api_key(_config, "telegram")
    secret = get_api_key(_config, "telegram_secret")
    if not token or not secret:
        return _error("Telegram integration is not configured.", 503)

    supplied = request.headers.get(TELEGRAM_SECRET_HEADER, "")
    if not hmac.compare_digest(supplied.encode(), secret.encode()):
        logger.warning("Rejected Telegram update with a bad secret token")
        return _error("Invalid webhook secret.", 403)

    try:
        update = await request.json()
    except ValueError:
        return _error("Invalid update payload.", 400)
    if not isinstance(update, dict):
        return _error("Invalid update payload.", 400)

    _scan_executor.submit(handle_update, update, _config, token)
    return JSONResponse({"ok": True})


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Start the Vigil web server."""
    import os
    import sys

    is_dev = "--reload" in sys.argv

    host = os.getenv("VIGIL_HOST", "0.0.0.0")
    port = int(os.getenv("VIGIL_PORT", os.getenv("PORT", "3000")))
    if not get_api_key(_config, "virustotal") and not get_api_key(_config, "triage"):
        logger.warning("No reputation provider key configured; scans will be refused.")
    uvicorn.run(
        "vigil.web.app:app",
        host=host,
        port=port,
        reload=is_dev,
    )


if __name__ == "__main__":
    main()
