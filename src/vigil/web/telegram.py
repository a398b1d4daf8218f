"""Telegram chat-channel integration for Vigil.

Incoming webhook updates carrying a URL start a URL scan in the
background.  The webhook request returns immediately; the verdict is
delivered later through the bot's own ``sendMessage`` call.  Errors in
the background task are logged and never reach the HTTP request path.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import requests
import tldextract

from vigil.aggregate import primary_evidence
from vigil.errors import VigilError
from vigil.models import ScanResult, Verdict
from vigil.scanner import scan_url

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"

_URL_RE = re.compile(r"https?://\S+|(?:[a-z0-9-]+\.)+[a-z0-9-]{2,}(?:[/?#]\S*)?", re.IGNORECASE)

_TRAILING_PUNCTUATION = ".,;:!?)]}>\"'"

# Bundled public suffix snapshot only; never fetched at runtime.
_tld_extract = tldextract.TLDExtract(suffix_list_urls=())

_VERDICT_EMOJI = {
    Verdict.MALICIOUS: "🔴",
    Verdict.SUSPICIOUS: "🟡",
    Verdict.CLEAN: "🟢",
    Verdict.UNKNOWN: "⚪",
}

# Telegram rejects messages longer than 4096 characters.
_MAX_MESSAGE_LENGTH = 4000


def extract_url(text: str) -> str:
    """Return the first link in a chat message, or "".

    Bare hostnames count only when they end in a public suffix, so
    file names like ``report.pdf`` are ignored.  Trailing punctuation is
    dropped and ``https://`` is prepended when no scheme is given.
    """
    for match in _URL_RE.finditer(text or ""):
        candidate = match.group(0).rstrip(_TRAILING_PUNCTUATION)
        if candidate.lower().startswith(("http://", "https://")):
            if candidate.split("://", 1)[1]:
                return candidate
            continue

        host = re.split(r"[/?#]", candidate, maxsplit=1)[0]
        extracted = _tld_extract(host)
        if extracted.domain and extracted.suffix:
            return f"https://{candidate}"
    return ""


def format_summary(result: ScanResult) -> str:
    """Render a ScanResult as a plain-text chat message."""
    verdict = result.final_verdict
    lines = [
        f"{_VERDICT_EMOJI[verdict]} Verdict: {verdict.value.upper()}",
        f"Target: {result.target.display_name}",
    ]

    evidence = primary_evidence(result.provider_results)
    if evidence is not None:
        lines.append(
            f"{evidence.provider_id}: {evidence.detection_count}/{evidence.total_engines} detections"
        )
    for pr in result.provider_results:
        if pr.error:
            lines.append(f"{pr.provider_id}: {pr.error}")

    if result.narrative:
        lines.extend(["", result.narrative])

    message = "\n".join(lines)
    if len(message) > _MAX_MESSAGE_LENGTH:
        message = message[: _MAX_MESSAGE_LENGTH - 3] + "..."
    return message


def send_message(token: str, chat_id: int | str, text: str, timeout: int = 15) -> bool:
    """Send a text message through the Telegram Bot API.

    Returns:
        True if Telegram accepted the message.
    """
    try:
        response = requests.post(
            f"{TELEGRAM_API_URL}/bot{token}/sendMessage",
            json={"chat_id": chat_id, "text": text, "disable_web_page_preview": True},
            timeout=timeout,
        )
    except requests.exceptions.RequestException as e:
        logger.error("Telegram sendMessage failed: %s", e)
        return False

    if response.status_code != 200:
        logger.error("Telegram sendMessage returned status %s", response.status_code)
        return False
    return True


def parse_update(update: dict[str, Any]) -> tuple[int | str | None, str]:
    """Pull the chat id and message text out of a webhook update."""
    message = update.get("message") or update.get("edited_message") or {}
    chat_id = (message.get("chat") or {}).get("id")
    return chat_id, message.get("text") or ""


def handle_update(update: dict[str, Any], config: dict[str, Any], token: str) -> None:
    """Process one webhook update end to end.

    Runs on a background worker; every failure is contained here.

    Args:
        update: The decoded Telegram update.
        config: The loaded Vigil configuration dictionary.
        token: Telegram bot token.
    """
    timeout = config.get("requests", {}).get("timeout", 15)
    chat_id, text = parse_update(update)
    if chat_id is None:
        logger.debug("Ignoring Telegram update without a chat id")
        return

    try:
        url = extract_url(text)
        if not url:
            send_message(token, chat_id, "Send me a link and I will check its reputation.", timeout)
            return

        result = scan_url(url, config)
        send_message(token, chat_id, format_summary(result), timeout)
    except VigilError as e:
        logger.warning("Telegram scan rejected: %s", e)
        send_message(token, chat_id, f"Could not scan: {e}", timeout)
    except Exception as e:
        logger.error("Telegram scan failed for chat %s: %s", chat_id, e)
        send_message(token, chat_id, "Scan failed, please try again later.", timeout)
