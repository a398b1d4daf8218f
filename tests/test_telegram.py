"""Tests for the Telegram chat channel."""

from unittest.mock import patch

import pytest
import requests

from vigil.errors import ConfigurationError
from vigil.models import ProviderResult, ScanResult, UrlTarget, Verdict
from vigil.web.telegram import (
    extract_url,
    format_summary,
    handle_update,
    parse_update,
    send_message,
)


def _result(verdict=Verdict.MALICIOUS, narrative=None, providers=None):
    if providers is None:
        providers = [ProviderResult(
            provider_id="virustotal", found=True, verdict=verdict,
            detection_count=5, total_engines=90,
        )]
    return ScanResult(
        target=UrlTarget(url="https://bad.example"),
        final_verdict=verdict,
        scanned_at="2024-01-01T00:00:00+00:00",
        provider_results=providers,
        narrative=narrative,
    )


class TestExtractUrl:

    @pytest.mark.parametrize("text,expected", [
        ("check https://bad.example/path please", "https://bad.example/path"),
        ("http://plain.example", "http://plain.example"),
        ("is evil.example.com safe?", "https://evil.example.com"),
        ("(see https://bad.example/path).", "https://bad.example/path"),
        ("look at shop.co.uk/deal!", "https://shop.co.uk/deal"),
        ("attached report.pdf, e.g. this one", ""),
        ("report.pdf then phish.net", "https://phish.net"),
        ("just http://)", ""),
        ("hello there", ""),
        ("", ""),
    ])
    def test_extract(self, text, expected):
        assert extract_url(text) == expected


class TestFormatSummary:

    def test_includes_verdict_and_ratio(self):
        message = format_summary(_result(narrative="**Risk Level:** High"))

        assert "Verdict: MALICIOUS" in message
        assert "https://bad.example" in message
        assert "virustotal: 5/90 detections" in message
        assert message.endswith("**Risk Level:** High")

    def test_lists_provider_errors(self):
        broken = ProviderResult(provider_id="virustotal", found=False, error="VirusTotal request timed out")

        message = format_summary(_result(verdict=Verdict.UNKNOWN, providers=[broken]))

        assert "virustotal: VirusTotal request timed out" in message
        assert "detections" not in message

    def test_long_messages_truncated(self):
        message = format_summary(_result(narrative="x" * 10000))

        assert len(message) == 4000
        assert message.endswith("...")


class TestSendMessage:

    @patch("vigil.web.telegram.requests.post")
    def test_success(self, mock_post, make_response):
        mock_post.return_value = make_response(200, {"ok": True})

        assert send_message("tok", 42, "hi", timeout=3) is True
        args, kwargs = mock_post.call_args
        assert args[0] == "https://api.telegram.org/bottok/sendMessage"
        assert kwargs["json"]["chat_id"] == 42
        assert kwargs["json"]["text"] == "hi"
        assert kwargs["timeout"] == 3

    @patch("vigil.web.telegram.requests.post")
    def test_rejected(self, mock_post, make_response):
        mock_post.return_value = make_response(400)

        assert send_message("tok", 42, "hi") is False

    @patch("vigil.web.telegram.requests.post")
    def test_network_error(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError("down")

        assert send_message("tok", 42, "hi") is False


class TestHandleUpdate:

    def test_parse_update(self):
        assert parse_update({"message": {"chat": {"id": 7}, "text": "x"}}) == (7, "x")
        assert parse_update({"edited_message": {"chat": {"id": 8}}}) == (8, "")
        assert parse_update({}) == (None, "")

    @patch("vigil.web.telegram.send_message")
    @patch("vigil.web.telegram.scan_url")
    def test_scans_and_replies(self, mock_scan, mock_send, config):
        mock_scan.return_value = _result()

        handle_update({"message": {"chat": {"id": 7}, "text": "bad-site.com"}}, config, "tok")

        mock_scan.assert_called_once_with("https://bad-site.com", config)
        token, chat_id, text, _ = mock_send.call_args[0]
        assert (token, chat_id) == ("tok", 7)
        assert "MALICIOUS" in text

    @patch("vigil.web.telegram.send_message")
    @patch("vigil.web.telegram.scan_url")
    def test_no_url_sends_help(self, mock_scan, mock_send, config):
        handle_update({"message": {"chat": {"id": 7}, "text": "hi"}}, config, "tok")

        mock_scan.assert_not_called()
        assert "link" in mock_send.call_args[0][2]

    @patch("vigil.web.telegram.send_message")
    @patch("vigil.web.telegram.scan_url")
    def test_no_chat_id_ignored(self, mock_scan, mock_send, config):
        handle_update({"channel_post": {"text": "https://x.example"}}, config, "tok")

        mock_scan.assert_not_called()
        mock_send.assert_not_called()

    @patch("vigil.web.telegram.send_message")
    @patch("vigil.web.telegram.scan_url")
    def test_configuration_error_reported(self, mock_scan, mock_send, config):
        mock_scan.side_effect = ConfigurationError("VirusTotal is not configured")

        handle_update({"message": {"chat": {"id": 7}, "text": "https://x.example"}}, config, "tok")

        assert mock_send.call_args[0][2] == "Could not scan: VirusTotal is not configured"

    @patch("vigil.web.telegram.send_message")
    @patch("vigil.web.telegram.scan_url")
    def test_unexpected_error_contained(self, mock_scan, mock_send, config):
        mock_scan.side_effect = RuntimeError("boom")

        handle_update({"message": {"chat": {"id": 7}, "text": "https://x.example"}}, config, "tok")

        assert "try again later" in mock_send.call_args[0][2]
