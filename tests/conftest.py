"""Pytest fixtures for Vigil tests."""

from unittest.mock import MagicMock

import pytest

from vigil.models import ProviderResult
from vigil.providers.base import BaseProvider


class StubProvider(BaseProvider):
    """Provider that returns a canned result and counts its calls."""

    def __init__(self, name, result=None, api_key="key", kind="file", raises=None):
        super().__init__(api_key=api_key, timeout=1)
        self.name = name
        self.label = name
        self.kind = kind
        self.result = result
        self.raises = raises
        self.calls = []

    def _fetch(self, identifier):
        self.calls.append(identifier)
        if self.raises is not None:
            raise self.raises
        return self.result


@pytest.fixture
def config():
    """A configuration with every credential present."""
    return {
        "api_keys": {
            "virustotal": "vt-key",
            "triage": "triage-key",
            "ai": "ai-key",
            "telegram": "bot-token",
            "telegram_secret": "hook-secret",
        },
        "requests": {"timeout": 5},
        "ai": {
            "api_url": "https://ai.example/v1/chat/completions",
            "model": "test-model",
            "timeout": 5,
        },
        "limits": {"max_upload_bytes": 1024},
        "store": {"ttl_seconds": 60},
    }


@pytest.fixture
def empty_config():
    """A configuration without any credential."""
    return {"api_keys": {}, "requests": {"timeout": 5}}


@pytest.fixture
def pe_bytes():
    """Leading bytes of a Windows PE file."""
    return b"MZ\x90\x00\x03\x00\x00\x00\x04\x00\x00\x00\xff\xff\x00\x00"


@pytest.fixture
def elf_bytes():
    """Leading bytes of an ELF binary."""
    return b"\x7fELF\x02\x01\x01\x00" + b"\x00" * 8


@pytest.fixture
def text_bytes():
    return b"hello, this is a plain text document\n"


@pytest.fixture
def make_response():
    """Build a fake ``requests.Response``."""

    def _make(status_code=200, payload=None, json_error=None):
        response = MagicMock()
        response.status_code = status_code
        if json_error is not None:
            response.json.side_effect = json_error
        else:
            response.json.return_value = payload if payload is not None else {}
        return response

    return _make


@pytest.fixture
def vt_payload():
    """Build a VT v3 object body from analysis stats."""

    def _make(malicious=0, suspicious=0, undetected=60, harmless=10, categories=None):
        attributes = {
            "last_analysis_stats": {
                "malicious": malicious,
                "suspicious": suspicious,
                "undetected": undetected,
                "harmless": harmless,
            },
            "reputation": 0,
        }
        if categories is not None:
            attributes["categories"] = categories
        return {"data": {"id": "x", "type": "file", "attributes": attributes}}

    return _make


@pytest.fixture
def stub_provider():
    """Factory for StubProvider instances."""
    return StubProvider


@pytest.fixture
def found():
    """Factory for found ProviderResults."""

    def _make(provider_id, verdict, detection_count=0, total_engines=70):
        return ProviderResult(
            provider_id=provider_id,
            found=True,
            verdict=verdict,
            detection_count=detection_count,
            total_engines=total_engines,
        )

    return _make
