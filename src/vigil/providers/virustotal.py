"""VirusTotal reputation provider integration."""

from __future__ import annotations

import base64
from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Any

import requests

from vigil.models import ProviderResult
from vigil.providers.base import BaseProvider, ProviderError

VT_API_URL = "https://www.virustotal.com/api/v3"
VT_GUI_URL = "https://www.virustotal.com/gui"


@dataclass
class VirusTotalObject:
    """The subset of a VT v3 file/URL object that Vigil relies on."""

    stats: dict[str, int]
    categories: list[str] = field(default_factory=list)
    reputation: int = 0

    @classmethod
    def from_json(cls, payload: Any) -> VirusTotalObject:
        """Parse a ``GET /files/{id}`` or ``GET /urls/{id}`` response body.

        Raises:
            ProviderError: If the body lacks ``data.attributes``.
        """
        if not isinstance(payload, dict):
            raise ProviderError("response body is not a JSON object")
        data = payload.get("data")
        if not isinstance(data, dict):
            raise ProviderError("response has no data object")
        attrs = data.get("attributes")
        if not isinstance(attrs, dict):
            raise ProviderError("response has no data.attributes")

        stats = attrs.get("last_analysis_stats") or {}
        if not isinstance(stats, dict):
            raise ProviderError("last_analysis_stats is not an object")

        # URL objects map vendor -> category label
        raw_categories = attrs.get("categories") or {}
        categories = sorted({
            str(label).lower()
            for label in (raw_categories.values() if isinstance(raw_categories, dict) else [])
        })

        return cls(
            stats={k: int(v or 0) for k, v in stats.items()},
            categories=categories,
            reputation=int(attrs.get("reputation", 0) or 0),
        )


def url_identifier(url: str) -> str:
    """Return the VT URL identifier: unpadded base64url of the raw URL."""
    return base64.urlsafe_b64encode(url.encode()).decode().rstrip("=")


class _VirusTotalProvider(BaseProvider):
    """Shared transport for the VirusTotal API v3.

    Requires a free API key (4 requests/minute on free tier).
    """

    name = "virustotal"
    label = "VirusTotal"
    collection = ""

    def _object_id(self, identifier: str) -> str:
        return identifier

    @abstractmethod
    def _permalink(self, identifier: str) -> str:
        """Return the VirusTotal GUI link for the identifier."""
        ...

    def _fetch(self, identifier: str) -> ProviderResult:
        object_id = self._object_id(identifier)
        permalink = self._permalink(identifier)

        response = requests.get(
            f"{VT_API_URL}/{self.collection}/{object_id}",
            headers={"x-apikey": self.api_key},
            timeout=self.timeout,
        )

        if response.status_code == 404:
            return self._not_found(permalink)

        self._check_status(response)

        payload = response.json()
        vt_object = VirusTotalObject.from_json(payload)
        return self._from_stats(
            vt_object.stats,
            raw=payload,
            categories=vt_object.categories,
            permalink=permalink,
        )


class VirusTotalFileProvider(_VirusTotalProvider):
    """Look up a SHA-256 digest in VirusTotal's file collection."""

    kind = "file"
    collection = "files"

    def _object_id(self, identifier: str) -> str:
        digest = identifier.strip().lower()
        if not digest:
            raise ProviderError("empty digest")
        return digest

    def _permalink(self, identifier: str) -> str:
        return f"{VT_GUI_URL}/file/{identifier.strip().lower()}"


class VirusTotalUrlProvider(_VirusTotalProvider):
    """Look up a URL in VirusTotal's URL collection."""

    kind = "url"
    collection = "urls"

    def _object_id(self, identifier: str) -> str:
        return url_identifier(identifier)

    def _permalink(self, identifier: str) -> str:
        return f"{VT_GUI_URL}/url/{url_identifier(identifier)}"
