"""Recorded Future Triage (tria.ge) reputation provider integration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests

from vigil.models import ProviderResult
from vigil.providers.base import BaseProvider, ProviderError

TRIAGE_API_URL = "https://tria.ge/api/v0"

# Triage scores run 1-10: 8+ is likely malicious, 6-7 shows suspicious behaviour.
_MALICIOUS_SCORE = 8
_SUSPICIOUS_SCORE = 6


@dataclass
class TriageSample:
    """A single sample entry from a Triage search result."""

    sample_id: str
    score: int | None

    @classmethod
    def from_json(cls, entry: Any) -> TriageSample:
        if not isinstance(entry, dict):
            raise ProviderError("search entry is not an object")

        score = entry.get("score")
        if score is None:
            task_scores = [
                t.get("score")
                for t in (entry.get("tasks") or [])
                if isinstance(t, dict) and t.get("score") is not None
            ]
            score = max(task_scores) if task_scores else None

        return cls(
            sample_id=str(entry.get("id", "")),
            score=int(score) if score is not None else None,
        )

    @property
    def category(self) -> str:
        if self.score is None:
            return "harmless"
        if self.score >= _MALICIOUS_SCORE:
            return "malicious"
        if self.score >= _SUSPICIOUS_SCORE:
            return "suspicious"
        return "harmless"


def parse_search(payload: Any) -> list[TriageSample]:
    """Parse a ``GET /search`` response body into samples."""
    if not isinstance(payload, dict):
        raise ProviderError("response body is not a JSON object")
    data = payload.get("data")
    if data is None:
        return []
    if not isinstance(data, list):
        raise ProviderError("search data is not a list")
    return [TriageSample.from_json(entry) for entry in data]


class TriageProvider(BaseProvider):
    """Search Triage sandbox reports by SHA-256 digest.

    Each matching sample counts as one engine in the statistics, bucketed
    by its Triage score.
    """

    name = "triage"
    label = "Triage"
    kind = "file"

    def __init__(self, api_key: str, timeout: int = 15, api_url: str = TRIAGE_API_URL) -> None:
        super().__init__(api_key, timeout)
        self.api_url = api_url.rstrip("/")

    def _fetch(self, identifier: str) -> ProviderResult:
        digest = identifier.strip().lower()
        if not digest:
            raise ProviderError("empty digest")

        response = requests.get(
            f"{self.api_url}/search",
            headers={"Authorization": f"Bearer {self.api_key}"},
            params={"query": f"sha256:{digest}"},
            timeout=self.timeout,
        )

        if response.status_code == 404:
            return self._not_found()

        self._check_status(response)

        payload = response.json()
        samples = parse_search(payload)
        if not samples:
            return self._not_found()

        stats = {"malicious": 0, "suspicious": 0, "harmless": 0}
        for sample in samples:
            stats[sample.category] += 1

        permalink = f"https://tria.ge/{samples[0].sample_id}" if samples[0].sample_id else ""
        return self._from_stats(stats, raw=payload, permalink=permalink)
