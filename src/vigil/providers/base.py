"""Base reputation provider interface for Vigil."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import requests

from vigil.models import ProviderResult, Verdict

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """A provider call failed in a way that maps to ``ProviderResult.error``."""


class BaseProvider(ABC):
    """Abstract base class for reputation provider adapters.

    Each adapter looks up an identifier (a file digest or a URL) against
    one external service and normalizes the answer into a ProviderResult.
    ``lookup`` never raises: missing credentials, transport errors and
    malformed responses all come back as a result with ``error`` set.
    """

    name: str = ""
    label: str = ""
    kind: str = "file"

    def __init__(self, api_key: str, timeout: int = 15) -> None:
        """Initialize with API key.

        Args:
            api_key: Provider credential. Empty means not configured.
            timeout: Request timeout in seconds.
        """
        self.api_key = api_key
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def lookup(self, identifier: str) -> ProviderResult:
        """Look up the identifier with this provider.

        Args:
            identifier: SHA-256 digest for file providers, raw URL for URL
                providers.

        Returns:
            A ProviderResult; never raises.
        """
        if not self.configured:
            return ProviderResult(
                provider_id=self.name,
                found=False,
                error=f"{self.label or self.name} not configured",
            )

        try:
            return self._fetch(identifier)
        except requests.exceptions.Timeout:
            logger.warning("%s lookup timed out after %ss", self.name, self.timeout)
            return self._error(f"{self.label} request timed out")
        except requests.exceptions.RequestException as e:
            logger.warning("%s lookup failed: %s", self.name, e)
            return self._error(f"{self.label} request failed: {e}")
        except (ProviderError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("%s returned an unusable response: %s", self.name, e)
            return self._error(f"{self.label} error: {e}")

    @abstractmethod
    def _fetch(self, identifier: str) -> ProviderResult:
        """Query the remote service. May raise; ``lookup`` converts errors."""
        ...

    def _error(self, message: str) -> ProviderResult:
        return ProviderResult(provider_id=self.name, found=False, error=message)

    def _not_found(self, permalink: str = "") -> ProviderResult:
        return ProviderResult(provider_id=self.name, found=False, permalink=permalink)

    def _check_status(self, response: requests.Response) -> None:
        """Raise ProviderError for status codes other than 200 and 404."""
        status = response.status_code
        if status in (401, 403):
            raise ProviderError("authentication rejected")
        if status == 429:
            raise ProviderError("rate limit exceeded")
        if status != 200:
            raise ProviderError(f"API returned status {status}")

    def _from_stats(
        self,
        stats: dict[str, int],
        raw: object,
        categories: list[str] | None = None,
        permalink: str = "",
    ) -> ProviderResult:
        """Build a found result from a per-category engine count mapping.

        ``total_engines`` is the sum of every category, harmless and
        undetected included.
        """
        malicious = int(stats.get("malicious", 0) or 0)
        total = sum(int(v or 0) for v in stats.values())
        return ProviderResult(
            provider_id=self.name,
            found=True,
            verdict=Verdict.MALICIOUS if malicious > 0 else Verdict.CLEAN,
            detection_count=malicious,
            total_engines=total,
            categories=categories or [],
            permalink=permalink,
            raw=raw,
        )
