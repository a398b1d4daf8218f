"""Vigil reputation provider adapters."""

from __future__ import annotations

from typing import Any

from vigil.config import get_api_key
from vigil.providers.base import BaseProvider
from vigil.providers.triage import TriageProvider
from vigil.providers.virustotal import VirusTotalFileProvider, VirusTotalUrlProvider

ALL_PROVIDERS: list[tuple[type[BaseProvider], str]] = [
    (VirusTotalFileProvider, "virustotal"),
    (TriageProvider, "triage"),
    (VirusTotalUrlProvider, "virustotal"),
]


def build_providers(config: dict[str, Any], kind: str) -> list[BaseProvider]:
    """Instantiate every provider adapter for a target kind.

    Adapters are built whether or not their credential is present; callers
    check ``configured`` before querying.

    Args:
        config: The loaded configuration dictionary.
        kind: ``"file"`` or ``"url"``.

    Returns:
        List of provider instances in display order.
    """
    timeout = config.get("requests", {}).get("timeout", 15)
    return [
        provider_cls(api_key=get_api_key(config, key_name), timeout=timeout)
        for provider_cls, key_name in ALL_PROVIDERS
        if provider_cls.kind == kind
    ]


__all__ = [
    "ALL_PROVIDERS",
    "BaseProvider",
    "TriageProvider",
    "VirusTotalFileProvider",
    "VirusTotalUrlProvider",
    "build_providers",
]
