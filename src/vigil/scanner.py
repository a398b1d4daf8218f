"""Scan orchestrator for Vigil."""

from __future__ import annotations

import concurrent.futures
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Sequence

from vigil.aggregate import aggregate, primary_evidence
from vigil.errors import ConfigurationError, InvalidInputError
from vigil.fingerprint import fingerprint
from vigil.models import (
    FileTarget,
    LocalAssessment,
    ProviderResult,
    ScanResult,
    ScanTarget,
    UrlTarget,
    Verdict,
)
from vigil.narrative import NarrativeGenerator
from vigil.providers import BaseProvider, build_providers

logger = logging.getLogger(__name__)

# Type alias for the optional progress callback.
# Signature: on_event(event_type: str, data: dict) -> None
EventCallback = Callable[[str, dict], None] | None


def _emit(on_event: EventCallback, event_type: str, data: dict) -> None:
    """Safely invoke the optional progress callback.

    Args:
        on_event: The callback, or None.
        event_type: Event name (e.g. "local", "provider", "verdict").
        data: JSON-serialisable payload.
    """
    if on_event is not None:
        try:
            on_event(event_type, data)
        except Exception as exc:
            logger.debug("Event callback failed for %s: %s", event_type, exc)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def scan_file(
    content: bytes,
    filename: str,
    config: dict[str, Any],
    providers: Sequence[BaseProvider] | None = None,
    narrator: NarrativeGenerator | None = None,
    use_ai: bool = True,
    on_event: EventCallback = None,
) -> ScanResult:
    """Fingerprint a file, look its digest up with every provider, and
    produce a ScanResult.

    Args:
        content: Raw file bytes.
        filename: Display name of the file.
        config: The loaded Vigil configuration dictionary.
        providers: File providers to use. Defaults to those built from config.
        narrator: Narrative generator. Defaults to one built from config.
        use_ai: If False, skip the narrative step entirely.
        on_event: Optional callback for progress events.

    Returns:
        A completed ScanResult.

    Raises:
        InvalidInputError: If the file is empty.
        ConfigurationError: If no file provider has a credential.
    """
    if not content:
        raise InvalidInputError("No file content provided.")

    filename = filename or "uploaded_file"
    if providers is None:
        providers = build_providers(config, "file")
    active = _require_configured(providers, "file")

    logger.info("Scanning file %s (%d bytes)", filename, len(content))

    local = fingerprint(content, filename)
    _emit(on_event, "local", {
        "sha256": local.digest,
        "size_bytes": local.size_bytes,
        "tags": sorted(local.tags),
        "verdict": local.verdict.value,
    })

    provider_results = _run_providers(active, local.digest, on_event)
    return _finish(
        FileTarget(content=content, filename=filename),
        local, provider_results, config, narrator, use_ai, on_event,
    )


def scan_url(
    url: str,
    config: dict[str, Any],
    providers: Sequence[BaseProvider] | None = None,
    narrator: NarrativeGenerator | None = None,
    use_ai: bool = True,
    on_event: EventCallback = None,
) -> ScanResult:
    """Look a URL up with every URL provider and produce a ScanResult.

    There is no local heuristic for URLs; the local verdict is ``unknown``.

    Args:
        url: The URL to check, used verbatim as the lookup identifier.
        config: The loaded Vigil configuration dictionary.
        providers: URL providers to use. Defaults to those built from config.
        narrator: Narrative generator. Defaults to one built from config.
        use_ai: If False, skip the narrative step entirely.
        on_event: Optional callback for progress events.

    Returns:
        A completed ScanResult.

    Raises:
        InvalidInputError: If the URL is blank.
        ConfigurationError: If no URL provider has a credential.
    """
    url = (url or "").strip()
    if not url:
        raise InvalidInputError("No URL provided.")

    if providers is None:
        providers = build_providers(config, "url")
    active = _require_configured(providers, "url")

    logger.info("Scanning URL %s", url)

    provider_results = _run_providers(active, url, on_event)
    return _finish(
        UrlTarget(url=url),
        None, provider_results, config, narrator, use_ai, on_event,
    )


# ---------------------------------------------------------------------------
# Pipeline steps
# ---------------------------------------------------------------------------

def require_provider(config: dict[str, Any], kind: str) -> None:
    """Raise ConfigurationError unless a provider of ``kind`` has a credential."""
    _require_configured(build_providers(config, kind), kind)


def _require_configured(providers: Sequence[BaseProvider], kind: str) -> list[BaseProvider]:
    """Return the configured providers or refuse the scan."""
    active = [p for p in providers if p.configured]
    if not active:
        raise ConfigurationError(
            f"No {kind} reputation provider is configured (add an API key)."
        )
    return active


def _run_provider(provider: BaseProvider, identifier: str) -> ProviderResult:
    """Run a single provider lookup with error handling.

    Args:
        provider: The provider adapter.
        identifier: Digest or URL.

    Returns:
        The ProviderResult, or an error result if the adapter raised.
    """
    try:
        return provider.lookup(identifier)
    except Exception as e:
        logger.error("Provider %s raised: %s", provider.name, e)
        return ProviderResult(provider_id=provider.name, found=False, error=str(e))


def _run_providers(
    providers: list[BaseProvider],
    identifier: str,
    on_event: EventCallback = None,
) -> list[ProviderResult]:
    """Query every provider concurrently and wait for all of them.

    Results keep the order of ``providers`` regardless of completion order.
    If the wait is interrupted, pending lookups are cancelled.

    Args:
        providers: Configured provider adapters.
        identifier: Digest or URL passed to each ``lookup``.
        on_event: Optional callback for progress events.

    Returns:
        One ProviderResult per provider.
    """
    results: list[ProviderResult | None] = [None] * len(providers)

    executor = concurrent.futures.ThreadPoolExecutor(
        max_workers=max(len(providers), 1), thread_name_prefix="vigil-provider",
    )
    try:
        future_to_index = {
            executor.submit(_run_provider, provider, identifier): i
            for i, provider in enumerate(providers)
        }
        for future in concurrent.futures.as_completed(future_to_index):
            result = future.result()
            results[future_to_index[future]] = result
            _emit(on_event, "provider", {"result": result.to_dict()})
    except BaseException:
        executor.shutdown(wait=False, cancel_futures=True)
        raise
    else:
        executor.shutdown(wait=True)

    return [r for r in results if r is not None]


def _finish(
    target: ScanTarget,
    local: LocalAssessment | None,
    provider_results: list[ProviderResult],
    config: dict[str, Any],
    narrator: NarrativeGenerator | None,
    use_ai: bool,
    on_event: EventCallback,
) -> ScanResult:
    """Aggregate the evidence, then attach the narrative."""
    local_verdict = local.verdict if local else Verdict.UNKNOWN
    final_verdict = aggregate(local_verdict, provider_results)
    _emit(on_event, "verdict", {"final_verdict": final_verdict.value})

    result = ScanResult(
        target=target,
        final_verdict=final_verdict,
        scanned_at=datetime.now(timezone.utc).isoformat(),
        local_assessment=local,
        provider_results=provider_results,
    )

    if use_ai:
        if narrator is None:
            narrator = NarrativeGenerator(config)
        try:
            narrative = narrator.generate(
                final_verdict,
                target.display_name,
                primary_evidence(provider_results),
                target.kind,
            )
            result.narrative = narrative.explanation
            result.narrative_error = narrative.error
        except Exception as exc:
            logger.error("Narrative generation failed: %s", exc)
            result.narrative_error = str(exc)
        _emit(on_event, "narrative", {
            "narrative": result.narrative,
            "error": result.narrative_error,
        })

    return result
