"""Verdict aggregation for Vigil.

Merges the local heuristic verdict with every provider result into one
final verdict.  Provider verdicts are ranked on a fixed severity order
(malicious > suspicious > clean); the most severe one seen across *all*
providers wins.  When no provider produced a usable verdict the local
heuristic is returned unchanged.

Aggregation is a pure function of its inputs and does not depend on the
order in which provider results arrive.
"""

from __future__ import annotations

from typing import Iterable

from vigil.models import ProviderResult, Verdict

# Highest severity first.
SEVERITY_ORDER: tuple[Verdict, ...] = (
    Verdict.MALICIOUS,
    Verdict.SUSPICIOUS,
    Verdict.CLEAN,
)


def aggregate(
    local_verdict: Verdict,
    provider_results: Iterable[ProviderResult],
) -> Verdict:
    """Derive the final verdict from local and provider evidence.

    Args:
        local_verdict: Verdict from the fingerprinter (``unknown`` for URLs).
        provider_results: Results from every queried provider.

    Returns:
        The most severe provider verdict, or ``local_verdict`` when no
        provider returned malicious, suspicious or clean.
    """
    seen = {pr.verdict for pr in provider_results if pr.verdict is not None}
    for verdict in SEVERITY_ORDER:
        if verdict in seen:
            return verdict
    return local_verdict


def primary_evidence(provider_results: Iterable[ProviderResult]) -> ProviderResult | None:
    """Pick the provider result that best explains the final verdict.

    Only results with a record and detection counts qualify.  The most
    severe verdict wins; ties go to the earliest result.

    Args:
        provider_results: Results from every queried provider.

    Returns:
        The chosen ProviderResult, or None if no provider found a record.
    """
    candidates = [
        pr for pr in provider_results
        if pr.found and pr.detection_count is not None and pr.total_engines is not None
    ]
    if not candidates:
        return None

    def _rank(pr: ProviderResult) -> int:
        if pr.verdict in SEVERITY_ORDER:
            return SEVERITY_ORDER.index(pr.verdict)
        return len(SEVERITY_ORDER)

    return min(candidates, key=_rank)
