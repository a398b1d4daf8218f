"""Data models for Vigil scan results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class Verdict(Enum):
    """Categorical risk classification."""

    MALICIOUS = "malicious"
    SUSPICIOUS = "suspicious"
    CLEAN = "clean"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FileTarget:
    """Raw file content submitted for a scan."""

    content: bytes
    filename: str = "uploaded_file"

    @property
    def kind(self) -> str:
        return "file"

    @property
    def display_name(self) -> str:
        return self.filename


@dataclass(frozen=True)
class UrlTarget:
    """A URL submitted for a scan."""

    url: str

    @property
    def kind(self) -> str:
        return "url"

    @property
    def display_name(self) -> str:
        return self.url


ScanTarget = Union[FileTarget, UrlTarget]


@dataclass
class LocalAssessment:
    """Local heuristic view of a file, computed without any network call."""

    filename: str
    digest: str
    size_bytes: int
    tags: frozenset[str]
    verdict: Verdict
    observed_at: str


@dataclass
class ProviderResult:
    """Normalized output from a single reputation provider lookup."""

    provider_id: str
    found: bool
    verdict: Verdict | None = None
    detection_count: int | None = None
    total_engines: int | None = None
    error: str | None = None
    categories: list[str] = field(default_factory=list)
    permalink: str = ""
    raw: Any = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.error is not None and self.verdict is not None:
            raise ValueError("a provider result with an error cannot carry a verdict")
        if not self.found and self.verdict not in (None, Verdict.UNKNOWN):
            raise ValueError("a provider result without a record can only be unknown")

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider_id,
            "found": self.found,
            "verdict": self.verdict.value if self.verdict else None,
            "detection_count": self.detection_count,
            "total_engines": self.total_engines,
            "error": self.error,
            "permalink": self.permalink,
        }


@dataclass
class NarrativeResult:
    """Output from the narrative generator: either text or an error."""

    explanation: str | None = None
    error: str | None = None


@dataclass
class ScanResult:
    """Final aggregated scan result."""

    target: ScanTarget
    final_verdict: Verdict
    scanned_at: str
    local_assessment: LocalAssessment | None = None
    provider_results: list[ProviderResult] = field(default_factory=list)
    narrative: str | None = None
    narrative_error: str | None = None

    @property
    def local_verdict(self) -> Verdict:
        if self.local_assessment is None:
            return Verdict.UNKNOWN
        return self.local_assessment.verdict

    def to_dict(self) -> dict[str, Any]:
        """Flatten the result into a JSON-safe dict for rendering layers.

        Returns:
            Dict with enum values as strings and provider payloads omitted.
        """
        local = self.local_assessment
        return {
            "target_kind": self.target.kind,
            "file_name": local.filename if local else None,
            "url": self.target.url if isinstance(self.target, UrlTarget) else None,
            "sha256": local.digest if local else None,
            "size_bytes": local.size_bytes if local else None,
            "tags": sorted(local.tags) if local else [],
            "local_verdict": self.local_verdict.value,
            "final_verdict": self.final_verdict.value,
            "providers": [pr.to_dict() for pr in self.provider_results],
            "narrative": self.narrative,
            "narrative_error": self.narrative_error,
            "scanned_at": self.scanned_at,
        }
