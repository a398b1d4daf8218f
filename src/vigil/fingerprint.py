"""Local content fingerprinting for submitted files."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone

from vigil.models import LocalAssessment, Verdict

PE_SIGNATURE = b"MZ"
ELF_SIGNATURE = b"\x7fELF"

EXECUTABLE_TAGS = frozenset({"pe_executable", "elf_executable"})


def detect_tags(content: bytes) -> frozenset[str]:
    """Tag executable formats by their leading magic bytes.

    The PE and ELF checks read different prefix lengths and are not
    mutually exclusive.

    Args:
        content: Raw file bytes.

    Returns:
        Set of format tags found.
    """
    tags = set()
    if content[:2] == PE_SIGNATURE:
        tags.add("pe_executable")
    if content[:4] == ELF_SIGNATURE:
        tags.add("elf_executable")
    return frozenset(tags)


def fingerprint(content: bytes, filename: str) -> LocalAssessment:
    """Compute the digest, format tags and local verdict for a file.

    The local verdict is only ever ``suspicious`` (executable content) or
    ``unknown``; there is no local basis for clean or malicious.

    Args:
        content: Raw file bytes.
        filename: Display name of the file.

    Returns:
        A LocalAssessment for the content.
    """
    tags = detect_tags(content)
    verdict = Verdict.SUSPICIOUS if tags & EXECUTABLE_TAGS else Verdict.UNKNOWN

    return LocalAssessment(
        filename=filename,
        digest=hashlib.sha256(content).hexdigest(),
        size_bytes=len(content),
        tags=tags,
        verdict=verdict,
        observed_at=datetime.now(timezone.utc).isoformat(),
    )
