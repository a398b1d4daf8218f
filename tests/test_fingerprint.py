"""Tests for local content fingerprinting."""

import hashlib

from vigil.fingerprint import detect_tags, fingerprint
from vigil.models import Verdict


class TestDigest:
    """Tests for the SHA-256 digest."""

    def test_digest_is_lowercase_sha256_hex(self, text_bytes):
        """Digest matches hashlib and is 64 lowercase hex chars."""
        result = fingerprint(text_bytes, "note.txt")

        assert result.digest == hashlib.sha256(text_bytes).hexdigest()
        assert len(result.digest) == 64
        assert result.digest == result.digest.lower()

    def test_digest_is_deterministic(self, pe_bytes):
        """Identical bytes always produce the same digest and tags."""
        first = fingerprint(pe_bytes, "a.exe")
        second = fingerprint(pe_bytes, "renamed.bin")

        assert first.digest == second.digest
        assert first.tags == second.tags

    def test_size_and_filename(self, text_bytes):
        result = fingerprint(text_bytes, "note.txt")

        assert result.size_bytes == len(text_bytes)
        assert result.filename == "note.txt"
        assert result.observed_at


class TestTags:
    """Tests for executable format tagging."""

    def test_pe_header(self, pe_bytes):
        """MZ prefix is tagged as a PE executable and marked suspicious."""
        result = fingerprint(pe_bytes, "setup.exe")

        assert "pe_executable" in result.tags
        assert "elf_executable" not in result.tags
        assert result.verdict == Verdict.SUSPICIOUS

    def test_elf_header(self, elf_bytes):
        """ELF magic is tagged as an ELF executable and marked suspicious."""
        result = fingerprint(elf_bytes, "a.out")

        assert "elf_executable" in result.tags
        assert result.verdict == Verdict.SUSPICIOUS

    def test_plain_content_is_unknown(self, text_bytes):
        """Content matching neither signature stays unknown."""
        result = fingerprint(text_bytes, "note.txt")

        assert result.tags == frozenset()
        assert result.verdict == Verdict.UNKNOWN

    def test_two_byte_mz_is_enough(self):
        assert detect_tags(b"MZ") == frozenset({"pe_executable"})

    def test_truncated_elf_magic_is_not_tagged(self):
        assert detect_tags(b"\x7fEL") == frozenset()

    def test_single_byte_and_lowercase_mz(self):
        assert detect_tags(b"M") == frozenset()
        assert detect_tags(b"mz\x00\x00") == frozenset()

    def test_never_clean_or_malicious(self, pe_bytes, elf_bytes, text_bytes):
        """The local check only ever says suspicious or unknown."""
        for content in (pe_bytes, elf_bytes, text_bytes, b"\x00"):
            assert fingerprint(content, "f").verdict in (Verdict.SUSPICIOUS, Verdict.UNKNOWN)
