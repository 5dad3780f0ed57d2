"""Unit tests for ContentAddressedCache logic and fingerprinting."""

import sys
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from hablar.cache.manager import ContentAddressedCache, fingerprint
from hablar.tts.models import Artifact, SynthesisOptions, SynthesisRequest


def _artifact(provider: str = "polly", audio: bytes = b"audio") -> Artifact:
    return Artifact(audio=audio, content_type="audio/mpeg", provider=provider)


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class TestFingerprint:
    """Test fingerprint determinism and sensitivity."""

    def test_identical_requests_same_fingerprint(self) -> None:
        first = fingerprint(SynthesisRequest("Hola"))
        second = fingerprint(SynthesisRequest("Hola"))

        assert first == second
        assert len(first) == 64

    def test_normalized_inputs_same_fingerprint(self) -> None:
        plain = SynthesisRequest("Hola", "es")
        messy = SynthesisRequest(
            "  Hola ", "ES", SynthesisOptions(gender="FEMALE")
        )
        blank = SynthesisRequest("Hola", options=SynthesisOptions(gender=" "))

        assert fingerprint(plain) == fingerprint(messy)
        assert fingerprint(plain) == fingerprint(blank)
        assert blank.gender == "female"

    def test_gender_changes_fingerprint(self) -> None:
        female = SynthesisRequest("Hola", options=SynthesisOptions(gender="female"))
        male = SynthesisRequest("Hola", options=SynthesisOptions(gender="male"))

        assert fingerprint(female) != fingerprint(male)

    def test_text_case_changes_fingerprint(self) -> None:
        assert fingerprint(SynthesisRequest("hola")) != fingerprint(
            SynthesisRequest("Hola")
        )

    def test_provider_hint_changes_fingerprint(self) -> None:
        hinted = SynthesisRequest("Hola", options=SynthesisOptions(provider="polly"))

        assert fingerprint(hinted) != fingerprint(SynthesisRequest("Hola"))


class TestCacheValidation:
    def test_negative_max_entries_rejected(self, cache_dir: Path) -> None:
        with pytest.raises(ValueError, match="max_entries must be >= 0"):
            ContentAddressedCache(cache_dir, max_entries=-1)

    def test_non_positive_ttl_rejected(self, cache_dir: Path) -> None:
        with pytest.raises(ValueError, match="ttl_seconds must be positive"):
            ContentAddressedCache(cache_dir, ttl_seconds=0)


class TestCacheGetPut:
    """Test lookup, store and graceful degradation."""

    @pytest.mark.asyncio
    async def test_miss_then_hit(self, cache_dir: Path) -> None:
        cache = ContentAddressedCache(cache_dir)
        key = fingerprint(SynthesisRequest("Hola"))

        assert await cache.get(key) is None

        await cache.put(key, _artifact())
        hit = await cache.get(key)

        assert hit == _artifact()

    @pytest.mark.asyncio
    async def test_put_is_idempotent(self, cache_dir: Path) -> None:
        cache = ContentAddressedCache(cache_dir)
        key = fingerprint(SynthesisRequest("Hola"))

        await cache.put(key, _artifact())
        await cache.put(key, _artifact())

        assert cache.stats()["entries"] == 1
        assert (await cache.get(key)).audio == b"audio"

    @pytest.mark.asyncio
    async def test_last_writer_wins(self, cache_dir: Path) -> None:
        cache = ContentAddressedCache(cache_dir)
        key = fingerprint(SynthesisRequest("Hola"))

        await cache.put(key, _artifact("polly", b"first"))
        await cache.put(key, _artifact("google", b"second"))

        hit = await cache.get(key)
        assert hit.audio == b"second"
        assert hit.provider == "google"

    @pytest.mark.asyncio
    async def test_missing_audio_file_is_a_miss(self, cache_dir: Path) -> None:
        cache = ContentAddressedCache(cache_dir)
        key = fingerprint(SynthesisRequest("Hola"))
        await cache.put(key, _artifact())

        entry = cache.storage.get(key)
        entry.audio_path.unlink()

        assert await cache.get(key) is None
        assert cache.storage.get(key) is None

    @pytest.mark.asyncio
    async def test_storage_read_failure_returns_none(self, cache_dir: Path) -> None:
        cache = ContentAddressedCache(cache_dir)

        with patch.object(cache.storage, "get", side_effect=OSError("disk gone")):
            assert await cache.get("abc") is None

    @pytest.mark.asyncio
    async def test_storage_write_failure_does_not_raise(self, cache_dir: Path) -> None:
        cache = ContentAddressedCache(cache_dir)

        with patch.object(cache.storage, "save", side_effect=OSError("read-only")):
            await cache.put("abc", _artifact())

        assert cache.stats()["entries"] == 0
        assert not list(cache.audio_dir.glob("*.tmp"))

    @pytest.mark.asyncio
    async def test_directive_content_type_gets_bin_extension(
        self, cache_dir: Path
    ) -> None:
        cache = ContentAddressedCache(cache_dir)
        artifact = Artifact(
            audio=b"{}",
            content_type="application/vnd.hablar.web-speech+json",
            provider="web_speech",
        )

        await cache.put("k", artifact)

        assert cache.storage.get("k").audio_path.suffix == ".bin"


class TestEviction:
    """Test LRU and TTL bounds."""

    @pytest.mark.asyncio
    async def test_lru_bound(self, cache_dir: Path) -> None:
        clock = FakeClock()
        cache = ContentAddressedCache(cache_dir, max_entries=2, now=clock)

        await cache.put("a", _artifact())
        clock.advance(1)
        await cache.put("b", _artifact())
        clock.advance(1)
        await cache.get("a")  # refresh a
        clock.advance(1)
        await cache.put("c", _artifact())

        assert await cache.get("b") is None
        assert await cache.get("a") is not None
        assert await cache.get("c") is not None
        assert cache.stats()["entries"] == 2

    @pytest.mark.asyncio
    async def test_zero_max_entries_is_unbounded(self, cache_dir: Path) -> None:
        cache = ContentAddressedCache(cache_dir, max_entries=0)

        for i in range(5):
            await cache.put(f"k{i}", _artifact())

        assert cache.stats()["entries"] == 5

    @pytest.mark.asyncio
    async def test_ttl_expiry(self, cache_dir: Path) -> None:
        clock = FakeClock()
        cache = ContentAddressedCache(cache_dir, ttl_seconds=60, now=clock)

        await cache.put("k", _artifact())
        clock.advance(30)
        assert await cache.get("k") is not None

        clock.advance(31)
        assert await cache.get("k") is None
        assert cache.stats()["entries"] == 0


class TestStatsAndClear:
    @pytest.mark.asyncio
    async def test_stats_and_clear(self, cache_dir: Path) -> None:
        cache = ContentAddressedCache(cache_dir)
        await cache.put("a", _artifact(audio=b"1234"))
        await cache.put("b", _artifact(audio=b"56"))

        assert cache.stats() == {"entries": 2, "bytes": 6}
        assert cache.clear() == 2
        assert cache.stats() == {"entries": 0, "bytes": 0}
        assert not list(cache.audio_dir.glob("*.mp3"))
