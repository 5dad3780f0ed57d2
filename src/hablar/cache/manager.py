"""Content-addressed cache manager for synthesized audio.

Maps a deterministic fingerprint of a synthesis request to a previously
produced artifact. Audio lives on the filesystem, metadata in SQLite.
A working cache is an optimization, never a correctness requirement:
read and write failures are logged and reported as misses/no-ops.
"""

import hashlib
import json
import logging
import os
import tempfile
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path

from ..tts.models import Artifact, SynthesisRequest
from . import get_cache_dir
from .models import CacheEntry
from .storage import CacheStorage

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "audio/mpeg": ".mp3",
    "audio/wav": ".wav",
    "audio/ogg": ".ogg",
}


def fingerprint(request: SynthesisRequest) -> str:
    """Compute the cache fingerprint for a synthesis request.

    SHA-256 over the sorted-key compact JSON of the request's canonical
    fields. Requests are normalized on construction (text stripped,
    language and gender lower-cased, gender defaulted), so equal requests
    always produce equal fingerprints.

    Args:
        request: Synthesis request

    Returns:
        64-character hex digest
    """
    canonical = json.dumps(
        request.canonical_fields(),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class ContentAddressedCache:
    """Fingerprint-keyed artifact cache with LRU and TTL bounds.

    Example:
        cache = ContentAddressedCache(Path("/tmp/hablar-cache"), max_entries=1000)

        key = fingerprint(request)
        artifact = await cache.get(key)
        if artifact is None:
            artifact = await provider.synthesize(request)
            await cache.put(key, artifact)
    """

    def __init__(
        self,
        cache_dir: Path | None = None,
        max_entries: int = 5000,
        ttl_seconds: float | None = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the cache.

        Args:
            cache_dir: Directory for cache storage (defaults to ~/.cache/hablar)
            max_entries: Maximum number of entries kept; 0 disables the bound
            ttl_seconds: Entries older than this are treated as misses; None
                disables expiry
            now: Clock used for timestamps

        Raises:
            ValueError: If max_entries or ttl_seconds is negative
        """
        if max_entries < 0:
            raise ValueError(f"max_entries must be >= 0, got {max_entries}")
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")

        self.cache_dir = cache_dir or get_cache_dir()
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.audio_dir = self.cache_dir / "audio"
        self.audio_dir.mkdir(exist_ok=True)

        self.max_entries = max_entries
        self.ttl = timedelta(seconds=ttl_seconds) if ttl_seconds else None
        self._now = now
        self.storage = CacheStorage(self.cache_dir)

        logger.debug(
            f"ContentAddressedCache initialized at {self.cache_dir} "
            f"(max_entries={max_entries}, ttl={ttl_seconds})"
        )

    async def get(self, key: str) -> Artifact | None:
        """Look up a cached artifact.

        Args:
            key: Request fingerprint

        Returns:
            Cached artifact, or None on miss, expiry or storage failure
        """
        try:
            entry = self.storage.get(key)
            if entry is None:
                logger.info(f"Cache MISS: {key[:12]}")
                return None

            if self._is_expired(entry):
                logger.info(f"Cache EXPIRED: {key[:12]}")
                self._remove(entry)
                return None

            if not entry.audio_path.exists():
                logger.warning(
                    f"Cache corruption: metadata exists but audio file missing: "
                    f"{entry.audio_path}"
                )
                self.storage.delete(key)
                return None

            audio = entry.audio_path.read_bytes()
            self.storage.touch(key, self._now())
            logger.info(f"Cache HIT: {key[:12]} ({entry.provider})")
            return Artifact(
                audio=audio, content_type=entry.content_type, provider=entry.provider
            )

        except Exception as e:
            logger.error(f"Error during cache lookup: {e}")
            # Graceful degradation - return cache miss rather than breaking TTS
            return None

    async def put(self, key: str, artifact: Artifact) -> None:
        """Store an artifact under a fingerprint.

        The payload is written to a temporary file and moved into place, so
        concurrent writers of the same fingerprint never leave a torn file;
        the last writer wins.

        Args:
            key: Request fingerprint
            artifact: Artifact to cache
        """
        tmp_path: Path | None = None
        try:
            extension = _EXTENSIONS.get(artifact.content_type, ".bin")
            audio_path = self.audio_dir / f"{key}{extension}"

            fd, tmp_name = tempfile.mkstemp(dir=self.audio_dir, suffix=".tmp")
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "wb") as f:
                f.write(artifact.audio)
            os.replace(tmp_path, audio_path)
            tmp_path = None

            now = self._now()
            self.storage.save(
                CacheEntry(
                    fingerprint=key,
                    provider=artifact.provider,
                    content_type=artifact.content_type,
                    audio_path=audio_path,
                    size=len(artifact.audio),
                    created_at=now,
                    last_accessed=now,
                )
            )
            logger.info(f"Saved to cache: {key[:12]} ({artifact.provider})")

            self._evict()

        except Exception as e:
            logger.warning(f"Could not write to cache: {e}")
        finally:
            if tmp_path is not None and tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError as cleanup_error:
                    logger.warning(
                        f"Failed to clean up partial audio file: {cleanup_error}"
                    )

    def stats(self) -> dict[str, int]:
        """Return entry count and total cached bytes."""
        entries, total = self.storage.stats()
        return {"entries": entries, "bytes": total}

    def clear(self) -> int:
        """Remove every cached entry.

        Returns:
            Number of entries removed
        """
        entries = self.storage.all()
        for entry in entries:
            self._remove(entry)
        logger.info(f"Cleared {len(entries)} cache entries")
        return len(entries)

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self.ttl is not None and self._now() - entry.created_at > self.ttl

    def _evict(self) -> None:
        """Drop expired entries and entries beyond the LRU bound."""
        if self.ttl is not None:
            for entry in self.storage.created_before(self._now() - self.ttl):
                self._remove(entry)
        if self.max_entries:
            stale = self.storage.least_recently_used(keep=self.max_entries)
            for entry in stale:
                self._remove(entry)
            if stale:
                logger.debug(f"Evicted {len(stale)} least recently used entries")

    def _remove(self, entry: CacheEntry) -> None:
        self.storage.delete(entry.fingerprint)
        try:
            entry.audio_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove cached audio {entry.audio_path}: {e}")
