"""Data models for cache storage."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


@dataclass
class CacheEntry:
    """Cache entry containing artifact metadata and audio file reference.

    Attributes:
        fingerprint: SHA-256 digest of the request's canonical fields
        provider: Provider that originally produced the audio
        content_type: MIME type of the cached payload
        audio_path: Path to the cached audio file
        size: Payload size in bytes
        created_at: When this entry was created
        last_accessed: When this entry was last served
    """

    fingerprint: str
    provider: str
    content_type: str
    audio_path: Path
    size: int
    created_at: datetime
    last_accessed: datetime
