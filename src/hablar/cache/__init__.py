"""Content-addressed cache for synthesized audio."""

import os
from pathlib import Path


def get_cache_dir() -> Path:
    """Get or create the hablar cache directory.

    Priority:
    1. $XDG_CACHE_HOME/hablar/
    2. ~/.cache/hablar/

    Creates the ``audio`` subdirectory for audio files as well.

    Returns:
        Path to the cache directory
    """
    cache_home = os.environ.get("XDG_CACHE_HOME")
    if cache_home:
        cache_dir = Path(cache_home) / "hablar"
    else:
        cache_dir = Path.home() / ".cache" / "hablar"
    cache_dir.mkdir(parents=True, exist_ok=True)

    # Create audio subdirectory for audio files
    audio_dir = cache_dir / "audio"
    audio_dir.mkdir(exist_ok=True)

    return cache_dir
