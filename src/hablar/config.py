"""Configuration management for hablar.

Loads configuration from $XDG_CONFIG_HOME/hablar/config.toml
(~/.config/hablar/config.toml by default).
Priority chain: CLI flags > env vars > config file.
API keys are only ever read from the environment.
"""

import os
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path


def get_config_dir() -> Path:
    """Return the XDG-compliant configuration directory."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "hablar"
    return Path.home() / ".config" / "hablar"


# Highest quality / most expensive first, cheapest last.
DEFAULT_TTS_ORDER = ("elevenlabs", "polly", "google")

DEFAULT_CONFIG = """\
# hablar configuration

[tts]
# Providers tried in order: "elevenlabs", "polly", "google", "web_speech"
order = ["elevenlabs", "polly", "google"]

# Seconds before a single provider attempt is abandoned
timeout = 30.0

# Voices of this gender skip the paid chain and go straight to
# male_override_provider. Set to "" to disable.
male_override_provider = "web_speech"

[cache]
enabled = true

# Defaults to $XDG_CACHE_HOME/hablar
# dir = "/var/cache/hablar"

# Least recently used entries beyond this count are evicted (0 = unbounded)
max_entries = 5000

# Entries older than this are regenerated (0 = never expire)
ttl_seconds = 0

[generation]
# Seconds before a single model attempt is abandoned
timeout = 30.0

# Seconds the tutor rests after a quota error
cooldown_seconds = 300

# Messages kept per conversation session
history_window = 10

[storage]
# SQLite file holding conversation history
history_db = "~/.local/share/hablar/history.db"

[http]
# Bind address: "127.0.0.1" = localhost only, "0.0.0.0" = allow LAN access
host = "127.0.0.1"
port = 8787

# API keys are read from environment variables, not this file:
#   ELEVENLABS_API_KEY                         - ElevenLabs
#   AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY  - Amazon Polly (AWS_REGION optional)
#   GOOGLE_CLOUD_API_KEY                       - Google Cloud TTS
#   GOOGLE_GENAI_API_KEY                       - Gemini models
#   OPENAI_API_KEY                             - OpenAI models
"""


@dataclass(frozen=True)
class TTSConfig:
    """TTS provider configuration."""

    order: tuple[str, ...]
    timeout: float
    male_override_provider: str | None


@dataclass(frozen=True)
class CacheConfig:
    """Audio cache configuration."""

    enabled: bool
    dir: Path | None
    max_entries: int
    ttl_seconds: float | None


@dataclass(frozen=True)
class GenerationConfig:
    """AI generation configuration."""

    timeout: float
    cooldown_seconds: float
    history_window: int


@dataclass(frozen=True)
class StorageConfig:
    """Conversation history storage configuration."""

    history_db: Path


@dataclass(frozen=True)
class HTTPConfig:
    """HTTP API configuration."""

    host: str
    port: int


@dataclass(frozen=True)
class HablarConfig:
    """Top-level hablar configuration."""

    tts: TTSConfig
    cache: CacheConfig
    generation: GenerationConfig
    storage: StorageConfig
    http: HTTPConfig


_cached_config: HablarConfig | None = None


def generate_config(path: Path | None = None) -> Path:
    """Generate the default config file."""
    path = path or get_config_dir() / "config.toml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG)
    return path


def parse_config(data: dict) -> HablarConfig:
    """Build a HablarConfig from parsed TOML data with env var overrides.

    Missing keys take the defaults shown in DEFAULT_CONFIG.

    Raises:
        ValueError: If a value has the wrong type or range
    """
    tts = data.get("tts", {})
    cache = data.get("cache", {})
    generation = data.get("generation", {})
    storage = data.get("storage", {})
    http_cfg = data.get("http", {})

    order_env = os.getenv("HABLAR_TTS_ORDER")
    if order_env:
        order = tuple(name.strip() for name in order_env.split(",") if name.strip())
    else:
        order = tuple(tts.get("order", DEFAULT_TTS_ORDER))
    if not order:
        raise ValueError("tts.order must list at least one provider")

    override = os.getenv(
        "HABLAR_MALE_OVERRIDE_PROVIDER", tts.get("male_override_provider", "web_speech")
    )

    cache_dir = os.getenv("HABLAR_CACHE_DIR", cache.get("dir"))
    cache_enabled_env = os.getenv("HABLAR_CACHE_ENABLED")
    cache_enabled = (
        cache_enabled_env.lower() in ("1", "true", "yes")
        if cache_enabled_env is not None
        else bool(cache.get("enabled", True))
    )
    max_entries = int(cache.get("max_entries", 5000))
    if max_entries < 0:
        raise ValueError("cache.max_entries must be >= 0")
    ttl = float(cache.get("ttl_seconds", 0))

    window = int(generation.get("history_window", 10))
    if window < 1:
        raise ValueError("generation.history_window must be >= 1")

    port_str = os.getenv("HABLAR_HTTP_PORT", str(http_cfg.get("port", 8787)))

    return HablarConfig(
        tts=TTSConfig(
            order=order,
            timeout=float(tts.get("timeout", 30.0)),
            male_override_provider=override or None,
        ),
        cache=CacheConfig(
            enabled=cache_enabled,
            dir=Path(cache_dir).expanduser() if cache_dir else None,
            max_entries=max_entries,
            ttl_seconds=ttl if ttl > 0 else None,
        ),
        generation=GenerationConfig(
            timeout=float(generation.get("timeout", 30.0)),
            cooldown_seconds=float(generation.get("cooldown_seconds", 300)),
            history_window=window,
        ),
        storage=StorageConfig(
            history_db=Path(
                os.getenv(
                    "HABLAR_HISTORY_DB",
                    storage.get("history_db", "~/.local/share/hablar/history.db"),
                )
            ).expanduser(),
        ),
        http=HTTPConfig(
            host=os.getenv("HABLAR_HTTP_HOST", http_cfg.get("host", "127.0.0.1")),
            port=int(port_str),
        ),
    )


def load_config(path: Path | None = None) -> HablarConfig:
    """Load configuration from config file with env var overrides.

    On first run, generates the config file and exits so the user
    can review it before proceeding.

    Args:
        path: Explicit config file path (defaults to the XDG location)

    Returns:
        Loaded and validated HablarConfig.

    Raises:
        SystemExit: If config is missing (after generating) or invalid.
    """
    global _cached_config
    if _cached_config is not None and path is None:
        return _cached_config

    config_path = path or get_config_dir() / "config.toml"
    if not config_path.exists():
        generated = generate_config(config_path)
        print(
            f"No config found. Generated {generated}, review and run again.",
            file=sys.stderr,
        )
        raise SystemExit(1)

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
        config = parse_config(data)
    except (tomllib.TOMLDecodeError, ValueError, TypeError) as e:
        print(f"Invalid config {config_path}: {e}", file=sys.stderr)
        print("Edit it or delete it to regenerate.", file=sys.stderr)
        raise SystemExit(1) from None

    if path is None:
        _cached_config = config
    return config
