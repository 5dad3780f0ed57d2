"""hablar - resilient speech and text generation gateway for a Spanish tutor."""

__version__ = "0.1.0"
__all__ = ["build_gateway", "load_config"]


def __getattr__(name: str):  # type: ignore[no-untyped-def]
    if name == "build_gateway":
        from .core import build_gateway

        return build_gateway
    if name == "load_config":
        from .config import load_config

        return load_config
    raise AttributeError(f"module 'hablar' has no attribute {name!r}")
