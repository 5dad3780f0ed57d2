"""HTTP API for hablar."""
