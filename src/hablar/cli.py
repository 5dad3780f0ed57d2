"""Typer CLI definition for hablar."""

import asyncio
import json
import logging
from pathlib import Path

import typer

from .config import load_config
from .core import Gateway, build_gateway, speak_text
from .errors import CircuitOpenError, ExhaustedError, RequestValidationError

app = typer.Typer(help="Spanish tutor gateway: resilient speech and text generation")

_state: dict[str, object] = {"debug": False, "config_path": None}


def _gateway() -> Gateway:
    return build_gateway(load_config(_state["config_path"]))  # type: ignore[arg-type]


def _fail(message: str, error: Exception) -> None:
    if _state["debug"]:
        typer.echo(f"Debug - {message}: {error!r}", err=True)
    else:
        typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(1)


@app.callback()
def main(
    debug: bool = typer.Option(
        False, "--debug", help="Show verbose error messages and provider activity"
    ),
    config: Path | None = typer.Option(
        None, "--config", help="Config file (defaults to ~/.config/hablar/config.toml)"
    ),
) -> None:
    """Configure logging and the config location for every command."""
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
    _state["debug"] = debug
    _state["config_path"] = config


@app.command()
def speak(
    text: str = typer.Argument(..., help="Text to convert to speech"),
    language: str = typer.Option("es", "-l", "--language", help="Language code"),
    gender: str = typer.Option("female", "-g", "--gender", help="Voice gender"),
    output: Path | None = typer.Option(
        None, "-o", "--output", help="Save audio to file"
    ),
) -> None:
    """Synthesize speech through the provider fallback chain."""
    gateway = _gateway()
    try:
        result = asyncio.run(
            speak_text(
                gateway.tts,
                text,
                language=language,
                gender=gender,
                output_file=str(output) if output else None,
            )
        )
    except RequestValidationError as e:
        _fail("Invalid request", e)
    except ExhaustedError as e:
        _fail("All providers failed", e)
    except OSError as e:
        _fail("File system error", e)
    else:
        typer.echo(
            f"Provider: {result.provider} ({result.content_type}, "
            f"{len(result.audio)} bytes)"
        )
        if output:
            typer.echo(f"Audio saved to {output}")


@app.command()
def status() -> None:
    """Show which TTS providers are configured."""
    gateway = _gateway()
    for name, configured in gateway.tts.provider_status().items():
        mark = "✓" if configured else "✗"
        typer.echo(f"{mark} {name}")
    if gateway.breaker.is_open():
        typer.echo(f"Tutor resting: {gateway.breaker.retry_after():.0f}s left")


@app.command()
def chat(
    message: str | None = typer.Argument(
        None, help="Message for the tutor (omit with --start)"
    ),
    session: str = typer.Option("cli", "--session", help="Session id"),
    topic: str = typer.Option("General", "--topic", help="Conversation topic"),
    level: str = typer.Option("beginner", "--level", help="Learner level"),
    name: str | None = typer.Option(None, "--name", help="Learner's name"),
    start: bool = typer.Option(
        False, "--start", help="Reset the session and ask for an opening line"
    ),
) -> None:
    """Send a message to the tutor."""
    if not start and message is None:
        _fail(
            "Invalid request",
            RequestValidationError("MESSAGE is required unless --start is given"),
        )
    gateway = _gateway()
    try:
        if start:
            reply = asyncio.run(
                gateway.conversation.start_conversation(session, topic, level, name)
            )
        else:
            reply = asyncio.run(
                gateway.conversation.generate_reply(session, message, topic, level, name)
            )
    except RequestValidationError as e:
        _fail("Invalid request", e)
    except CircuitOpenError as e:
        _fail("Circuit open", e)
    except ExhaustedError as e:
        _fail("All models failed", e)
    else:
        typer.echo(reply.text)
        if reply.correction:
            typer.echo(f"Correction: {reply.correction}")
        for suggestion in reply.suggestions:
            typer.echo(f"  - {suggestion}")
        typer.echo(f"[{reply.model}]", err=True)


@app.command()
def dialogue(
    topic: str = typer.Argument(..., help="Dialogue topic"),
    level: str = typer.Option("intermediate", "--level", help="Learner level"),
) -> None:
    """Generate a practice dialogue as JSON."""
    gateway = _gateway()
    try:
        result = asyncio.run(gateway.dialogue.generate_dialogue(topic, level))
    except RequestValidationError as e:
        _fail("Invalid request", e)
    except CircuitOpenError as e:
        _fail("Circuit open", e)
    except ExhaustedError as e:
        _fail("All models failed", e)
    else:
        typer.echo(json.dumps(result.model_dump(), ensure_ascii=False, indent=2))


@app.command()
def grammar(
    text: str = typer.Argument(..., help="Spanish text to check"),
    context: str = typer.Option(
        "General conversation", "--context", help="Where the text came from"
    ),
) -> None:
    """Score text against the offline grammar rules."""
    report = _gateway().grammar.analyze(text, context)
    typer.echo(f"Score: {report.score}/100")
    for c in report.corrections:
        typer.echo(f"  {c.original} -> {c.corrected}: {c.explanation}")
    typer.echo(report.general_feedback)


@app.command("cache-stats")
def cache_stats() -> None:
    """Show audio cache size."""
    gateway = _gateway()
    if gateway.tts.cache is None:
        typer.echo("Cache disabled")
        return
    stats = gateway.tts.cache.stats()
    typer.echo(f"Entries: {stats['entries']}")
    typer.echo(f"Size: {stats['bytes'] / 1024:.1f} KiB")


@app.command("cache-clear")
def cache_clear() -> None:
    """Remove every cached audio entry."""
    gateway = _gateway()
    if gateway.tts.cache is None:
        typer.echo("Cache disabled")
        return
    removed = gateway.tts.cache.clear()
    typer.echo(f"Removed {removed} entries")


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address"),
    port: int | None = typer.Option(None, "--port", help="Bind port"),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    from .server.app import create_app

    config = load_config(_state["config_path"])  # type: ignore[arg-type]
    uvicorn.run(
        create_app(build_gateway(config)),
        host=host or config.http.host,
        port=port or config.http.port,
        log_level="debug" if _state["debug"] else "info",
    )
