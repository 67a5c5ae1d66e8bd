import asyncio
from typing import Optional
import typer
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from voice_relay.audio import AudioSession, AudioSessionError, list_input_devices
from voice_relay.config import ConfigError, Settings
from voice_relay.core.classifier import Command, classify
from voice_relay.core.commands import CommandTableError, command_table
from voice_relay.core.executor import CommandExecutor
from voice_relay.logger import get_logger
from voice_relay.nlp.relay import RelayError, make_relay
from voice_relay.pipeline import VoicePipeline


app = typer.Typer(help="Voice commands from the microphone, everything else to a language model.")


def _settings() -> Settings:
    try:
        return Settings.from_env()
    except ConfigError as e:
        print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


def _table(settings: Settings):
    try:
        return command_table(settings.commands_file)
    except CommandTableError as e:
        print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


@app.command()
def listen(
    model_path: Optional[str] = typer.Option(None, "--model-path", "-m", help="Vosk model directory"),
    device: Optional[int] = typer.Option(None, "--device", "-d", help="Input device index"),
    engine: Optional[str] = typer.Option(None, "--engine", "-e", help="openai, ollama, none or auto"),
):
    """Listen on the microphone and route every finalized utterance"""
    settings = _settings()
    if model_path:
        settings.vosk_model_path = model_path
    if device is not None:
        settings.input_device = device
    if engine:
        settings.engine = engine.lower()
    log = get_logger("voice_relay", settings.log_level)

    table = _table(settings)
    console = Console()
    try:
        relay = make_relay(settings)
    except RelayError as e:
        print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)
    pipeline = VoicePipeline(
        executor=CommandExecutor(allow_shell=settings.allow_shell, console=console),
        relay=relay,
        table=table,
        console=console,
    )

    session = AudioSession(
        settings.vosk_model_path,
        sample_rate=settings.sample_rate,
        frames_per_buffer=settings.frames_per_buffer,
        device_index=settings.input_device,
        max_alternatives=settings.max_alternatives,
    )

    # plain event loop: Ctrl+C must raise KeyboardInterrupt out of the blocking read
    loop = asyncio.new_event_loop()
    try:
        with session:
            print("Listening... Speak a command or ask a question.")
            print("Commands: " + ", ".join(spec.id for spec in table))
            try:
                for kind, raw in session.events():
                    if kind == "final":
                        loop.run_until_complete(pipeline.handle(raw))
                    else:
                        pipeline.show_partial(raw)
            except KeyboardInterrupt:
                pass
            except IOError as e:
                log.error("Audio read failed: %s", e)
            loop.run_until_complete(pipeline.handle(session.flush()))
    except AudioSessionError as e:
        print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)
    finally:
        loop.close()


@app.command(name="classify")
def classify_text(text: str):
    """Classify TEXT as a voice command without using the microphone"""
    settings = _settings()
    result = classify(text, _table(settings))
    if isinstance(result, Command):
        params = ", ".join(f"{k}={v}" for k, v in result.parameters.items())
        print(f"[green]{result.id}[/green] {params}".rstrip())
        if result.missing:
            print(f"[yellow]default used for: {', '.join(result.missing)}[/yellow]")
    else:
        print("[yellow]no match[/yellow] (would go to the relay)")


@app.command()
def commands():
    """Show the command table in priority order"""
    settings = _settings()
    table = Table("#", "id", "keywords", "parameters", "action")
    for i, spec in enumerate(_table(settings), 1):
        keywords = " | ".join(" + ".join(group) for group in spec.patterns)
        params = ", ".join(f"{p.name}={p.default}" for p in spec.params)
        table.add_row(str(i), spec.id, keywords, params, spec.action)
    Console().print(table)


@app.command()
def devices():
    """List audio input devices"""
    try:
        for index, name, rate in list_input_devices():
            print(f"{index}: {name} ({rate} Hz)")
    except ImportError as e:
        print(f"[red]Error:[/red] audio backend unavailable: {e}")
        raise typer.Exit(code=1)


def main():
    app()

if __name__ == '__main__':
    main()
