from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple
from rich.console import Console
from rich.markup import escape

from voice_relay.core.classifier import ClassificationResult, Command, classify, find_spec
from voice_relay.core.commands import DEFAULT_COMMANDS, CommandSpec
from voice_relay.core.executor import CommandExecutor
from voice_relay.logger import get_logger
from voice_relay.nlp.relay import Relay, RelayError
from voice_relay.transcript import Transcript, TranscriptDecodeError, decode_partial, decode_result

log = get_logger(__name__)


@dataclass
class Outcome:
    transcript: Transcript
    result: ClassificationResult
    action: Optional[str] = None
    exit_code: Optional[int] = None
    reply: Optional[str] = None
    error: Optional[str] = None


class VoicePipeline:
    """Finalized recognizer result -> command execution or language-model relay."""

    def __init__(self, executor: CommandExecutor, relay: Relay,
                 table: Tuple[CommandSpec, ...] = DEFAULT_COMMANDS, console: Optional[Console] = None):
        self.executor = executor
        self.relay = relay
        self.table = table
        self.console = console or Console()

    def show_partial(self, raw: str):
        try:
            partial = decode_partial(raw)
        except TranscriptDecodeError as e:
            log.debug("Skipping partial: %s", e)
            return
        if partial:
            self.console.print(f"[dim]{escape(partial)}[/dim]", end="\r", soft_wrap=True)

    async def handle(self, raw: str) -> Optional[Outcome]:
        try:
            transcript = decode_result(raw)
        except TranscriptDecodeError as e:
            log.warning("Dropping recognizer result: %s", e)
            return None
        if not transcript:
            return None
        return await self.handle_transcript(transcript)

    async def handle_transcript(self, transcript: Transcript) -> Outcome:
        self.console.print(f"Transcription : {escape(transcript.text)}")
        if transcript.confidence is not None:
            log.debug("Confidence %.2f for %r", transcript.confidence, transcript.text)

        result = classify(transcript.text, self.table)
        outcome = Outcome(transcript=transcript, result=result)

        if isinstance(result, Command):
            plan = self.executor.build(find_spec(result.id, self.table), result)
            outcome.action = plan.action
            outcome.exit_code = self.executor.run(plan)
            return outcome

        self.console.print("[bold yellow]>>> \\[RELAY LLM] Envoi à l'IA...[/bold yellow]")
        try:
            outcome.reply = await self.relay.send(transcript.text)
        except RelayError as e:
            log.error("Relay failed: %s", e)
            outcome.error = str(e)
            return outcome
        if outcome.reply:
            self.console.print(f"[cyan]{escape(outcome.reply)}[/cyan]")
        return outcome
