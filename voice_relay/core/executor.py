from __future__ import annotations
import subprocess
from dataclasses import dataclass
from typing import List, Optional
from jinja2 import Template
from rich.console import Console
from rich.markup import escape

from voice_relay.core.classifier import Command
from voice_relay.core.commands import CommandSpec
from voice_relay.logger import get_logger

log = get_logger(__name__)


@dataclass
class Plan:
    command: Command
    action: str
    shell: List[str]


class CommandExecutor:
    def __init__(self, allow_shell: bool = False, console: Optional[Console] = None):
        self.allow_shell = allow_shell
        self.console = console or Console()

    def _render(self, template: str, command: Command) -> str:
        return Template(template).render(**(command.parameters or {})).strip()

    def build(self, spec: CommandSpec, command: Command) -> Plan:
        """
        Renders the action label and shell lines of ``spec`` with the command parameters.
        """
        if spec.id != command.id:
            raise ValueError(f"Spec {spec.id!r} does not describe command {command.id!r}")
        return Plan(
            command=command,
            action=self._render(spec.action, command),
            shell=[self._render(line, command) for line in spec.shell],
        )

    def run(self, plan: Plan) -> int:
        self.console.print(f"[bold green]>>> COMMANDE DÉTECTÉE : \\[{escape(plan.action)}][/bold green]")
        if plan.command.missing:
            log.info("Default used for %s: %s", plan.command.id, ", ".join(plan.command.missing))

        code = 0
        for line in plan.shell:
            if not self.allow_shell:
                log.warning("Shell disabled (ALLOW_SHELL=0), skipped: %s", line)
                continue
            log.info("Running: %s", line)
            p = subprocess.run(line, shell=True)
            code = p.returncode
            if code != 0:
                log.error("Command %r exited with %d", line, code)
        return code
