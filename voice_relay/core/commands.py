from __future__ import annotations
import os
import unicodedata
import yaml
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


class CommandTableError(ValueError):
    pass


PARAM_TYPES = {"int": int}


def normalize_keyword(word: str) -> str:
    return unicodedata.normalize("NFC", word).strip().lower()


@dataclass(frozen=True)
class ParamSpec:
    name: str
    type: str = "int"
    default: Any = None
    minimum: Optional[int] = None
    maximum: Optional[int] = None

    def accepts(self, value: Any) -> bool:
        if not isinstance(value, PARAM_TYPES[self.type]):
            return False
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True


@dataclass(frozen=True)
class CommandSpec:
    """One entry of the command table.

    ``patterns`` is a tuple of keyword groups; the spec matches when every
    keyword of any one group is contained in the utterance.
    """
    id: str
    patterns: Tuple[Tuple[str, ...], ...]
    params: Tuple[ParamSpec, ...] = ()
    action: str = ""
    shell: Tuple[str, ...] = field(default=())

    def __post_init__(self):
        if not self.patterns or not all(self.patterns):
            raise CommandTableError(f"Command {self.id!r} needs at least one keyword pattern")
        groups = tuple(tuple(normalize_keyword(k) for k in group) for group in self.patterns)
        if any(not k for group in groups for k in group):
            raise CommandTableError(f"Command {self.id!r} has an empty keyword")
        object.__setattr__(self, "patterns", groups)
        if not self.action:
            object.__setattr__(self, "action", self.id.upper().replace("-", "_"))


ANGLE = ParamSpec("angle", "int", default=90, minimum=0, maximum=360)

DEFAULT_COMMANDS: Tuple[CommandSpec, ...] = (
    CommandSpec("stop", (("stop",), ("arrête",)), action="STOP"),
    CommandSpec("rotate-right", (("droite",),), (ANGLE,), action="TOURNER_DROITE {{ angle }}"),
    CommandSpec("rotate-left", (("gauche",),), (ANGLE,), action="TOURNER_GAUCHE {{ angle }}"),
    CommandSpec("report-position", (("position",),), action="POSITION"),
    CommandSpec("scan", (("scan",),), action="SCAN"),
    CommandSpec("autopilot", (("autopilot",), ("pilote", "automatique")), action="AUTOPILOT"),
)


# ------------------------------------------------------------
# YAML loading
# ------------------------------------------------------------

def _as_patterns(cid: str, raw: Any) -> Tuple[Tuple[str, ...], ...]:
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list) or not raw:
        raise CommandTableError(f"Command {cid!r}: 'patterns' must be a non-empty list")
    groups = []
    for item in raw:
        if isinstance(item, str):
            item = item.split()
        if not isinstance(item, list) or not all(isinstance(k, str) for k in item):
            raise CommandTableError(f"Command {cid!r}: bad pattern {item!r}")
        groups.append(tuple(item))
    return tuple(groups)


def _as_params(cid: str, raw: Any) -> Tuple[ParamSpec, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, dict):
        raise CommandTableError(f"Command {cid!r}: 'params' must be a mapping")
    params = []
    for name, opts in raw.items():
        if opts is None:
            opts = {}
        if not isinstance(opts, dict):
            raise CommandTableError(f"Command {cid!r}: parameter {name!r} must be a mapping")
        ptype = opts.get("type", "int")
        if ptype not in PARAM_TYPES:
            raise CommandTableError(f"Command {cid!r}: unknown parameter type {ptype!r}")
        for bound in ("min", "max"):
            value = opts.get(bound)
            if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
                raise CommandTableError(f"Command {cid!r}: {name}.{bound} must be an integer, got {value!r}")
        param = ParamSpec(
            name=str(name),
            type=ptype,
            default=opts.get("default"),
            minimum=opts.get("min"),
            maximum=opts.get("max"),
        )
        if param.default is not None and not param.accepts(param.default):
            raise CommandTableError(f"Command {cid!r}: default {param.default!r} is not a valid {name}")
        params.append(param)
    return tuple(params)


def _as_spec(cid: str, data: Any) -> CommandSpec:
    if not isinstance(data, dict):
        raise CommandTableError(f"Command {cid!r} must be a mapping")
    if "patterns" not in data:
        raise CommandTableError(f"Command {cid!r} has no patterns")
    shell = data.get("shell") or []
    if isinstance(shell, str):
        shell = [shell]
    return CommandSpec(
        id=str(cid),
        patterns=_as_patterns(cid, data["patterns"]),
        params=_as_params(cid, data.get("params")),
        action=str(data.get("action", "")),
        shell=tuple(str(s) for s in shell),
    )


def load_commands(path: str, base: Tuple[CommandSpec, ...] = DEFAULT_COMMANDS) -> Tuple[CommandSpec, ...]:
    """Merge a YAML command file into ``base``.

    Known ids are replaced where they stand, new ids go to the end of the
    priority order.
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise CommandTableError(f"invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise CommandTableError(f"{path}: expected a mapping of command ids")

    table: Dict[str, CommandSpec] = {spec.id: spec for spec in base}
    for cid, entry in data.items():
        table[str(cid)] = _as_spec(str(cid), entry)
    return tuple(table.values())


def command_table(path: Optional[str] = None) -> Tuple[CommandSpec, ...]:
    if not path:
        return DEFAULT_COMMANDS
    if not os.path.isfile(path):
        raise CommandTableError(f"Command file not found: {path}")
    return load_commands(path)
