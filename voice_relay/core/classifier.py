"""Keyword classification of finalized utterances.

``classify`` is a pure function of the utterance and the command table. It
matches by substring containment, so an unrelated sentence that mentions a
command word ("je ne veux pas qu'il stop") is classified as that command.
"""
from __future__ import annotations
import re
import string
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from voice_relay.core.commands import DEFAULT_COMMANDS, CommandSpec, ParamSpec


@dataclass(frozen=True)
class Command:
    id: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    missing: Tuple[str, ...] = ()

    @property
    def parameter_missing(self) -> bool:
        return bool(self.missing)


@dataclass(frozen=True)
class NoMatch:
    pass


NO_MATCH = NoMatch()

ClassificationResult = Union[Command, NoMatch]


_STRIP_CHARS = string.punctuation + "«»“”‘’…¡¿–—° \t\n"
_SPACES = re.compile(r"\s+")
_DIGITS = re.compile(r"\d+")
# longer runs are far outside any parameter range
_MAX_DIGITS = 9


def normalize(utterance: str) -> str:
    text = unicodedata.normalize("NFC", utterance).lower()
    text = _SPACES.sub(" ", text)
    return text.strip(_STRIP_CHARS)


# ------------------------------------------------------------
# French number words
# ------------------------------------------------------------

_UNITS = {
    "zéro": 0, "zero": 0, "un": 1, "une": 1, "deux": 2, "trois": 3, "quatre": 4,
    "cinq": 5, "six": 6, "sept": 7, "huit": 8, "neuf": 9, "dix": 10,
    "onze": 11, "douze": 12, "treize": 13, "quatorze": 14, "quinze": 15, "seize": 16,
    "vingt": 20, "vingts": 20, "trente": 30, "quarante": 40, "cinquante": 50,
    "soixante": 60, "septante": 70, "huitante": 80, "octante": 80, "nonante": 90,
}
_HUNDREDS = {"cent", "cents"}
# articles, never the first word of a number
_ARTICLES = {"un", "une"}


def _is_number_word(word: str) -> bool:
    return word in _UNITS or word in _HUNDREDS


def _words_value(words: List[str]) -> int:
    current = 0
    for word in words:
        if word in _HUNDREDS:
            current = (current or 1) * 100
        elif word in ("vingt", "vingts") and current % 100 == 4:
            # quatre-vingt
            current += 76
        else:
            current += _UNITS[word]
    return current


def _tokens(text: str) -> List[str]:
    out = []
    for token in text.split():
        token = token.replace("’", "'").strip(_STRIP_CHARS)
        if "'" in token:
            token = token.rsplit("'", 1)[1]
        out.extend(part for part in token.split("-") if part)
    return out


def first_integer(text: str) -> Optional[int]:
    """First integer in ``text``, written in digits or in French words."""
    tokens = _tokens(text)
    i = 0
    while i < len(tokens):
        token = tokens[i]
        m = _DIGITS.match(token)
        if m:
            digits = m.group()
            return int(digits) if len(digits) <= _MAX_DIGITS else None
        if _is_number_word(token) and token not in _ARTICLES:
            words = [token]
            i += 1
            while i < len(tokens):
                nxt = tokens[i]
                if nxt == "et" and i + 1 < len(tokens) and _is_number_word(tokens[i + 1]):
                    i += 1
                    continue
                if not _is_number_word(nxt):
                    break
                words.append(nxt)
                i += 1
            return _words_value(words)
        i += 1
    return None


# ------------------------------------------------------------
# Matching
# ------------------------------------------------------------

def _match_end(text: str, spec: CommandSpec) -> Optional[int]:
    """End offset of the first fully present keyword group, or None."""
    for group in spec.patterns:
        ends = []
        for keyword in group:
            pos = text.find(keyword)
            if pos < 0:
                break
            ends.append(pos + len(keyword))
        else:
            return max(ends)
    return None


def _extract(params: Iterable[ParamSpec], rest: str) -> Tuple[Dict[str, Any], Tuple[str, ...]]:
    values: Dict[str, Any] = {}
    missing: List[str] = []
    for param in params:
        value = first_integer(rest) if param.type == "int" else None
        if value is None or not param.accepts(value):
            value = param.default
            missing.append(param.name)
        values[param.name] = value
    return values, tuple(missing)


def classify(utterance: str, table: Tuple[CommandSpec, ...] = DEFAULT_COMMANDS) -> ClassificationResult:
    if not isinstance(utterance, str):
        return NO_MATCH
    text = normalize(utterance)
    if not text:
        return NO_MATCH
    for spec in table:
        end = _match_end(text, spec)
        if end is None:
            continue
        parameters, missing = _extract(spec.params, text[end:])
        return Command(spec.id, parameters, missing)
    return NO_MATCH


def find_spec(command_id: str, table: Tuple[CommandSpec, ...] = DEFAULT_COMMANDS) -> CommandSpec:
    for spec in table:
        if spec.id == command_id:
            return spec
    raise KeyError(f"Unknown command: {command_id}")
