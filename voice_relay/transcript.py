"""Decoding of the JSON envelopes produced by the Vosk recognizer.

Three final shapes exist depending on how the recognizer is configured::

    {"text": "stop"}
    {"result": [{"conf": 0.97, "word": "stop", ...}], "text": "stop"}       # SetWords(True)
    {"alternatives": [{"confidence": 212.3, "text": "stop"}, ...]}           # SetMaxAlternatives(n)

Partial results are ``{"partial": "..."}``.
"""
from __future__ import annotations
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union


class TranscriptDecodeError(ValueError):
    pass


@dataclass(frozen=True)
class Alternative:
    text: str
    confidence: Optional[float] = None


@dataclass(frozen=True)
class Transcript:
    text: str
    confidence: Optional[float] = None
    alternatives: Tuple[Alternative, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.text)


def _load(raw: Union[str, bytes]) -> Dict[str, Any]:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise TranscriptDecodeError(f"Invalid recognizer result: {e}") from e
    if not isinstance(data, dict):
        raise TranscriptDecodeError(f"Recognizer result is not an object: {raw!r}")
    return data


def _word_confidence(words: Any) -> Optional[float]:
    if not isinstance(words, list):
        return None
    confs = [w["conf"] for w in words if isinstance(w, dict) and isinstance(w.get("conf"), (int, float))]
    if not confs:
        return None
    return sum(confs) / len(confs)


def decode_result(raw: Union[str, bytes]) -> Transcript:
    data = _load(raw)

    alternatives = data.get("alternatives")
    if isinstance(alternatives, list) and alternatives:
        alts = tuple(
            Alternative(
                text=str(a.get("text", "")).strip(),
                confidence=a.get("confidence"),
            )
            for a in alternatives if isinstance(a, dict)
        )
        if alts:
            best = alts[0]
            return Transcript(text=best.text, confidence=best.confidence, alternatives=alts)

    text = data.get("text", "")
    if not isinstance(text, str):
        raise TranscriptDecodeError(f"'text' is not a string: {text!r}")
    return Transcript(text=text.strip(), confidence=_word_confidence(data.get("result")))


def decode_partial(raw: Union[str, bytes]) -> str:
    partial = _load(raw).get("partial", "")
    return partial.strip() if isinstance(partial, str) else ""
