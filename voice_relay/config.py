from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv


DEFAULT_SYSTEM_PROMPT = (
    "Tu es l'assistant vocal d'un robot. Réponds en français, brièvement, "
    "à ce que l'utilisateur vient de dire."
)


class ConfigError(ValueError):
    pass


def _int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


@dataclass
class Settings:
    vosk_model_path: str = "vosk-model-small-fr-0.22"
    sample_rate: int = 16000
    frames_per_buffer: int = 3200  # 0.2 s at 16 kHz
    input_device: Optional[int] = None
    max_alternatives: int = 0
    engine: str = "auto"
    openai_model: str = "gpt-4o-mini"
    openai_api_key: str = ""
    ollama_model: str = "llama3"
    ollama_url: str = "http://127.0.0.1:11434/api/chat"
    relay_history: int = 6
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    commands_file: str = ""
    allow_shell: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()
        return cls(
            vosk_model_path=os.getenv("VOSK_MODEL_PATH", cls.vosk_model_path),
            sample_rate=_int("SAMPLE_RATE", cls.sample_rate),
            frames_per_buffer=_int("FRAMES_PER_BUFFER", cls.frames_per_buffer),
            input_device=_int("INPUT_DEVICE", None),
            max_alternatives=_int("MAX_ALTERNATIVES", cls.max_alternatives),
            engine=os.getenv("ENGINE", cls.engine).lower(),
            openai_model=os.getenv("OPENAI_MODEL", cls.openai_model),
            openai_api_key=os.getenv("OPENAI_API_KEY", "").strip(),
            ollama_model=os.getenv("OLLAMA_MODEL", cls.ollama_model),
            ollama_url=os.getenv("OLLAMA_URL", cls.ollama_url),
            relay_history=_int("RELAY_HISTORY", cls.relay_history),
            system_prompt=os.getenv("SYSTEM_PROMPT", cls.system_prompt),
            commands_file=os.getenv("COMMANDS_FILE", ""),
            allow_shell=os.getenv("ALLOW_SHELL", "0") == "1",
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
        )
