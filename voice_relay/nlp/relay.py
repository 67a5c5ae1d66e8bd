from __future__ import annotations
from collections import deque
from typing import Deque, Dict, List, Optional
import httpx

from voice_relay.config import Settings
from voice_relay.logger import get_logger

log = get_logger(__name__)


class RelayError(RuntimeError):
    pass


# ------------------------------------------------------------
# Base relay
# ------------------------------------------------------------

class Relay:
    """Forwards free-form speech to a language model.

    Keeps the last ``history`` messages (user and assistant) and sends them
    along as context.
    """
    name = "relay"

    def __init__(self, system: str = "", history: int = 6):
        self.system = system
        self.buf: Deque[Dict[str, str]] = deque(maxlen=max(history, 0))

    def messages(self, text: str) -> List[Dict[str, str]]:
        msgs = []
        if self.system:
            msgs.append({"role": "system", "content": self.system})
        msgs.extend(self.buf)
        msgs.append({"role": "user", "content": text})
        return msgs

    def remember(self, text: str, reply: str):
        self.buf.append({"role": "user", "content": text})
        self.buf.append({"role": "assistant", "content": reply})

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        raise NotImplementedError

    async def send(self, text: str) -> str:
        reply = (await self.complete(self.messages(text))).strip()
        self.remember(text, reply)
        return reply


class EchoRelay(Relay):
    """ENGINE=none: nothing leaves the machine."""
    name = "none"

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        log.info("Relay disabled, dropped: %s", messages[-1]["content"])
        return ""


# ------------------------------------------------------------
# OpenAI backend
# ------------------------------------------------------------

class OpenAIRelay(Relay):
    name = "openai"

    def __init__(self, model: str, api_key: str, **kw):
        super().__init__(**kw)
        self.api_key = api_key
        self.model = model

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        from openai import AsyncOpenAI, OpenAIError
        client = AsyncOpenAI(api_key=self.api_key)
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=messages,
            )
        except OpenAIError as e:
            raise RelayError(f"OpenAI request failed: {e}") from e
        return response.choices[0].message.content or ""


# ------------------------------------------------------------
# Ollama backend (local)
# ------------------------------------------------------------

class OllamaRelay(Relay):
    name = "ollama"

    def __init__(self, model: str, url: str = "http://127.0.0.1:11434/api/chat",
                 transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 120, **kw):
        super().__init__(**kw)
        self.model = model
        self.url = url
        self.transport = transport
        self.timeout = timeout

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        payload = {
            "model": self.model,
            "messages": messages,
            "stream": False,
        }
        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.post(self.url, json=payload, timeout=self.timeout)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise RelayError(f"Ollama request failed: {e}") from e
        try:
            return data["message"]["content"]
        except (KeyError, TypeError) as e:
            raise RelayError(f"Unexpected Ollama response: {data!r}") from e


# ------------------------------------------------------------
# Factory selector
# ------------------------------------------------------------

def make_relay(settings: Settings) -> Relay:
    eng = settings.engine
    common = {"system": settings.system_prompt, "history": settings.relay_history}

    if eng == "none":
        return EchoRelay(**common)

    if eng == "openai" or (eng == "auto" and settings.openai_api_key):
        if not settings.openai_api_key:
            raise RelayError("ENGINE=openai needs OPENAI_API_KEY")
        log.info("Using OpenAI relay (%s)", settings.openai_model)
        return OpenAIRelay(model=settings.openai_model, api_key=settings.openai_api_key, **common)

    if eng in ("ollama", "auto"):
        log.info("Using Ollama relay (%s)", settings.ollama_model)
        return OllamaRelay(model=settings.ollama_model, url=settings.ollama_url, **common)

    raise RelayError(f"Unknown ENGINE {eng!r}; use openai, ollama, none or auto")
