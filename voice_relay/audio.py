from __future__ import annotations
import os
import threading
from typing import Iterator, Optional, Tuple

from voice_relay.logger import get_logger

log = get_logger(__name__)


class AudioSessionError(RuntimeError):
    pass


def _load_backends():
    import pyaudio
    from vosk import Model, KaldiRecognizer, SetLogLevel
    SetLogLevel(-1)
    return pyaudio, Model, KaldiRecognizer


class AudioSession:
    """Owns the Vosk model, the recognizer and the microphone stream.

    Use as a context manager; everything acquired in ``open`` is released in
    ``close`` whatever the exit path.
    """

    def __init__(self, model_path: str, sample_rate: int = 16000, frames_per_buffer: int = 3200,
                 device_index: Optional[int] = None, max_alternatives: int = 0):
        self.model_path = model_path
        self.sample_rate = sample_rate
        self.frames_per_buffer = frames_per_buffer
        self.device_index = device_index
        self.max_alternatives = max_alternatives
        self.model = None
        self.recognizer = None
        self.pa = None
        self.stream = None
        self._stop = threading.Event()

    def __enter__(self) -> "AudioSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def open(self):
        if not os.path.isdir(self.model_path):
            raise AudioSessionError(f"Vosk model missing: {self.model_path} (set VOSK_MODEL_PATH)")
        pyaudio, Model, KaldiRecognizer = _load_backends()
        try:
            log.info("Loading model %s", self.model_path)
            self.model = Model(self.model_path)
            self.recognizer = KaldiRecognizer(self.model, self.sample_rate)
            if self.max_alternatives > 0:
                self.recognizer.SetMaxAlternatives(self.max_alternatives)
            else:
                self.recognizer.SetWords(True)

            self.pa = pyaudio.PyAudio()
            device = self.device_index
            if device is None:
                try:
                    device = self.pa.get_default_input_device_info()["index"]
                except IOError as e:
                    raise AudioSessionError("No default input device") from e
            self.stream = self.pa.open(
                format=pyaudio.paInt16,
                channels=1,
                rate=self.sample_rate,
                input=True,
                input_device_index=device,
                frames_per_buffer=self.frames_per_buffer,
            )
            self.stream.start_stream()
        except AudioSessionError:
            self.close()
            raise
        except Exception as e:
            self.close()
            raise AudioSessionError(f"Could not open audio session: {e}") from e

    def close(self):
        stream, pa = self.stream, self.pa
        self.stream = self.pa = None
        try:
            if stream is not None:
                stream.stop_stream()
                stream.close()
        finally:
            if pa is not None:
                pa.terminate()
            if self.recognizer is not None or self.model is not None:
                self.recognizer = None
                self.model = None
                log.info("Cleaned up resources.")

    def stop(self):
        self._stop.set()

    def events(self) -> Iterator[Tuple[str, str]]:
        """Yield ("final", json) when the recognizer closes an utterance, else ("partial", json)."""
        if self.stream is None:
            raise AudioSessionError("Audio session is not open")
        while not self._stop.is_set():
            data = self.stream.read(self.frames_per_buffer, exception_on_overflow=False)
            if not data:
                continue
            if self.recognizer.AcceptWaveform(data):
                yield "final", self.recognizer.Result()
            else:
                yield "partial", self.recognizer.PartialResult()

    def flush(self) -> str:
        if self.recognizer is None:
            raise AudioSessionError("Audio session is not open")
        return self.recognizer.FinalResult()


def list_input_devices():
    pyaudio, _, _ = _load_backends()
    pa = pyaudio.PyAudio()
    try:
        for i in range(pa.get_device_count()):
            info = pa.get_device_info_by_index(i)
            if info.get("maxInputChannels", 0) > 0:
                yield i, info.get("name", "?"), int(info.get("defaultSampleRate", 0))
    finally:
        pa.terminate()
