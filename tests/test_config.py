import pytest

from voice_relay.config import ConfigError, Settings


def test_defaults(monkeypatch):
    for name in ("VOSK_MODEL_PATH", "SAMPLE_RATE", "INPUT_DEVICE", "ENGINE", "ALLOW_SHELL"):
        monkeypatch.delenv(name, raising=False)
    s = Settings.from_env(dotenv=False)
    assert s.vosk_model_path == "vosk-model-small-fr-0.22"
    assert s.sample_rate == 16000
    assert s.frames_per_buffer == 3200
    assert s.input_device is None
    assert s.engine == "auto"
    assert s.allow_shell is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("VOSK_MODEL_PATH", "/models/fr")
    monkeypatch.setenv("SAMPLE_RATE", "8000")
    monkeypatch.setenv("INPUT_DEVICE", "2")
    monkeypatch.setenv("ENGINE", "Ollama")
    monkeypatch.setenv("ALLOW_SHELL", "1")
    monkeypatch.setenv("RELAY_HISTORY", "0")
    s = Settings.from_env(dotenv=False)
    assert s.vosk_model_path == "/models/fr"
    assert s.sample_rate == 8000
    assert s.input_device == 2
    assert s.engine == "ollama"
    assert s.allow_shell is True
    assert s.relay_history == 0


def test_non_numeric_value_is_a_config_error(monkeypatch):
    monkeypatch.setenv("SAMPLE_RATE", "seize mille")
    with pytest.raises(ConfigError, match="SAMPLE_RATE"):
        Settings.from_env(dotenv=False)
