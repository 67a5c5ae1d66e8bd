from typer.testing import CliRunner

from voice_relay.cli import app

runner = CliRunner()


def test_classify_command(monkeypatch):
    monkeypatch.delenv("COMMANDS_FILE", raising=False)
    result = runner.invoke(app, ["classify", "tourne à droite de 45 degrés"])
    assert result.exit_code == 0
    assert "rotate-right angle=45" in result.output


def test_classify_reports_default(monkeypatch):
    monkeypatch.delenv("COMMANDS_FILE", raising=False)
    result = runner.invoke(app, ["classify", "gauche"])
    assert result.exit_code == 0
    assert "rotate-left angle=90" in result.output
    assert "default used for: angle" in result.output


def test_classify_no_match(monkeypatch):
    monkeypatch.delenv("COMMANDS_FILE", raising=False)
    result = runner.invoke(app, ["classify", "quelle heure est-il"])
    assert result.exit_code == 0
    assert "no match" in result.output


def test_custom_command_file(tmp_path, monkeypatch):
    path = tmp_path / "extra.yaml"
    path.write_text("avance:\n  patterns: [avance]\n", encoding="utf-8")
    monkeypatch.setenv("COMMANDS_FILE", str(path))
    result = runner.invoke(app, ["classify", "avance"])
    assert result.exit_code == 0
    assert "avance" in result.output

    result = runner.invoke(app, ["commands"])
    assert result.exit_code == 0
    assert "autopilot" in result.output


def test_bad_command_file(tmp_path, monkeypatch):
    monkeypatch.setenv("COMMANDS_FILE", str(tmp_path / "missing.yaml"))
    result = runner.invoke(app, ["classify", "stop"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_listen_without_model(tmp_path, monkeypatch):
    monkeypatch.delenv("COMMANDS_FILE", raising=False)
    monkeypatch.setenv("ENGINE", "none")
    result = runner.invoke(app, ["listen", "--model-path", str(tmp_path / "no-model")])
    assert result.exit_code == 1
    assert "Vosk model missing" in result.output


def test_bad_yaml_is_reported(tmp_path, monkeypatch):
    path = tmp_path / "broken.yaml"
    path.write_text("bad: [unclosed\n", encoding="utf-8")
    monkeypatch.setenv("COMMANDS_FILE", str(path))
    result = runner.invoke(app, ["classify", "stop"])
    assert result.exit_code == 1
    assert "invalid YAML" in result.output


def test_bad_number_in_environment_is_reported(monkeypatch):
    monkeypatch.delenv("COMMANDS_FILE", raising=False)
    monkeypatch.setenv("INPUT_DEVICE", "micro")
    result = runner.invoke(app, ["classify", "stop"])
    assert result.exit_code == 1
    assert "INPUT_DEVICE must be an integer" in result.output
