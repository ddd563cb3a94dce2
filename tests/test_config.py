from pathlib import Path

from rune_config import RC_NAME, load_config


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("RUNE_HOME", str(tmp_path))
    monkeypatch.setenv("RUNE_EDITOR", "vim")
    monkeypatch.setenv("RUNE_CONFIRM_OVERWRITE", "no")
    monkeypatch.setenv("RUNE_LOG_LEVEL", "debug")
    config = load_config(str(tmp_path / "absent.env"))
    assert config.home == tmp_path
    assert config.editor == "vim"
    assert config.confirm_overwrite is False
    assert config.log_level == "DEBUG"
    assert config.rc_path == tmp_path / RC_NAME

def test_defaults(tmp_path, monkeypatch):
    for name in ("RUNE_HOME", "RUNE_EDITOR", "RUNE_CONFIRM_OVERWRITE", "RUNE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("EDITOR", "vi")
    config = load_config(str(tmp_path / "absent.env"))
    assert config.home == Path("~/.rune").expanduser()
    assert config.confirm_overwrite is True
    assert config.log_level == "WARNING"

def test_dotenv_file_is_loaded(tmp_path, monkeypatch):
    # set then delete so monkeypatch restores the variable after load_dotenv writes it
    monkeypatch.setenv("RUNE_EDITOR", "placeholder")
    monkeypatch.delenv("RUNE_EDITOR")
    env_file = tmp_path / ".env"
    env_file.write_text("RUNE_EDITOR=emacs\n")
    assert load_config(str(env_file)).editor == "emacs"
