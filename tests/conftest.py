import pytest

from rune import Session
from rune_config import Config


@pytest.fixture
def config(tmp_path):
    return Config(home=tmp_path / "home", editor="true", confirm_overwrite=True)


@pytest.fixture
def workdir(tmp_path):
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def session(config, workdir):
    return Session(config, cwd=str(workdir))


@pytest.fixture
def run_lines(session, capsys):
    """Feed lines through the session and return what was printed."""
    def _run(*lines):
        capsys.readouterr()
        for line in lines:
            session.handle_line(line)
        return capsys.readouterr().out
    return _run
