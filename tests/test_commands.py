import os

import pytest

import rune_commands


@pytest.fixture
def files(workdir):
    for name in ("a.txt", "a.md", "b.txt", "notes"):
        (workdir / name).write_text(f"hello from {name}\n")
    return workdir

# ---------------------------
# Directory & file commands
# ---------------------------

def test_find_patterns(session, files):
    assert rune_commands.cmd_find(session, "*.txt") == ["a.txt", "b.txt"]
    assert rune_commands.cmd_find(session, "a.*") == ["a.md", "a.txt"]
    assert rune_commands.cmd_find(session) == ["a.md", "a.txt", "b.txt", "notes"]

def test_cd_and_pwd(session, workdir):
    (workdir / "sub").mkdir()
    rune_commands.cmd_cd(session, "sub")
    assert rune_commands.cmd_pwd(session) == str(workdir / "sub")
    rune_commands.cmd_cd(session, "..")
    assert session.cwd == str(workdir)

def test_cd_to_missing_directory(session):
    with pytest.raises(rune_commands.EvalError, match="not a directory"):
        rune_commands.cmd_cd(session, "nowhere")

def test_ls_prints_sorted_names(session, files, capsys):
    rune_commands.cmd_ls(session)
    assert capsys.readouterr().out.split() == ["a.md", "a.txt", "b.txt", "notes"]

def test_ll_prints_one_row_per_entry(session, files, capsys):
    rune_commands.cmd_ll(session)
    rows = capsys.readouterr().out.splitlines()
    assert len(rows) == 4
    assert rows[0].endswith(" a.md")

def test_cat(session, files, capsys):
    rune_commands.cmd_cat(session, "notes")
    assert capsys.readouterr().out == "hello from notes\n"

def test_cp_from_single_string(session, files):
    rune_commands.cmd_cp(session, "a.txt copy.txt")
    assert (files / "copy.txt").read_text() == "hello from a.txt\n"

def test_cp_needs_two_paths(session, files):
    with pytest.raises(rune_commands.EvalError, match="source and a destination"):
        rune_commands.cmd_cp(session, "a.txt")

def test_cp_directory(session, files):
    (files / "dir").mkdir()
    (files / "dir" / "x").write_text("x")
    rune_commands.cmd_cp(session, "dir", "dir2")
    assert (files / "dir2" / "x").read_text() == "x"

def test_touch_mkdir_rm_rmdir(session, workdir):
    rune_commands.cmd_touch(session, "new.txt")
    rune_commands.cmd_mkdir(session, "folder")
    assert (workdir / "new.txt").is_file()
    assert (workdir / "folder").is_dir()
    with pytest.raises(rune_commands.EvalError, match="use rmdir"):
        rune_commands.cmd_rm(session, "folder")
    rune_commands.cmd_rm(session, "new.txt")
    rune_commands.cmd_rmdir(session, "folder")
    assert os.listdir(workdir) == []

def test_search(session, files, capsys):
    rune_commands.cmd_search(session, "from b")
    assert capsys.readouterr().out == "b.txt:1: hello from b.txt\n"
    rune_commands.cmd_search(session, "absent")
    assert "No matches" in capsys.readouterr().out

def test_show_prints_lists_line_by_line(session, capsys):
    rune_commands.cmd_show(session, ["a", "b"])
    assert capsys.readouterr().out == "a\nb\n"

# ---------------------------
# External programs
# ---------------------------

def test_url_and_google_open_browser(session, monkeypatch):
    opened = []
    monkeypatch.setattr(rune_commands.webbrowser, "open", opened.append)
    rune_commands.cmd_url(session, "https://example.com")
    rune_commands.cmd_google(session, "rune shell")
    assert opened == ["https://example.com", "https://www.google.com/search?q=rune+shell"]

def test_execute_launches_without_waiting(session, workdir, monkeypatch):
    launched = []
    monkeypatch.setattr(rune_commands, "_launch", lambda args, cwd: launched.append((args, cwd)))
    rune_commands.cmd_execute(session, "tool.sh")
    rune_commands.cmd_racket(session, "prog.rkt")
    assert launched == [
        ([str(workdir / "tool.sh")], str(workdir)),
        (["racket", str(workdir / "prog.rkt")], str(workdir)),
    ]

def test_edit_uses_configured_editor(session, workdir, monkeypatch):
    calls = []
    monkeypatch.setattr(rune_commands.subprocess, "run", lambda args: calls.append(args))
    rune_commands.cmd_edit(session, "my file.txt")
    assert calls == [["true", str(workdir / "my file.txt")]]
    assert (workdir / "my file.txt").exists()

def test_edit_me_opens_startup_script(session, config, monkeypatch):
    calls = []
    monkeypatch.setattr(rune_commands.subprocess, "run", lambda args: calls.append(args))
    rune_commands.cmd_edit_me(session)
    assert calls == [["true", str(config.rc_path)]]

def test_missing_editor(session, monkeypatch):
    def missing(args):
        raise FileNotFoundError(2, "No such file or directory", args[0])
    monkeypatch.setattr(rune_commands.subprocess, "run", missing)
    with pytest.raises(rune_commands.EvalError, match="RUNE_EDITOR"):
        rune_commands.cmd_edit(session, "x.txt")

# ---------------------------
# Help
# ---------------------------

def test_help_lists_commands(session, capsys):
    rune_commands.cmd_help(session)
    out = capsys.readouterr().out
    assert "save-script" in out
    assert "macro-mismatch" not in out

def test_help_for_one_command(session, capsys):
    rune_commands.cmd_help(session, "cp")
    assert "cp <src> <dst>" in capsys.readouterr().out

def test_save_script_requires_recording(session):
    with pytest.raises(rune_commands.EvalError, match="start-recording"):
        rune_commands.cmd_save_script(session, "x")
