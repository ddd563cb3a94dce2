"""Built-in command handlers and the command table.

Every handler takes the session first and the evaluated arguments after it.
Handlers raise EvalError (or let OSError through) on failure; the evaluator
turns both into one-line messages.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import shutil
import subprocess
import time
import webbrowser
from pathlib import Path
from typing import Dict, List
from urllib.parse import quote_plus

from rune_config import DEFAULT_SCRIPT_NAME
from rune_eval import Command, EvalError, format_value
from rune_macros import describe_mismatch

logger = logging.getLogger(__name__)

GOOGLE_URL = "https://www.google.com/search?q="

# =============================
# Helpers
# =============================
def _print_lines(items) -> None:
    for item in items:
        print(format_value(item))

def _launch(args: List[str], cwd: str) -> None:
    """Start a program and return without waiting for it."""
    logger.debug("launching %s in %s", args, cwd)
    if os.name == "nt" and len(args) == 1:
        os.startfile(args[0])
    else:
        subprocess.Popen(args, cwd=cwd)

# =============================
# Directory & file commands
# =============================
def cmd_pwd(session):
    return session.cwd

def cmd_cd(session, path=None):
    target = session.resolve(path) if path else os.path.expanduser("~")
    if not os.path.isdir(target):
        raise EvalError(f"cd: not a directory: {path}")
    session.change_dir(target)

def cmd_ls(session, path=None):
    _print_lines(sorted(os.listdir(session.resolve(path or "."))))

def cmd_ll(session, path=None):
    base = session.resolve(path or ".")
    for name in sorted(os.listdir(base)):
        st = os.stat(os.path.join(base, name))
        kind = "d" if os.path.isdir(os.path.join(base, name)) else "-"
        stamp = time.strftime("%Y-%m-%d %H:%M", time.localtime(st.st_mtime))
        print(f"{kind} {st.st_size:>10} {stamp} {name}")

def cmd_find(session, pattern=None):
    names = sorted(os.listdir(session.cwd))
    if not pattern:
        return names
    return [n for n in names if fnmatch.fnmatch(n, pattern)]

def cmd_show(session, value):
    if isinstance(value, (list, tuple)):
        _print_lines(value)
    elif value is not None:
        print(format_value(value))

def cmd_cat(session, path):
    with open(session.resolve(path), "r", encoding="utf-8", errors="replace") as f:
        text = f.read()
    print(text, end="" if text.endswith("\n") else "\n")

def cmd_cp(session, src, dst=None):
    # cp a.txt b.txt arrives as the single string "a.txt b.txt"
    if dst is None:
        parts = src.split(" ")
        if len(parts) != 2:
            raise EvalError("cp: expects a source and a destination")
        src, dst = parts
    src, dst = session.resolve(src), session.resolve(dst)
    if not os.path.exists(src):
        raise EvalError(f"cp: source does not exist: {src}")
    if os.path.isdir(src):
        shutil.copytree(src, dst)
    else:
        shutil.copy2(src, dst)

def cmd_rm(session, path):
    target = session.resolve(path)
    if os.path.isdir(target):
        raise EvalError(f"rm: is a directory (use rmdir): {path}")
    os.remove(target)

def cmd_rmdir(session, path):
    os.rmdir(session.resolve(path))

def cmd_touch(session, path):
    Path(session.resolve(path)).touch()

def cmd_mkdir(session, path):
    os.makedirs(session.resolve(path))

def cmd_search(session, text):
    found = 0
    for root, dirs, files in os.walk(session.cwd):
        dirs.sort()
        for name in sorted(files):
            full = os.path.join(root, name)
            try:
                with open(full, "r", encoding="utf-8", errors="ignore") as f:
                    for lineno, line in enumerate(f, 1):
                        if text in line:
                            print(f"{os.path.relpath(full, session.cwd)}:{lineno}: {line.rstrip()}")
                            found += 1
            except OSError as e:
                logger.debug("search skipped %s: %s", full, e)
    if not found:
        print(f"No matches for '{text}'")

# =============================
# Editors & external programs
# =============================
def _edit(session, target: str) -> None:
    os.makedirs(os.path.dirname(target) or ".", exist_ok=True)
    if not os.path.exists(target):
        open(target, "a", encoding="utf-8").close()
    try:
        subprocess.run([session.config.editor, target])
    except FileNotFoundError as e:
        raise EvalError(f"edit: editor '{session.config.editor}' not found (set RUNE_EDITOR)") from e

def cmd_edit(session, path):
    _edit(session, session.resolve(path))

def cmd_edit_me(session):
    _edit(session, str(session.config.rc_path))

def cmd_execute(session, path):
    _launch([session.resolve(path)], session.cwd)

def cmd_racket(session, path):
    _launch(["racket", session.resolve(path)], session.cwd)

def cmd_url(session, address):
    webbrowser.open(address)

def cmd_google(session, terms=None):
    if not terms:
        webbrowser.open("https://www.google.com")
        return
    webbrowser.open(GOOGLE_URL + quote_plus(terms))

# =============================
# Scripts
# =============================
def cmd_run(session, path):
    session.replay(path)

def cmd_start_recording(session):
    session.recorder.start()
    print("Recording started. Use save-script <file> to save it.")

def cmd_save_script(session, path=None):
    if not session.recorder.recording:
        raise EvalError("save-script: nothing is being recorded; use start-recording first")
    session.save_script(path or DEFAULT_SCRIPT_NAME)

# =============================
# Macro targets & help
# =============================
def cmd_void(session):
    return None

def cmd_macro_mismatch(session, command, p1, p2, p3, p4, rest):
    print(describe_mismatch(command, p1, p2, p3, p4, rest))

def cmd_help(session, name=None):
    if not name:
        print("\nAvailable commands:\n")
        for command in sorted(COMMANDS.values(), key=lambda c: c.name):
            if command.help:
                print(f"  {command.usage:<28} {command.help}")
        print("\nAlso: set <name> = <value>, set, get, (expression), exit")
        print("Type: help <command> for details\n")
        return
    command = COMMANDS.get(name)
    if command is None or not command.help:
        print(f"No help available for '{name}'")
        return
    print(f"\n{command.usage}\n  {command.help}\n")

# =============================
# Registry
# =============================
def _table(*commands: Command) -> Dict[str, Command]:
    return {c.name: c for c in commands}

COMMANDS: Dict[str, Command] = _table(
    Command("pwd", cmd_pwd, 0, 0, "pwd", "Print the current directory"),
    Command("cd", cmd_cd, 0, 1, "cd <path>", "Change directory (cd.., cd/ and cd\\ work too)"),
    Command("ls", cmd_ls, 0, 1, "ls [path]", "List a directory"),
    Command("dir", cmd_ls, 0, 1, "dir [path]", "Same as ls"),
    Command("ll", cmd_ll, 0, 1, "ll [path]", "Long listing: kind, size, modified time, name"),
    Command("find", cmd_find, 0, 1, "find [pattern]", "Names in the current directory matching a glob"),
    Command("show", cmd_show, 1, 1, "show <value>", "Print a value, lists one item per line"),
    Command("cat", cmd_cat, 1, 1, "cat <file>", "Print a text file"),
    Command("cp", cmd_cp, 1, 2, "cp <src> <dst>", "Copy a file or directory"),
    Command("rm", cmd_rm, 1, 1, "rm <file>", "Delete a file"),
    Command("rmdir", cmd_rmdir, 1, 1, "rmdir <dir>", "Delete an empty directory"),
    Command("touch", cmd_touch, 1, 1, "touch <file>", "Create a file or update its time"),
    Command("mkdir", cmd_mkdir, 1, 1, "mkdir <dir>", "Create a directory"),
    Command("search", cmd_search, 1, 1, "search <text>", "Find lines containing text under the current directory"),
    Command("edit", cmd_edit, 1, 1, "edit <file>", "Open a file in RUNE_EDITOR"),
    Command("edit-me", cmd_edit_me, 0, 0, "edit-me", "Open the startup script in RUNE_EDITOR"),
    Command("execute", cmd_execute, 1, 1, "execute <program>", "Launch a program without waiting for it"),
    Command("racket", cmd_racket, 1, 1, "racket <file>", "Run a file with the racket program"),
    Command("url", cmd_url, 1, 1, "url <address>", "Open a web link in the default browser"),
    Command("google", cmd_google, 0, 1, "google [terms]", "Search Google in the default browser"),
    Command("run", cmd_run, 1, 1, "run <script>", "Replay a saved script"),
    Command("start-recording", cmd_start_recording, 0, 0, "start-recording", "Start recording command lines"),
    Command("save-script", cmd_save_script, 0, 1, "save-script [file]", "Save the recording (default script.rune)"),
    Command("help", cmd_help, 0, 1, "help [command]", "Show all commands or help for one"),
    Command("void", cmd_void, 0, 0, "void"),
    Command("macro-mismatch", cmd_macro_mismatch, 6, 6, "macro-mismatch <cmd> <p1> <p2> <p3> <p4> <rest>"),
)
