#!/usr/bin/env python3
"""
Rune shell:
- built-in commands recognised by a fixed pattern table, parameters folded
  into one quoted argument
- set/get local variables bound to re-evaluated expressions
- (expressions) evaluated directly
- anything else that names a file is launched as a program
- start-recording / save-script / run to record and replay sessions
- startup script replayed from RUNE_HOME/runerc
"""

from __future__ import annotations

import argparse
import logging
import os
from typing import List, Optional

try:
    import readline  # noqa: F401  line editing and history for input()
except ImportError:
    readline = None

from rune_commands import COMMANDS
from rune_config import Config, load_config, setup_logging
from rune_eval import Environment, EvalError, Outcome, RuneError, evaluate_text, format_value
from rune_macros import VariableStore, expand_macro
from rune_script import ScriptRecorder, read_script
from rune_syntax import canonicalize, is_builtin, is_macro, quote_params, quote_string, rewrite_no_space_cd

logger = logging.getLogger(__name__)

BANNER = "Rune shell - type 'help' for commands, 'exit' to leave"
FAREWELL = "Goodbye!"
PROGRAM_SUFFIXES = (".exe", ".com", ".bat", ".sh")

class Session:
    """Everything one shell process mutates: directory, variables, recording."""

    def __init__(self, config: Config, cwd: Optional[str] = None):
        self.config = config
        self.cwd = os.path.abspath(cwd or os.getcwd())
        self.variables = VariableStore()
        self.recorder = ScriptRecorder()
        self.env = Environment(COMMANDS, context=self, names=self.variables)
        self._replaying: List[str] = []

    # =============================
    # Paths
    # =============================
    def prompt(self) -> str:
        return f"{self.cwd}> "

    def resolve(self, path: str) -> str:
        path = os.path.expanduser(path)
        if os.path.isabs(path):
            return os.path.abspath(path)
        return os.path.abspath(os.path.join(self.cwd, path))

    def change_dir(self, path: str) -> None:
        self.cwd = self.resolve(path)

    def find_program(self, line: str) -> Optional[str]:
        candidate = self.resolve(line)
        if os.path.isfile(candidate):
            return candidate
        for suffix in PROGRAM_SUFFIXES:
            if os.path.isfile(candidate + suffix):
                return candidate + suffix
        return None

    # =============================
    # Dispatch
    # =============================
    def evaluate(self, text: str) -> Outcome:
        outcome = evaluate_text(text, self.env)
        if outcome.ok:
            if outcome.value is not None:
                print(format_value(outcome.value))
        else:
            logger.debug("%s: %s", outcome.kind.value, outcome.message)
            print(outcome.message)
        return outcome

    def handle_line(self, raw: str, record: bool = True) -> bool:
        """Classify and run one line. Returns False once the line asks to exit."""
        line = raw.rstrip("\r\n")
        if not line.strip():
            return True
        if record:
            self.recorder.record(line)
        line = line.strip()

        if line.startswith("exit"):
            print(FAREWELL)
            return False
        if is_builtin(line):
            logger.debug("built-in: %r", line)
            self._run_builtin(line)
        elif line in self.variables:
            logger.debug("variable: %r", line)
            self.evaluate(line)
        elif line.startswith("("):
            logger.debug("expression: %r", line)
            self.evaluate(line)
        else:
            program = self.find_program(line)
            if program:
                logger.debug("program: %r", program)
                self.evaluate(f"(execute {quote_string(program)})")
            else:
                print(f"Invalid command: {line}")
        return True

    def _run_builtin(self, line: str) -> None:
        line = rewrite_no_space_cd(line)
        if is_macro(line):
            text = expand_macro(line, self.variables, self.env)
        else:
            text = quote_params(line)
        canonical = canonicalize(text)
        if not canonical:
            print(f"Invalid command: {line}")
            return
        self.evaluate(canonical)

    # =============================
    # Scripts
    # =============================
    def confirm_overwrite(self, path: str) -> bool:
        answer = input(f"{path} already exists. Overwrite? (y/n) ")
        return answer.strip().lower().startswith("y")

    def save_script(self, name: str) -> None:
        path = self.resolve(name)
        confirm = self.confirm_overwrite if self.config.confirm_overwrite else None
        # lines coming from a replayed script are never recorded
        if self.recorder.save(path, confirm, drop_last=not self._replaying):
            print(f"Script saved to {path}")
        else:
            print(f"Kept existing {path}; script not saved")

    def replay(self, path: str) -> None:
        """Feed every row of a script through the dispatch loop, unrecorded."""
        full = self.resolve(path)
        if full in self._replaying:
            raise EvalError(f"run: script is already running: {path}")
        rows = read_script(full)
        self._replaying.append(full)
        try:
            for row in rows:
                if not self.handle_line(row, record=False):
                    break
        finally:
            self._replaying.pop()

    def load_rc(self) -> None:
        path = str(self.config.rc_path)
        if not os.path.isfile(path):
            return
        try:
            self.replay(path)
        except (OSError, RuneError) as e:
            print(f"Failed to load startup script {path}: {e}")

    # =============================
    # REPL
    # =============================
    def run(self) -> None:
        print(BANNER)
        while True:
            try:
                line = input(self.prompt())
            except (EOFError, KeyboardInterrupt):
                print()
                print(FAREWELL)
                break
            if not self.handle_line(line):
                break

# =============================
# Entrypoint
# =============================
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rune", description="Rune command shell")
    parser.add_argument("script", nargs="?", help="replay this script instead of starting the REPL")
    parser.add_argument("--no-rc", action="store_true", help="skip the startup script")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR (default from RUNE_LOG_LEVEL)")
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config()
    setup_logging(args.log_level or config.log_level)
    session = Session(config)
    if not args.no_rc:
        session.load_rc()
    if args.script:
        if not os.path.isfile(args.script):
            print(f"File not found: {args.script}")
            return 1
        session.replay(args.script)
        return 0
    session.run()
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
