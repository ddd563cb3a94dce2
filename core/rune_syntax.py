"""Line tokenizer, built-in pattern table, parameter quoting and canonical form.

Nothing in here touches the session; every function is a pure string
transformation so the classification rules can be tested on their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

# =============================
# Tokenizer
# =============================
def tokenize(line: str) -> List[str]:
    # runs of spaces collapse, so "cd   a" and "cd a" tokenize the same
    return [t for t in line.split(" ") if t]

def split_line(line: str) -> Tuple[str, List[str]]:
    """Return (command, params) for a raw line. An empty line gives ("", [])."""
    tokens = tokenize(line)
    if not tokens:
        return "", []
    return tokens[0], tokens[1:]

# =============================
# Built-in pattern table
# =============================
EXACT = "exact"          # the bare name only
PREFIX = "prefix"        # name, a space, then at least one parameter
OPTIONAL = "optional"    # the bare name or name + parameters

@dataclass(frozen=True)
class BuiltinPattern:
    name: str
    kind: str

    def matches(self, line: str) -> bool:
        if self.kind == EXACT:
            return line == self.name
        with_params = line.startswith(self.name + " ")
        if self.kind == PREFIX:
            return with_params
        return with_params or line == self.name

BUILTIN_PATTERNS: Tuple[BuiltinPattern, ...] = (
    tuple(BuiltinPattern(n, EXACT) for n in ("pwd", "edit-me", "start-recording"))
    + tuple(BuiltinPattern(n, PREFIX) for n in (
        "cp", "rm", "cd", "cat", "run", "url", "show", "edit",
        "rmdir", "touch", "mkdir", "search", "racket",
    ))
    + tuple(BuiltinPattern(n, OPTIONAL) for n in (
        "ls", "ll", "dir", "set", "get", "find", "help", "google", "save-script",
    ))
)

# "cd.." style shortcuts typed without the separating space
NO_SPACE_CD = ("cd/", "cd..", "cd\\")

MACRO_COMMANDS = ("set", "get")

def is_builtin(line: str) -> bool:
    if line.startswith(NO_SPACE_CD):
        return True
    return any(p.matches(line) for p in BUILTIN_PATTERNS)

def rewrite_no_space_cd(line: str) -> str:
    if line.startswith(NO_SPACE_CD):
        return "cd " + line[2:]
    return line

def is_macro(line: str) -> bool:
    command, _ = split_line(line)
    return command in MACRO_COMMANDS

# =============================
# Parameter quoting
# =============================
def quote_string(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'

def quote_params(line: str) -> str:
    """Normalize slashes and fold every parameter into one string literal.

    ``edit my file.txt`` becomes ``edit "my file.txt"`` so a handler taking a
    single path gets exactly one argument.
    """
    line = line.replace("\\", "/")
    command, params = split_line(line)
    if not params:
        return command
    return command + " " + quote_string(" ".join(params))

# =============================
# Canonical form
# =============================
def canonicalize(text: str) -> str:
    """Turn transformed text into a single expression ready for the parser.

    Returns "" for blank input; the caller reports that as an invalid command.
    """
    text = text.strip()
    if not text:
        return ""
    if text.startswith("("):
        return text
    command, _ = split_line(text)
    if command == "find":
        return f"(show ({text}))"
    return f"({text})"
