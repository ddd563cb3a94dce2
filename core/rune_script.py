"""Recording a session as a script, and reading scripts back for replay."""

from __future__ import annotations

import logging
import os
from typing import Callable, List, Optional

from rune_eval import ScriptIOError, describe_os_error

logger = logging.getLogger(__name__)

SEPARATOR = "\r"

class ScriptRecorder:
    def __init__(self):
        self.recording = False
        self.lines: List[str] = []

    def start(self) -> None:
        self.lines = []
        self.recording = True

    def record(self, line: str) -> None:
        if self.recording:
            self.lines.append(line)

    def save(self, path: str, confirm: Optional[Callable[[str], bool]] = None,
             drop_last: bool = True) -> bool:
        """Write the recorded lines, minus the line that asked for the save.

        Pass ``drop_last=False`` when that line was never recorded, as with
        a save issued from a replayed script. Returns False when an existing
        file was kept because ``confirm`` declined. The recording flag is
        cleared whatever happens.
        """
        lines = self.lines[:-1] if drop_last else list(self.lines)
        try:
            if os.path.exists(path) and confirm is not None and not confirm(path):
                return False
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(SEPARATOR.join(lines))
            logger.debug("saved %d line(s) to %s", len(lines), path)
            return True
        except OSError as e:
            raise ScriptIOError(f"Could not save script to {path}: {describe_os_error(e)}. Please try again.") from e
        finally:
            self.recording = False

def read_script(path: str) -> List[str]:
    """Rows of a script file. Accepts \\r, \\n and \\r\\n separated files.

    Bytes that are not UTF-8 are replaced with U+FFFD.
    """
    with open(path, "r", encoding="utf-8", errors="replace", newline="") as f:
        text = f.read()
    rows = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    return [row for row in rows if row.strip()]
