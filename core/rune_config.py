"""Configuration and logging setup for Rune.

Every environment lookup lives here so the rest of the shell can take a
``Config`` instead of reading ``os.environ`` on its own.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
RC_NAME = "runerc"
DEFAULT_SCRIPT_NAME = "script.rune"


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


def _default_editor() -> str:
    if os.name == "nt":
        return "notepad"
    return os.getenv("EDITOR") or "nano"


@dataclass(frozen=True)
class Config:
    home: Path
    editor: str
    confirm_overwrite: bool = True
    log_level: str = "WARNING"

    @property
    def rc_path(self) -> Path:
        """Startup script replayed when a session starts."""
        return self.home / RC_NAME


def load_config(env_file: str | None = None) -> Config:
    """Build a Config from the environment, after loading an optional .env."""
    load_dotenv(dotenv_path=env_file)
    home = Path(os.getenv("RUNE_HOME") or "~/.rune").expanduser()
    return Config(
        home=home,
        editor=os.getenv("RUNE_EDITOR") or _default_editor(),
        confirm_overwrite=_env_flag("RUNE_CONFIRM_OVERWRITE", True),
        log_level=(os.getenv("RUNE_LOG_LEVEL") or "WARNING").upper(),
    )


def setup_logging(level: str = "WARNING") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.WARNING), format=LOG_FORMAT)
