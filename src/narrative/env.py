# src/narrative/env.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

_attempted = False


def load_dotenv_if_present(dotenv_path: Optional[str] = None) -> bool:
    """Load NARRATIVE_* settings from a .env file, at most once per process.

    The file is `dotenv_path`, else $NARRATIVE_DOTENV_PATH, else ./.env.
    Variables already set in the environment take precedence over the file.
    Returns True only when a file was found and loaded.
    """
    global _attempted
    if _attempted:
        return False
    _attempted = True

    path = Path(dotenv_path or os.environ.get("NARRATIVE_DOTENV_PATH") or ".env").expanduser()
    if not path.is_file():
        return False
    return bool(load_dotenv(dotenv_path=path, override=False))
