from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_int(name: str, default: int, min_val: int | None = None) -> int:
    """Get integer from environment with optional minimum enforcement."""
    val = int(os.environ.get(name, str(default)))
    if min_val is not None and val < min_val:
        return min_val
    return val


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_path(name: str, default: Path) -> Path:
    raw = os.environ.get(name)
    if not raw:
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True)
class Settings:
    """Static settings for the local editing engine.

    Everything lives on the local disk; there are no network endpoints.
    """

    data_dir: Path = _env_path("NOTEBLOC_DATA_DIR", Path.home() / ".notebloc")
    documents_dir: Path = data_dir / "documents"
    log_path: Path = data_dir / "notebloc.log"
    log_level: str = os.environ.get("NOTEBLOC_LOG_LEVEL", "INFO")
    log_max_bytes: int = int(os.environ.get("NOTEBLOC_LOG_MAX_BYTES", str(1_000_000)))
    log_backup_count: int = int(os.environ.get("NOTEBLOC_LOG_BACKUP_COUNT", "3"))

    # =========================================================================
    # Editing
    # =========================================================================
    # Author written into new documents (device name or user preference).
    default_author: str = os.environ.get("NOTEBLOC_AUTHOR", "User")

    # Undo history bound; the oldest entries are evicted first.
    max_undo_depth: int = _env_int("NOTEBLOC_MAX_UNDO_DEPTH", 50, min_val=1)

    # Generated titles are cut to this many characters.
    title_max_length: int = _env_int("NOTEBLOC_TITLE_MAX_LENGTH", 50, min_val=1)
    untitled_title: str = "Untitled"

    # Interval for the caller's autosave timer (seconds).
    autosave_interval_seconds: float = _env_float("NOTEBLOC_AUTOSAVE_INTERVAL", 2.0)


settings = Settings()
