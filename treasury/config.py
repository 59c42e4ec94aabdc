"""Runtime configuration for the treasury dashboard.

Values come from environment variables, optionally declared in a local
``.env`` file, with defaults that work straight after cloning the repo.
"""
from __future__ import annotations

from dataclasses import dataclass
from os import getenv
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class AppConfig:
    """Settings shared by the dashboard and its services.

    Attributes:
        project_root: Root directory of the project.
        store_file: JSON file backing the key-value store.
        seed_file: Transactions copied into the ledger of a user who has none.
        key_prefix: Prepended to every store key, e.g. ``"adag-"``.
        poll_interval: Seconds between re-reads of the counters other views
            may have changed.
        top_categories: Number of categories in the ranked bar chart.
        log_level: Name of the root logging level.
    """

    project_root: Path
    store_file: Path
    seed_file: Path
    key_prefix: str
    poll_interval: int
    top_categories: int
    log_level: str


def load_config() -> AppConfig:
    project_root = Path(__file__).resolve().parent.parent
    store_file = Path(getenv_with_default("TREASURY_STORE_FILE", project_root / "data" / "store.json"))
    seed_file = Path(getenv_with_default("TREASURY_SEED_FILE", project_root / "data" / "seed.json"))

    return AppConfig(
        project_root=project_root,
        store_file=store_file,
        seed_file=seed_file,
        key_prefix=getenv_with_default("TREASURY_KEY_PREFIX", ""),
        poll_interval=int(getenv_with_default("TREASURY_POLL_SECONDS", "30")),
        top_categories=int(getenv_with_default("TREASURY_TOP_CATEGORIES", "10")),
        log_level=getenv_with_default("TREASURY_LOG_LEVEL", "INFO").upper(),
    )


def getenv_with_default(name: str, default: Optional[Path | str] = None) -> Optional[str]:
    value = getenv(name)
    if value is not None:
        return value
    if default is None:
        return None
    return str(default)
