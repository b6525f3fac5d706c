"""
Runtime configuration for wardcare.

Values come from the process environment. A `.env` file in the project root is
loaded first when present so that local development does not need exported
variables.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

project_root = Path(__file__).resolve().parent.parent
DATA_DIR = Path(__file__).resolve().parent / "data"

TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Settings consumed by the CLI and the investigation workflow."""

    log_level: str = Field(default="INFO", description="Root logging level.")
    log_file: Path = Field(
        default=Path("logs/wardcare.log"), description="Application log file."
    )
    audit_dir: Path = Field(
        default=Path("logs/audit"), description="Directory for audit trail files."
    )
    store_path: Path = Field(
        default=Path("data/investigations.json"),
        description="JSON file backing the investigation record store.",
    )
    require_results_on_complete: bool = Field(
        default=False,
        description="Reject a plain status change to 'completed' when no results are attached.",
    )


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in TRUTHY


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Build a Settings object from the environment (and an optional .env file)."""
    env_path = env_file or project_root / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)

    return Settings(
        log_level=os.getenv("WARDCARE_LOG_LEVEL", "INFO").upper(),
        log_file=Path(os.getenv("WARDCARE_LOG_FILE", "logs/wardcare.log")),
        audit_dir=Path(os.getenv("WARDCARE_AUDIT_DIR", "logs/audit")),
        store_path=Path(os.getenv("WARDCARE_STORE_PATH", "data/investigations.json")),
        require_results_on_complete=_env_flag("WARDCARE_REQUIRE_RESULTS_ON_COMPLETE"),
    )
