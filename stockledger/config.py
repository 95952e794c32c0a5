"""Settings loaded from the environment and an optional project .env file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_SEED_FILE = Path(__file__).resolve().parent / "data" / "seed.yaml"

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


@dataclass
class Settings:
    region_name: str = "us-west-2"
    model_id: str = "us.amazon.nova-lite-v1:0"
    tax_rate: float = 0.05
    log_level: str = "INFO"
    seed_file: Path = DEFAULT_SEED_FILE


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Reads settings; variables already set in the environment win over .env."""
    load_dotenv(env_file or PROJECT_ROOT / ".env", override=False)

    seed_file = os.environ.get("STOCKLEDGER_SEED_FILE")
    return Settings(
        region_name=os.environ.get("AWS_DEFAULT_REGION", "us-west-2"),
        model_id=os.environ.get("STOCKLEDGER_MODEL_ID", "us.amazon.nova-lite-v1:0"),
        tax_rate=_float_env("STOCKLEDGER_TAX_RATE", 0.05),
        log_level=os.environ.get("STOCKLEDGER_LOG_LEVEL", "INFO").upper(),
        seed_file=Path(seed_file) if seed_file else DEFAULT_SEED_FILE,
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
    # Third-party loggers are noisy at INFO
    logging.getLogger("mcp").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
