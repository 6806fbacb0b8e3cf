"""Configuration helpers and Settings container.

`get_settings` reads the environment (after loading `.env` from the project
root) and returns a frozen `Settings`. Window sizes are validated up front so
a typo in `.env` fails at startup instead of producing an empty dashboard.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import load_dotenv

# Explicitly load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

TRUTHY = {"1", "true", "yes", "on", "sim"}


@dataclass(frozen=True)
class Settings:
    """Container for runtime configuration read from the environment.

    Attributes:
        mongo_uri: MongoDB connection URI.
        mongo_db: Target MongoDB database name.
        mongo_tls: Whether to connect with TLS (CA bundle from certifi).
        upcoming_window_days: Days ahead shown in "upcoming events".
        revenue_months: Trailing months in the revenue chart.
        payment_proof_bucket: GridFS bucket that stores payment proofs.
    """
    mongo_uri: str
    mongo_db: str
    mongo_tls: bool
    upcoming_window_days: int
    revenue_months: int
    payment_proof_bucket: str


def _positive_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}.") from None
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {value}.")
    return value


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Raises:
        RuntimeError: if `UPCOMING_WINDOW_DAYS` or `REVENUE_MONTHS` is not a
            positive integer.
    """
    mongo_uri = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    mongo_db = os.getenv("MONGO_DB", "portal_unk")
    mongo_tls = os.getenv("MONGO_TLS", "false").strip().lower() in TRUTHY
    bucket = os.getenv("PAYMENT_PROOF_BUCKET", "").strip() or "payment-proofs"

    return Settings(
        mongo_uri=mongo_uri,
        mongo_db=mongo_db,
        mongo_tls=mongo_tls,
        upcoming_window_days=_positive_int("UPCOMING_WINDOW_DAYS", 15),
        revenue_months=_positive_int("REVENUE_MONTHS", 6),
        payment_proof_bucket=bucket,
    )
