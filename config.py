"""
Application settings.

Values are read from the environment once, after loading the project's `.env`
file, and exposed as an immutable `Settings` object.

Environment variables:
- SUPABASE_URL / SUPABASE_KEY: Supabase project credentials (server-side key)
- ADMIN_PASSWORD: shared secret for the admin cookie and courtesy items
- REPORT_TIMEZONE: IANA timezone used to attribute sales to a calendar day
- ENFORCE_SALE_TOTALS: re-check totals and payment sums on the server (default: true)
- VOUCHER_SEDUC_CAP: per-sale ceiling for the Voucher SEDUC report (default: 100.00)
- CORS_ORIGINS: comma separated list of allowed origins (default: *)
- LOG_LEVEL: root logging level (default: INFO)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

env_path = Path(__file__).parent / ".env"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    admin_password: str = ""
    report_timezone: str = "America/Recife"
    enforce_sale_totals: bool = True
    voucher_seduc_cap: Decimal = Decimal("100.00")
    cors_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings from the environment (cached; call `cache_clear()` to reload)."""

    load_dotenv(dotenv_path=env_path)

    origins = tuple(
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    )

    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        admin_password=os.getenv("ADMIN_PASSWORD", "").strip(),
        report_timezone=os.getenv("REPORT_TIMEZONE", "America/Recife"),
        enforce_sale_totals=_env_bool("ENFORCE_SALE_TOTALS", True),
        voucher_seduc_cap=Decimal(os.getenv("VOUCHER_SEDUC_CAP", "100.00")),
        cors_origins=origins or ("*",),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


__all__ = ["Settings", "get_settings"]
