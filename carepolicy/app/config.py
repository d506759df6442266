"""Runtime settings read from the environment (and an optional .env file)."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() not in ("0", "false", "")


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./carepolicy.db"
    resolver_timeout: float = 2.0
    audit_timeout: float = 5.0
    token_ttl: int = 300
    signing_key_hex: Optional[str] = None
    log_level: str = "INFO"
    log_json: bool = False


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", Settings.database_url),
        resolver_timeout=float(os.getenv("CAREPOLICY_RESOLVER_TIMEOUT", Settings.resolver_timeout)),
        audit_timeout=float(os.getenv("CAREPOLICY_AUDIT_TIMEOUT", Settings.audit_timeout)),
        token_ttl=int(os.getenv("CAREPOLICY_TOKEN_TTL", Settings.token_ttl)),
        signing_key_hex=os.getenv("CAREPOLICY_SIGNING_KEY") or None,
        log_level=os.getenv("CAREPOLICY_LOG_LEVEL", Settings.log_level).upper(),
        log_json=_flag("CAREPOLICY_LOG_JSON"),
    )
