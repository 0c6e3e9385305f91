import os
from functools import lru_cache
from pathlib import Path
from typing import Optional


class Settings:
    def __init__(
        self,
        database_url: str,
        auth_secret: str,
        token_max_age_hours: int = 24 * 30,
        duplicate_policy: str = "reuse",
        single_tenant_owner: Optional[str] = None,
        log_level: str = "INFO",
    ) -> None:
        self.database_url = database_url
        self.auth_secret = auth_secret
        self.token_max_age_hours = token_max_age_hours
        self.duplicate_policy = duplicate_policy
        self.single_tenant_owner = single_tenant_owner
        self.log_level = log_level


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("LEDGER_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "ledger.db"
    database_url = os.getenv("LEDGER_DATABASE_URL", f"sqlite:///{default_db}")
    auth_secret = os.getenv(
        "LEDGER_AUTH_SECRET",
        "5f0c1d9e2b7a48c6a3e1f08d94b6c2e7d1a0b3c5f7e9d2a4c6b8e0f1a3c5d7e9",
    )
    token_max_age_hours = int(os.getenv("LEDGER_TOKEN_MAX_AGE_HOURS", str(24 * 30)))
    duplicate_policy = os.getenv("LEDGER_DUPLICATE_POLICY", "reuse").strip().lower()
    single_tenant_owner = os.getenv("LEDGER_SINGLE_TENANT_OWNER") or None
    log_level = os.getenv("LEDGER_LOG_LEVEL", "INFO").upper()
    return Settings(
        database_url=database_url,
        auth_secret=auth_secret,
        token_max_age_hours=token_max_age_hours,
        duplicate_policy=duplicate_policy,
        single_tenant_owner=single_tenant_owner,
        log_level=log_level,
    )
