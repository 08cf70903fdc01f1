"""
Runtime configuration

Values come from the process environment, with a local .env file loaded first.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    database_url: Optional[str] = None
    database_name: str = "vidshare"
    mongo_transactions: bool = False
    admin_token: Optional[str] = None
    allowed_origin: str = "*"
    site_url: str = "https://vidsharepro.netlify.app"
    upload_dir: str = "uploads"
    default_page: str = "oz"
    log_level: str = "INFO"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            database_url=os.getenv("DATABASE_URL") or None,
            database_name=os.getenv("DATABASE_NAME", "vidshare"),
            mongo_transactions=_flag(os.getenv("MONGO_TRANSACTIONS")),
            admin_token=os.getenv("ADMIN_TOKEN") or None,
            allowed_origin=os.getenv("ALLOWED_ORIGIN") or "*",
            site_url=os.getenv("SITE_URL", "https://vidsharepro.netlify.app").rstrip("/"),
            upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
            default_page=os.getenv("DEFAULT_PAGE") or "oz",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            port=int(os.getenv("PORT", 8000)),
        )
