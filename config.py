import logging
import os
import secrets
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

TOKEN_EXPIRE_MINUTES = 60 * 24 * 7  # 7 days
MAX_UPLOAD_BYTES = 500 * 1024 * 1024  # 500MB
RATE_LIMIT_WINDOW_SECONDS = 15 * 60  # 15 minutes
API_RATE_LIMIT_MAX_REQUESTS = 100
AUTH_RATE_LIMIT_MAX_REQUESTS = 5

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseModel):
    data_dir: Path = Path("data")
    upload_dir: Path = Path("uploads")
    # Without JWT_SECRET every process gets its own key, so tokens do not survive a restart.
    secret_key: str = Field(default_factory=lambda: secrets.token_hex(64))
    token_expire_minutes: int = TOKEN_EXPIRE_MINUTES
    password_hash_rounds: Optional[int] = None
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    api_rate_limit_max_requests: int = API_RATE_LIMIT_MAX_REQUESTS
    api_rate_limit_window_seconds: float = RATE_LIMIT_WINDOW_SECONDS
    auth_rate_limit_max_requests: int = AUTH_RATE_LIMIT_MAX_REQUESTS
    auth_rate_limit_window_seconds: float = RATE_LIMIT_WINDOW_SECONDS
    port: int = 3000

    @classmethod
    def from_env(cls) -> "Settings":
        values = {
            "data_dir": os.getenv("DATA_DIR"),
            "upload_dir": os.getenv("UPLOAD_DIR"),
            "secret_key": os.getenv("JWT_SECRET"),
            "token_expire_minutes": os.getenv("TOKEN_EXPIRE_MINUTES"),
            "password_hash_rounds": os.getenv("PASSWORD_HASH_ROUNDS"),
            "max_upload_bytes": os.getenv("MAX_UPLOAD_BYTES"),
            "log_level": os.getenv("LOG_LEVEL"),
            "api_rate_limit_max_requests": os.getenv("API_RATE_LIMIT_MAX_REQUESTS"),
            "api_rate_limit_window_seconds": os.getenv("API_RATE_LIMIT_WINDOW_SECONDS"),
            "auth_rate_limit_max_requests": os.getenv("AUTH_RATE_LIMIT_MAX_REQUESTS"),
            "auth_rate_limit_window_seconds": os.getenv("AUTH_RATE_LIMIT_WINDOW_SECONDS"),
            "port": os.getenv("PORT"),
        }
        origins = os.getenv("CORS_ORIGINS")
        if origins:
            values["cors_origins"] = [o.strip() for o in origins.split(",") if o.strip()]
        return cls(**{k: v for k, v in values.items() if v})

    @property
    def video_dir(self) -> Path:
        return self.upload_dir / "videos"

    @property
    def image_dir(self) -> Path:
        return self.upload_dir / "images"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
