import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List

from dotenv import load_dotenv


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, read once from the process environment."""

    mongodb_uri: str = "mongodb://localhost:27017/story_auth"
    secret_key: str = "testing_secret_key_for_development_only"
    jwt_algorithm: str = "HS256"
    access_token_expire_days: int = 15
    refresh_token_expire_days: int = 15
    bcrypt_rounds: int = 12
    token_cleanup_interval_hours: int = 24
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])
    log_level: str = "INFO"

    @property
    def refresh_token_ttl_seconds(self) -> int:
        return self.refresh_token_expire_days * 24 * 60 * 60

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            mongodb_uri=os.getenv("MONGODB_URI", cls.mongodb_uri),
            secret_key=os.getenv("SECRET_KEY", cls.secret_key),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", cls.jwt_algorithm),
            access_token_expire_days=int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "15")),
            refresh_token_expire_days=int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "15")),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
            token_cleanup_interval_hours=int(os.getenv("TOKEN_CLEANUP_INTERVAL_HOURS", "24")),
            cors_origins=_split_origins(os.getenv("CORS_ORIGINS", "http://localhost:3000")),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
