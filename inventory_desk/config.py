import logging
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEV_SECRET = "dev_secret"


class Settings(BaseSettings):
    # server
    port: int = 8000
    cors_origins: Annotated[list[str], NoDecode] = ["http://localhost:5173", "http://127.0.0.1:5173"]
    body_limit: int = 1024 * 1024
    env: Literal["development", "test", "production"] = "development"
    log_level: str = "INFO"

    # storage
    database_url: str = "sqlite:///./inventory_desk.db"
    seed_admin: bool = True
    admin_staff_id: str = "admin"
    admin_password: str = "admin123"

    # auth
    secret_key: str = DEV_SECRET
    access_token_expire_minutes: int = 60 * 24
    reset_token_expire_minutes: int = 15

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, v):
        # "a,b" in the environment -> ["a", "b"]
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    @model_validator(mode="after")
    def check_production_secret(self):
        if self.env == "production" and self.secret_key == DEV_SECRET:
            raise ValueError("secret_key must be set in production")
        return self

    @property
    def is_development(self) -> bool:
        return self.env == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def setup_logging(settings: Settings | None = None) -> None:
    """Configure root logging once at startup."""
    cfg = settings or get_settings()
    logging.basicConfig(
        level=cfg.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
