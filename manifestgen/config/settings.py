from __future__ import annotations

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MANIFESTGEN_", case_sensitive=False)

    config_file: Path = Path("templates.yaml")
    resources_root: Path = Path("src/main/resources")
    build_dir: Path = Path("build")
    file_mode: int = 0o644

    @field_validator("file_mode", mode="before")
    @classmethod
    def parse_octal_mode(cls, value: object) -> object:
        # Environment values such as "0644" are octal.
        if isinstance(value, str):
            return int(value, 8)
        return value
