from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ARTIFACT_TEMPLATES_", case_sensitive=False
    )

    repository_path: Path = Path.home() / ".artifact-templates" / "repository"
    temp_root: Path | None = None
    config_path: Path | None = None
    max_depth: int = 64
    delete_attempts: int = 3
    file_mode: int = 0o644
    verbose: bool = False

    @field_validator("file_mode", mode="before")
    @classmethod
    def _parse_octal_mode(cls, value: Any) -> Any:
        # Environment values such as "644" or "0o644" are octal permissions
        if isinstance(value, str):
            try:
                return int(value.strip(), 8)
            except ValueError as exc:
                raise ValueError(f"Invalid octal mode: {value!r}") from exc
        return value
