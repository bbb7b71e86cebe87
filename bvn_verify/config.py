from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

import yaml
from pydantic import BaseModel, field_validator

from .backends.fixture import DEFAULT_LATENCY_SECONDS
from .backends.remote import DEFAULT_TIMEOUT_SECONDS, DEFAULT_USERAGENT
from .models import BackendMode

ENV_API_KEY = "BVN_VERIFICATION_API_KEY"
ENV_SANDBOX_MODE = "BVN_VERIFICATION_SANDBOX_MODE"
ENV_MODE = "BVN_VERIFICATION_MODE"
ENV_JSON_FILE = "BVN_VERIFICATION_JSON_FILE"

_TRUTHY = {"1", "true", "yes", "on"}


class RemoteSettings(BaseModel):
    api_key: str = "mock-key"
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    useragent: str = DEFAULT_USERAGENT


class FixtureSettings(BaseModel):
    data_file: Optional[Path] = None
    latency_seconds: float = DEFAULT_LATENCY_SECONDS

    @field_validator("data_file", mode="before")
    @classmethod
    def _expand_data_file(cls, value: Optional[str | Path]) -> Optional[Path]:
        if value is None or value == "":
            return None
        return Path(value).expanduser().resolve()


class Settings(BaseModel):
    mode: BackendMode = BackendMode.FIXTURE
    sandbox_mode: bool = True
    remote: RemoteSettings = RemoteSettings()
    fixture: FixtureSettings = FixtureSettings()

    @classmethod
    def load(cls, path: Path) -> "Settings":
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
        return cls.model_validate(raw or {})

    def with_env_overrides(self, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Return a copy with ``BVN_VERIFICATION_*`` variables applied."""
        env = os.environ if environ is None else environ
        raw = self.model_dump()
        if env.get(ENV_API_KEY):
            raw["remote"]["api_key"] = env[ENV_API_KEY]
        if env.get(ENV_SANDBOX_MODE):
            raw["sandbox_mode"] = env[ENV_SANDBOX_MODE].strip().lower() in _TRUTHY
        if env.get(ENV_MODE):
            raw["mode"] = env[ENV_MODE].strip().lower()
        if env.get(ENV_JSON_FILE):
            raw["fixture"]["data_file"] = env[ENV_JSON_FILE]
        return type(self).model_validate(raw)


def find_config(explicit_path: Optional[Path]) -> Path:
    if explicit_path:
        return explicit_path
    cwd = Path.cwd()
    for candidate in (cwd / "config.yaml", cwd / "config.yml"):
        if candidate.exists():
            return candidate
    raise FileNotFoundError("Could not find config.yaml – pass --config explicitly.")
