"""Configuration models for the comparison engine."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class ViewportConfig(BaseModel):
    width: int = 1280
    height: int = 800


class NotificationConfig(BaseModel):
    enabled: bool = True
    provider: Literal["log", "smtp"] = "log"
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_use_tls: bool = True
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    from_email: str = "noreply@website-compare.com"
    from_name: str = "Website Compare"

    @field_validator("smtp_password", mode="before")
    @classmethod
    def resolve_env_password(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str) and v.startswith("env:"):
            env_var = v[4:]
            resolved = os.environ.get(env_var)
            if resolved is None:
                raise ValueError(f"Environment variable '{env_var}' not set")
            return resolved
        return v


class EngineConfig(BaseModel):
    # Storage
    data_dir: str = ".webcompare"

    # Capture
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    capture_timeout_seconds: float = 30
    wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = "networkidle"
    user_agent: Optional[str] = None
    headless: bool = True

    # Diffing
    diff_tolerance: float = 0.1
    # Re-capture baselines whose size is not exactly the viewport size
    refresh_legacy_baselines: bool = True

    # Failure notifications
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)

    @field_validator("diff_tolerance")
    @classmethod
    def check_tolerance(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("diff_tolerance must be between 0 and 1")
        return v

    @field_validator("capture_timeout_seconds")
    @classmethod
    def check_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("capture_timeout_seconds must be positive")
        return v

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    @property
    def screenshots_dir(self) -> Path:
        return self.data_path / "screenshots"

    @property
    def catalog_path(self) -> Path:
        return self.data_path / "catalog.json"

    @property
    def comparisons_path(self) -> Path:
        return self.data_path / "comparisons.json"

    @classmethod
    def load(cls, path: str | Path) -> "EngineConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
