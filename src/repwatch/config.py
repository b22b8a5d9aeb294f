"""Global configuration — controller target, credentials, tunables."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

_ENV_PREFIX = "REPWATCH_"


@dataclass
class RepWatchConfig:
    """Application-wide configuration."""

    host: str = ""
    username: str = ""
    password: str = ""
    http_timeout: float = 180.0
    clear_delay: float = 30.0
    verify_ssl: bool = False  # APICs commonly run self-signed certificates
    restart_cooldown: float = 30.0
    log_file: str = "rep.log"

    @property
    def base_url(self) -> str:
        return f"https://{self.host}"

    @property
    def socket_base_url(self) -> str:
        return f"wss://{self.host}"

    @property
    def is_complete(self) -> bool:
        """Whether host and credentials are all present."""
        return bool(self.host and self.username and self.password)

    @classmethod
    def load(cls, path: str | Path | None = None) -> RepWatchConfig:
        """Load config from an optional YAML file, then environment variables."""
        config = cls()

        if path is not None:
            config.update(_read_yaml(path))

        env_values: dict[str, str] = {}
        for f in fields(cls):
            value = os.environ.get(_ENV_PREFIX + f.name.upper())
            if value:
                env_values[f.name] = value
        config.update(env_values)

        return config

    def update(self, values: dict[str, object]) -> None:
        """Apply known keys from a mapping, coercing to the field types."""
        known = {f.name: f for f in fields(self)}
        for key, raw in values.items():
            name = key.replace("-", "_")
            if name not in known or raw is None:
                continue
            current = getattr(self, name)
            setattr(self, name, _coerce(name, raw, current))


def _read_yaml(path: str | Path) -> dict[str, object]:
    text = Path(path).read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Config YAML must be a mapping")
    return data


def _coerce(name: str, raw: object, current: object) -> object:
    if isinstance(current, bool):
        if isinstance(raw, str):
            return raw.strip().lower() in ("1", "true", "yes", "on")
        return bool(raw)
    if isinstance(current, float):
        try:
            return float(raw)  # type: ignore[arg-type]
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid value for {name}: {raw!r}") from e
    return str(raw)
