"""Application settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``TXPROV_``, nested via ``__``)
2. YAML config file (``TXPROV_CONFIG_PATH`` env var or :meth:`AppConfig.from_yaml`)
3. Defaults defined here
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tx_provenance.btc.address import Network

__all__ = ["AppConfig", "Network", "RPCConfig", "ReportConfig"]

# ---------------------------------------------------------------------------
# Sub-config models
# ---------------------------------------------------------------------------


class RPCConfig(BaseSettings):
    """Bitcoin Core JSON-RPC settings."""

    model_config = SettingsConfigDict(
        env_prefix="TXPROV_RPC__",
        case_sensitive=False,
    )

    url: str = Field(
        default="http://127.0.0.1:18443",
        description="Node RPC endpoint (18443 is the regtest default)",
    )
    user: str = "alice"
    password: str = "password"
    wallet: str = Field(
        default="Miner",
        description="Wallet that tracked the inspected transaction (fee, block metadata)",
    )
    timeout: float = 30.0


class ReportConfig(BaseSettings):
    """Report artifact settings."""

    model_config = SettingsConfigDict(
        env_prefix="TXPROV_REPORT__",
        case_sensitive=False,
    )

    path: str = Field(default="out.txt", description="Destination of the report file")


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Loads settings from environment variables (``TXPROV_`` prefix),
    an optional YAML file, and built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="TXPROV_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    debug: bool = False
    log_level: str = "INFO"
    network: Network = Network.REGTEST
    config_path: str = ""

    rpc: RPCConfig = Field(default_factory=RPCConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            msg = f"Unknown log level: {value}"
            raise ValueError(msg)
        return level

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the env var overrides."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        yaml_data = _load_yaml(config_path)
        # YAML values serve as defaults; env vars (already in *values*) win.
        for key, val in yaml_data.items():
            if key not in values or values[key] is None:
                values[key] = val
            elif isinstance(val, dict) and isinstance(values.get(key), dict):
                values[key] = {**val, **values[key]}
        return values

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Construct ``AppConfig`` loading defaults from a YAML file.

        Environment variables still override YAML values.
        """
        return cls(config_path=str(path))

    @property
    def effective_log_level(self) -> str:
        """``DEBUG`` when debug mode is on, otherwise the configured level."""
        return "DEBUG" if self.debug else self.log_level
