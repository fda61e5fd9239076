"""Configuration for ldpm.

Settings are read, lowest precedence first, from built-in defaults, a JSON
config file (``~/.ldpm/config.json`` unless another path is given) and
``LDPM_*`` environment variables. CLI options override all of them.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Self

from ldpm.core.exceptions import ConfigurationError


DEFAULT_REGISTRY_URL = "https://registry.standardanalytics.io"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_WORKERS = 4

ENV_PREFIX = "LDPM_"


def ldpm_home() -> Path:
    """Directory holding the user's ldpm config and cache."""
    return Path.home() / ".ldpm"


def default_cache_dir() -> Path:
    """Cache directory when none is configured: ``~/.ldpm/cache``."""
    return ldpm_home() / "cache"


def default_config_path() -> Path:
    return ldpm_home() / "config.json"


@dataclass(frozen=True, slots=True)
class RegistryConfig:
    """Connection and cache settings.

    Attributes:
        registry_url: Registry location; an http(s) URL or a local directory.
        cache_dir: Durable package cache directory.
        timeout: Registry request timeout in seconds.
        max_workers: Maximum concurrent registry fetches.
        strict_ssl: Verify TLS certificates.
    """

    registry_url: str = DEFAULT_REGISTRY_URL
    cache_dir: Path = field(default_factory=default_cache_dir)
    timeout: float = DEFAULT_TIMEOUT
    max_workers: int = DEFAULT_MAX_WORKERS
    strict_ssl: bool = True

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if not self.registry_url:
            raise ConfigurationError("registry_url cannot be empty")
        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout}")
        if self.max_workers < 1:
            raise ConfigurationError(
                f"max_workers must be at least 1, got {self.max_workers}"
            )

    @property
    def context_url(self) -> str:
        """JSON-LD context served by the registry."""
        return f"{self.registry_url.rstrip('/')}/contexts/datapackage.jsonld"

    def with_overrides(self, **overrides: Any) -> Self:
        """Return a copy with every non-None override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if "cache_dir" in values:
            values["cache_dir"] = Path(values["cache_dir"]).expanduser()
        try:
            return replace(self, **values)
        except TypeError as e:
            raise ConfigurationError(f"Unknown configuration option: {e}") from e


def _coerce(key: str, value: Any) -> Any:
    try:
        if key == "timeout":
            return float(value)
        if key == "max_workers":
            return int(value)
        if key == "strict_ssl":
            if isinstance(value, str):
                return value.strip().lower() not in ("0", "false", "no", "off")
            return bool(value)
        if key == "cache_dir":
            return Path(value).expanduser()
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for {key}: {value!r}") from e
    return str(value)


_KEYS = ("registry_url", "cache_dir", "timeout", "max_workers", "strict_ssl")


def load_config(
    path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> RegistryConfig:
    """Load configuration from file and environment.

    Args:
        path: Config file to read. Defaults to ``~/.ldpm/config.json``;
            a missing default file is not an error.
        env: Environment mapping. Defaults to ``os.environ``.

    Returns:
        The merged RegistryConfig.

    Raises:
        ConfigurationError: If the file is unreadable or a value is invalid.
    """
    env = os.environ if env is None else env
    values: dict[str, Any] = {}

    config_path = path or default_config_path()
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {config_path} must hold an object")
        unknown = sorted(set(data) - set(_KEYS))
        if unknown:
            raise ConfigurationError(
                f"Unknown keys in {config_path}: {', '.join(unknown)}"
            )
        values.update(data)
    elif path is not None:
        raise ConfigurationError(f"Config file not found: {path}")

    for key in _KEYS:
        env_value = env.get(f"{ENV_PREFIX}{key.upper()}")
        if env_value:
            values[key] = env_value

    return RegistryConfig(**{k: _coerce(k, v) for k, v in values.items()})
