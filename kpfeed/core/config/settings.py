"""Configuration management for kpfeed.

Precedence, lowest first: dataclass defaults, TOML file, ``KPFEED_*``
environment variables, command line options.
"""

import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from kpfeed.core.exceptions import ConfigurationError
from kpfeed.core.fetcher import DEFAULT_TIMEOUT, DEFAULT_URL
from kpfeed.core.line_protocol import DEFAULT_MEASUREMENT, DEFAULT_SOURCE, TimestampPrecision

DEFAULT_CONFIG_PATH = Path.home() / ".kpfeed" / "config.toml"


@dataclass
class FetchConfig:
    """Source download settings"""

    url: str = DEFAULT_URL
    timeout: float = DEFAULT_TIMEOUT


@dataclass
class CursorConfig:
    """Cursor persistence settings. An empty path disables persistence."""

    path: str = ""


@dataclass
class OutputConfig:
    """Line protocol rendering settings"""

    measurement: str = DEFAULT_MEASUREMENT
    source: str = DEFAULT_SOURCE
    precision: str = TimestampPrecision.NS.value


@dataclass
class LoggingConfig:
    """Logging settings"""

    level: str = "WARNING"
    file: str = ""


@dataclass
class FeedConfig:
    """kpfeed main configuration"""

    fetch: FetchConfig = field(default_factory=FetchConfig)
    cursor: CursorConfig = field(default_factory=CursorConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self) -> None:
        for key, value in self._string_values():
            if not isinstance(value, str):
                raise ConfigurationError(
                    f"{key} must be a string, got {type(value).__name__}",
                    config_key=key,
                )
        timeout = self.fetch.timeout
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            raise ConfigurationError(
                f"fetch.timeout must be a number, got {type(timeout).__name__}",
                config_key="fetch.timeout",
            )
        if not self.fetch.url:
            raise ConfigurationError("fetch.url must not be empty", config_key="fetch.url")
        if self.fetch.timeout <= 0:
            raise ConfigurationError("fetch.timeout must be positive", config_key="fetch.timeout")
        if not self.output.measurement:
            raise ConfigurationError("output.measurement must not be empty", config_key="output.measurement")
        try:
            TimestampPrecision(self.output.precision)
        except ValueError as exc:
            allowed = ", ".join(p.value for p in TimestampPrecision)
            raise ConfigurationError(
                f"Unsupported precision '{self.output.precision}'. Allowed values: {allowed}",
                config_key="output.precision",
            ) from exc

    def _string_values(self) -> list[tuple[str, Any]]:
        return [
            ("fetch.url", self.fetch.url),
            ("cursor.path", self.cursor.path),
            ("output.measurement", self.output.measurement),
            ("output.source", self.output.source),
            ("output.precision", self.output.precision),
            ("logging.level", self.logging.level),
            ("logging.file", self.logging.file),
        ]

    @property
    def precision(self) -> TimestampPrecision:
        return TimestampPrecision(self.output.precision)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "FeedConfig":
        """Build a configuration from a nested dictionary"""
        try:
            return cls(
                fetch=FetchConfig(**config_dict.get("fetch", {})),
                cursor=CursorConfig(**config_dict.get("cursor", {})),
                output=OutputConfig(**config_dict.get("output", {})),
                logging=LoggingConfig(**config_dict.get("logging", {})),
            )
        except TypeError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        return {
            "fetch": asdict(self.fetch),
            "cursor": asdict(self.cursor),
            "output": asdict(self.output),
            "logging": asdict(self.logging),
        }


class ConfigManager:
    """Loads and layers configuration sources."""

    def __init__(self, config_path: Path | None = None, environ: dict[str, str] | None = None):
        """Initialise the manager.

        Args:
            config_path: TOML file; the default location is optional, an explicit path must exist
            environ: Environment mapping, ``os.environ`` when omitted
        """
        self.explicit_path = config_path is not None
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self.environ = os.environ if environ is None else environ
        self.config = self._load_config()

    def _load_config(self) -> FeedConfig:
        config_dict: dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, "rb") as f:
                    config_dict = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as exc:
                raise ConfigurationError(
                    f"Failed to load config from {self.config_path}: {exc}",
                    config_key="config_file",
                ) from exc
        elif self.explicit_path:
            raise ConfigurationError(f"Config file {self.config_path} does not exist", config_key="config_file")

        _deep_update(config_dict, load_config_from_env(self.environ))
        return FeedConfig.from_dict(config_dict)

    def get_config(self) -> FeedConfig:
        return self.config

    def update_config(self, **updates: Any) -> None:
        """Apply section overrides; ``None`` values are ignored."""
        config_dict = self.config.to_dict()
        cleaned = {
            section: {k: v for k, v in values.items() if v is not None}
            for section, values in updates.items()
        }
        _deep_update(config_dict, cleaned)
        self.config = FeedConfig.from_dict(config_dict)


def _deep_update(d: dict[str, Any], u: dict[str, Any]) -> dict[str, Any]:
    for k, v in u.items():
        if isinstance(v, dict):
            d[k] = _deep_update(d.get(k, {}), v)
        else:
            d[k] = v
    return d


_ENV_MAP: dict[str, tuple[str, str]] = {
    "KPFEED_URL": ("fetch", "url"),
    "KPFEED_TIMEOUT": ("fetch", "timeout"),
    "KPFEED_CURSOR_FILE": ("cursor", "path"),
    "KPFEED_MEASUREMENT": ("output", "measurement"),
    "KPFEED_SOURCE": ("output", "source"),
    "KPFEED_PRECISION": ("output", "precision"),
    "KPFEED_LOG_LEVEL": ("logging", "level"),
    "KPFEED_LOG_FILE": ("logging", "file"),
}


def load_config_from_env(environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Read ``KPFEED_*`` variables into a nested config dictionary"""
    env = os.environ if environ is None else environ
    config: dict[str, Any] = {}

    for var, (section, key) in _ENV_MAP.items():
        value = env.get(var)
        if value is None:
            continue
        if key == "timeout":
            try:
                config.setdefault(section, {})[key] = float(value)
            except ValueError as exc:
                raise ConfigurationError(f"{var} must be a number, got {value!r}", config_key=var) from exc
        else:
            config.setdefault(section, {})[key] = value

    return config
