"""
Configuration Module
====================

Provides immutable, environment-aware configuration.

Features:
- Immutable configuration after initialization
- Environment variable override support (CCRYPT_ prefix)
- Sensitive keys are never read from the environment
- OS-aware path handling
"""

from __future__ import annotations

import hashlib
import os
import platform
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Optional


_SENSITIVE_KEYS: Final[frozenset[str]] = frozenset({
    "password", "passwd", "secret", "key", "token", "seed", "credential",
})

LIBRARY_FILENAME: Final[str] = "library.db"
ARTIFACT_DIRNAME: Final[str] = "encrypted"


def _is_sensitive_key(key: str) -> bool:
    """Check if a configuration key might carry password material."""
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in _SENSITIVE_KEYS)


def _get_default_data_dir() -> Path:
    """Get OS-appropriate default data directory."""
    system = platform.system().lower()

    if system == "windows":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
    elif system == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:  # Linux and others
        base = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))

    return base / "CCrypt"


def _get_default_log_dir() -> Path:
    """Get OS-appropriate default log directory."""
    system = platform.system().lower()

    if system == "windows":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
        return base / "CCrypt" / "Logs"
    elif system == "darwin":
        return Path.home() / "Library" / "Logs" / "CCrypt"
    else:  # Linux and others
        return Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state")) / "CCrypt" / "logs"


@dataclass(frozen=True, slots=True)
class PathConfig:
    """Immutable path configuration with OS-aware defaults."""

    data_dir: Path = field(default_factory=_get_default_data_dir)
    log_dir: Path = field(default_factory=_get_default_log_dir)

    def __post_init__(self) -> None:
        for field_name in ["data_dir", "log_dir"]:
            path = getattr(self, field_name)
            if not path.is_absolute():
                raise ValueError(f"{field_name} must be an absolute path: {path}")

    @property
    def library_file(self) -> Path:
        """Persisted library location."""
        return self.data_dir / LIBRARY_FILENAME

    @property
    def artifact_dir(self) -> Path:
        """Directory holding encrypted artifacts."""
        return self.data_dir / ARTIFACT_DIRNAME


@dataclass(frozen=True, slots=True)
class LibraryConfig:
    """Library store settings."""

    # None means unbounded
    max_entries: Optional[int] = None
    default_compress: bool = True
    secure_delete: bool = False
    secure_delete_passes: int = 3

    def __post_init__(self) -> None:
        if self.max_entries is not None and self.max_entries < 1:
            raise ValueError("max_entries must be positive")
        if self.secure_delete_passes < 1:
            raise ValueError("secure_delete_passes must be at least 1")


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Immutable logging configuration."""

    level: str = "INFO"
    max_file_size_bytes: int = 10 * 1024 * 1024  # 10 MB
    backup_count: int = 5
    enable_console: bool = False
    enable_file: bool = True
    enable_json: bool = False

    def __post_init__(self) -> None:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.level.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {self.level}")


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Immutable application configuration."""

    app_name: str = "CCrypt"
    version: str = "1.0.0"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


class CCryptConfig:
    """
    Centralized, immutable configuration loader with environment override support.

    Usage:
        config = CCryptConfig.load()
        library_file = config.paths.library_file
        cap = config.library.max_entries
    """

    __slots__ = ("_paths", "_library", "_logging", "_app", "_frozen", "_config_hash")

    def __init__(
        self,
        paths: Optional[PathConfig] = None,
        library: Optional[LibraryConfig] = None,
        logging: Optional[LoggingConfig] = None,
        app: Optional[AppConfig] = None,
    ) -> None:
        """Initialize configuration. Use CCryptConfig.load() for standard initialization."""
        object.__setattr__(self, "_frozen", False)
        object.__setattr__(self, "_paths", paths or PathConfig())
        object.__setattr__(self, "_library", library or LibraryConfig())
        object.__setattr__(self, "_logging", logging or LoggingConfig())
        object.__setattr__(self, "_app", app or AppConfig())
        object.__setattr__(self, "_config_hash", self._compute_hash())
        object.__setattr__(self, "_frozen", True)

    def _compute_hash(self) -> str:
        config_str = f"{self._paths}|{self._library}|{self._logging}|{self._app}"
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @property
    def paths(self) -> PathConfig:
        """Get path configuration."""
        return self._paths

    @property
    def library(self) -> LibraryConfig:
        """Get library configuration."""
        return self._library

    @property
    def logging(self) -> LoggingConfig:
        """Get logging configuration."""
        return self._logging

    @property
    def app(self) -> AppConfig:
        """Get application configuration."""
        return self._app

    @property
    def config_hash(self) -> str:
        return self._config_hash

    @classmethod
    def for_directory(cls, data_dir: Path | str) -> CCryptConfig:
        """Build a configuration rooted at ``data_dir`` with file logging off."""
        data_dir = Path(data_dir).resolve()
        return cls(
            paths=PathConfig(data_dir=data_dir, log_dir=data_dir / "logs"),
            logging=LoggingConfig(enable_file=False),
        )

    @classmethod
    def load(cls, env_prefix: str = "CCRYPT") -> CCryptConfig:
        """
        Load configuration with environment variable overrides.

        Environment variables use the given prefix and double underscores
        for nested values.

        Examples:
            CCRYPT_PATHS__DATA_DIR=/custom/path
            CCRYPT_LIBRARY__MAX_ENTRIES=1000
            CCRYPT_LOGGING__LEVEL=DEBUG

        Args:
            env_prefix: Prefix for environment variables (default: CCRYPT)

        Returns:
            Configured CCryptConfig instance
        """
        env_overrides = cls._parse_env_overrides(env_prefix)

        paths_kwargs: dict[str, Any] = {}
        if "paths.data_dir" in env_overrides:
            paths_kwargs["data_dir"] = Path(env_overrides["paths.data_dir"]).expanduser().resolve()
        if "paths.log_dir" in env_overrides:
            paths_kwargs["log_dir"] = Path(env_overrides["paths.log_dir"]).expanduser().resolve()

        library_kwargs: dict[str, Any] = {}
        if "library.max_entries" in env_overrides:
            library_kwargs["max_entries"] = int(env_overrides["library.max_entries"])
        if "library.default_compress" in env_overrides:
            library_kwargs["default_compress"] = _parse_bool(env_overrides["library.default_compress"])
        if "library.secure_delete" in env_overrides:
            library_kwargs["secure_delete"] = _parse_bool(env_overrides["library.secure_delete"])
        if "library.secure_delete_passes" in env_overrides:
            library_kwargs["secure_delete_passes"] = int(env_overrides["library.secure_delete_passes"])

        logging_kwargs: dict[str, Any] = {}
        if "logging.level" in env_overrides:
            logging_kwargs["level"] = env_overrides["logging.level"]
        if "logging.enable_console" in env_overrides:
            logging_kwargs["enable_console"] = _parse_bool(env_overrides["logging.enable_console"])
        if "logging.enable_file" in env_overrides:
            logging_kwargs["enable_file"] = _parse_bool(env_overrides["logging.enable_file"])
        if "logging.enable_json" in env_overrides:
            logging_kwargs["enable_json"] = _parse_bool(env_overrides["logging.enable_json"])

        return cls(
            paths=PathConfig(**paths_kwargs) if paths_kwargs else None,
            library=LibraryConfig(**library_kwargs) if library_kwargs else None,
            logging=LoggingConfig(**logging_kwargs) if logging_kwargs else None,
        )

    @staticmethod
    def _parse_env_overrides(prefix: str) -> dict[str, str]:
        """Parse environment variables with the given prefix."""
        overrides: dict[str, str] = {}
        prefix_upper = f"{prefix.upper()}_"

        for key, value in os.environ.items():
            if key.startswith(prefix_upper):
                # CCRYPT_SECTION__KEY -> section.key
                config_key = key[len(prefix_upper):].lower().replace("__", ".")
                if _is_sensitive_key(config_key):
                    continue
                overrides[config_key] = value

        return overrides

    def ensure_directories(self) -> None:
        """Create data, artifact and log directories (owner-only on POSIX)."""
        directories = [
            self._paths.data_dir,
            self._paths.artifact_dir,
        ]
        if self._logging.enable_file:
            directories.append(self._paths.log_dir)

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

            if platform.system().lower() != "windows":
                directory.chmod(stat.S_IRWXU)  # 700 - owner only

    def __repr__(self) -> str:
        return f"CCryptConfig(hash={self._config_hash}, data_dir={str(self._paths.data_dir)!r})"

    def __setattr__(self, name: str, value: Any) -> None:
        """Prevent modification after initialization."""
        if hasattr(self, "_frozen") and self._frozen:
            raise AttributeError("CCryptConfig is immutable after initialization")
        super().__setattr__(name, value)
