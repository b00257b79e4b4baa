"""
Static configuration management for LifeQuest (2025).

Purpose
-------
Provides centralized static configuration loaded from environment variables
with sensible defaults, type validation, and bounds checking. This module
handles non-dynamic configuration that is set at application startup.

Responsibilities
----------------
- Load configuration from environment variables with .env support
- Provide type-safe access to all static configuration values
- Validate critical settings on startup
- Create required directories (logs, data, backups)
- Track configuration loading metrics

Non-Responsibilities
--------------------
- Game content and balance values (handled by ConfigManager / YAML)
- Runtime configuration changes (except safe reload)

Architecture Notes
------------------
- Singleton pattern via class methods (no instantiation)
- Auto-loads on module import via Config.validate()
- Directory paths relative to project root for portability
- The daily reset timezone and cutover hour live here and are consumed
  only by the daily reset scheduler

Configuration Categories
------------------------
1. Environment: Environment type, debug mode, logging
2. Storage: database URL, backup directory, storage key
3. Persistence: snapshot schema version
4. Daily Reset: timezone, cutover hour, check interval

Dependencies
------------
- python-dotenv: Environment variable loading
- pathlib: Cross-platform path handling
- logging: Basic logging (bootstrap only)

Environment Variables
---------------------
Optional (with defaults):
- ENVIRONMENT: Environment type (default: development)
- LOG_LEVEL: Logging level (default: INFO)
- DATABASE_URL: SQLAlchemy async URL (default: SQLite file in data/)
- BACKUP_DIR: Directory for the secondary storage medium
- STORAGE_KEY: Logical key of the progress snapshot
- RESET_TIMEZONE: Olson timezone of the daily cutover (default: Europe/Kiev)
- RESET_CUTOVER_HOUR: Local hour of the daily cutover (default: 4)
"""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# ============================================================================
# Enums and Constants
# ============================================================================


class Environment(Enum):
    """
    Deployment environment types.

    Defines valid environment values with strict type safety.
    """
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """
        Parse environment string safely with fallback.

        Parameters
        ----------
        value:
            Environment string to parse.

        Returns
        -------
        Environment
            Parsed environment enum value.

        Example
        -------
        >>> Environment.from_string("production") == Environment.PRODUCTION
        True
        >>> Environment.from_string("invalid") == Environment.DEVELOPMENT
        True
        """
        try:
            return cls(value.lower())
        except ValueError:
            # Use basic logging during bootstrap (structured logger not yet initialized)
            import logging
            logging.warning(
                f"Unknown environment '{value}', defaulting to development"
            )
            return cls.DEVELOPMENT


# ============================================================================
# Configuration Metrics Tracker
# ============================================================================

class _ConfigLoadMetrics:
    """
    Internal metrics tracker for configuration loading.

    Tracks which configuration values came from environment variables
    versus defaults, and any validation errors encountered.
    """

    def __init__(self):
        self.env_vars_loaded: Dict[str, bool] = {}
        self.validation_errors: Dict[str, str] = {}
        self.defaults_used: Dict[str, Any] = {}
        self.last_reload: Optional[str] = None

    def record_env_load(self, key: str, from_env: bool, value: Any, default: Any):
        """Record whether a config value came from environment."""
        self.env_vars_loaded[key] = from_env
        if not from_env:
            self.defaults_used[key] = default

    def record_validation_error(self, key: str, error: str):
        """Record a validation error."""
        self.validation_errors[key] = error

    def get_summary(self) -> Dict[str, Any]:
        """Get configuration loading summary."""
        return {
            "total_configs": len(self.env_vars_loaded),
            "from_environment": sum(1 for v in self.env_vars_loaded.values() if v),
            "from_defaults": sum(1 for v in self.env_vars_loaded.values() if not v),
            "validation_errors": len(self.validation_errors),
            "defaults_used": list(self.defaults_used.keys()),
            "last_reload": self.last_reload,
        }


# ============================================================================
# Main Configuration Class
# ============================================================================


class Config:
    """
    Centralized static configuration for the LifeQuest engine.

    All configuration values loaded from environment variables with sensible
    defaults. Invalid values fall back to defaults with a logged warning.

    Usage
    -----
    >>> Config.RESET_CUTOVER_HOUR
    4
    >>> Config.is_production()
    False
    """

    # =========================================================================
    # Internal State
    # =========================================================================

    _metrics: Optional[_ConfigLoadMetrics] = None
    _enable_metrics: bool = True
    _validated: bool = False

    # =========================================================================
    # Environment Configuration
    # =========================================================================

    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_COLORS: bool = True

    # =========================================================================
    # Directory Configuration
    # =========================================================================

    # Place logs + data at project root
    PROJECT_ROOT = Path(__file__).resolve().parents[3]
    LOGS_DIR = PROJECT_ROOT / "logs"
    DATA_DIR = PROJECT_ROOT / "data"
    BACKUP_DIR = DATA_DIR / "backup"
    CONFIG_DIR = PROJECT_ROOT / "config"

    # =========================================================================
    # Storage Configuration
    # =========================================================================

    DATABASE_URL: str = f"sqlite+aiosqlite:///{DATA_DIR / 'lifequest.db'}"
    DATABASE_ECHO: bool = False
    STORAGE_KEY: str = "userProgressData"

    # =========================================================================
    # Persistence
    # =========================================================================

    # Reserved for future migrations; every version is read the same way.
    SCHEMA_VERSION: str = "1.0.1"

    # =========================================================================
    # Daily Reset
    # =========================================================================

    RESET_TIMEZONE: str = "Europe/Kiev"
    RESET_CUTOVER_HOUR: int = 4
    RESET_CHECK_INTERVAL_SECONDS: int = 60

    # =========================================================================
    # Helper Methods
    # =========================================================================

    @classmethod
    def _init_metrics(cls):
        """Initialize metrics tracking if enabled."""
        if cls._enable_metrics and cls._metrics is None:
            cls._metrics = _ConfigLoadMetrics()

    @classmethod
    def _safe_int(
        cls,
        key: str,
        default: int,
        min_val: Optional[int] = None,
        max_val: Optional[int] = None,
    ) -> int:
        """
        Safely parse integer from environment with validation.

        Parameters
        ----------
        key:
            Environment variable name.
        default:
            Default value if not set or invalid.
        min_val:
            Minimum allowed value (inclusive).
        max_val:
            Maximum allowed value (inclusive).

        Returns
        -------
        int
            Validated integer value.

        Example
        -------
        >>> Config._safe_int("RESET_CUTOVER_HOUR", 4, min_val=0, max_val=23)
        4
        """
        cls._init_metrics()

        raw_value = os.getenv(key)

        if raw_value is None:
            if cls._metrics:
                cls._metrics.record_env_load(key, False, default, default)
            return default

        try:
            value = int(raw_value)

            # Validate bounds
            if min_val is not None and value < min_val:
                error = f"{key}={value} is below minimum {min_val}, using default {default}"
                import logging
                logging.warning(error)
                if cls._metrics:
                    cls._metrics.record_validation_error(key, error)
                return default

            if max_val is not None and value > max_val:
                error = f"{key}={value} exceeds maximum {max_val}, using default {default}"
                import logging
                logging.warning(error)
                if cls._metrics:
                    cls._metrics.record_validation_error(key, error)
                return default

            if cls._metrics:
                cls._metrics.record_env_load(key, True, value, default)

            return value

        except ValueError:
            error = f"{key}='{raw_value}' is not a valid integer, using default {default}"
            import logging
            logging.warning(error)
            if cls._metrics:
                cls._metrics.record_validation_error(key, error)
            return default

    @classmethod
    def _safe_bool(cls, key: str, default: Optional[bool]) -> Optional[bool]:
        """
        Safely parse boolean from environment.

        Recognizes: true/false, yes/no, 1/0, on/off (case-insensitive).

        Parameters
        ----------
        key:
            Environment variable name.
        default:
            Default value if not set or invalid.

        Returns
        -------
        Optional[bool]
            Parsed boolean value.
        """
        cls._init_metrics()

        raw_value = os.getenv(key)

        if raw_value is None:
            if cls._metrics:
                cls._metrics.record_env_load(key, False, default, default)
            return default

        normalized = raw_value.lower().strip()
        true_values = {"true", "yes", "1", "on"}
        false_values = {"false", "no", "0", "off"}

        if normalized in true_values:
            value = True
        elif normalized in false_values:
            value = False
        else:
            error = f"{key}='{raw_value}' is not a valid boolean, using default {default}"
            import logging
            logging.warning(error)
            if cls._metrics:
                cls._metrics.record_validation_error(key, error)
            return default

        if cls._metrics:
            cls._metrics.record_env_load(key, True, value, default)

        return value

    @classmethod
    def _safe_str(cls, key: str, default: str) -> str:
        """Safely get string from environment."""
        cls._init_metrics()

        value = os.getenv(key, default)
        from_env = key in os.environ

        if cls._metrics:
            cls._metrics.record_env_load(key, from_env, value, default)

        return value

    @classmethod
    def _safe_path(cls, key: str, default: Path) -> Path:
        """Safely get a filesystem path from environment."""
        raw_value = cls._safe_str(key, str(default))
        return Path(raw_value).expanduser()

    # =========================================================================
    # Configuration Loading
    # =========================================================================

    @classmethod
    def load(cls) -> None:
        """
        Load all configuration from environment variables with validation.

        This method is called automatically on module import, but can be
        called again to reload configuration (tests rely on this after
        patching the environment).
        """
        cls._init_metrics()

        # Environment Configuration
        cls.ENVIRONMENT = cls._safe_str("ENVIRONMENT", "development")
        cls.DEBUG = bool(cls._safe_bool("DEBUG", False))
        cls.LOG_LEVEL = cls._safe_str("LOG_LEVEL", "INFO")
        cls.LOG_JSON = cls._safe_bool("LOG_JSON", None)
        cls.LOG_COLORS = bool(cls._safe_bool("LOG_COLORS", True))

        # Directories
        cls.LOGS_DIR = cls._safe_path("LOGS_DIR", cls.PROJECT_ROOT / "logs")
        cls.DATA_DIR = cls._safe_path("DATA_DIR", cls.PROJECT_ROOT / "data")
        cls.BACKUP_DIR = cls._safe_path("BACKUP_DIR", cls.DATA_DIR / "backup")
        cls.CONFIG_DIR = cls._safe_path("CONFIG_DIR", cls.PROJECT_ROOT / "config")

        # Storage
        cls.DATABASE_URL = cls._safe_str(
            "DATABASE_URL",
            f"sqlite+aiosqlite:///{cls.DATA_DIR / 'lifequest.db'}",
        )
        cls.DATABASE_ECHO = bool(cls._safe_bool("DATABASE_ECHO", False))
        cls.STORAGE_KEY = cls._safe_str("STORAGE_KEY", "userProgressData")

        cls.SCHEMA_VERSION = cls._safe_str("SCHEMA_VERSION", "1.0.1")

        # Daily Reset
        cls.RESET_TIMEZONE = cls._safe_str("RESET_TIMEZONE", "Europe/Kiev")
        cls.RESET_CUTOVER_HOUR = cls._safe_int(
            "RESET_CUTOVER_HOUR", 4, min_val=0, max_val=23
        )
        cls.RESET_CHECK_INTERVAL_SECONDS = cls._safe_int(
            "RESET_CHECK_INTERVAL_SECONDS", 60, min_val=1, max_val=3600
        )

        if cls._metrics:
            from datetime import datetime, timezone
            cls._metrics.last_reload = datetime.now(timezone.utc).isoformat()

    @classmethod
    def validate(cls) -> None:
        """
        Validate configuration values on startup.

        Raises
        ------
        ValueError:
            If values are invalid in production.
        """
        if cls._validated:
            return

        import logging
        logger = logging.getLogger(__name__)
        cls._init_metrics()

        try:
            cls.load()

            # Validate log level
            valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
            if cls.LOG_LEVEL.upper() not in valid_log_levels:
                logger.warning(
                    f"Invalid LOG_LEVEL '{cls.LOG_LEVEL}', using INFO"
                )
                cls.LOG_LEVEL = "INFO"

            if not cls.STORAGE_KEY:
                raise ValueError("STORAGE_KEY must not be empty")

            cls._validated = True

            if cls._metrics:
                summary = cls._metrics.get_summary()
                logger.debug(f"Configuration loaded: {summary}")

                if cls._metrics.validation_errors:
                    logger.warning(
                        f"Configuration warnings: {cls._metrics.validation_errors}"
                    )

        except Exception as e:
            logger.warning(f"Config validation warning (safe for tests): {e}")
            if cls.ENVIRONMENT.lower() == "production":
                logger.error("Configuration validation failed in production!")
                raise

    @classmethod
    def ensure_directories(cls) -> None:
        """Create the log, data and backup directories if missing."""
        for directory in (cls.LOGS_DIR, cls.DATA_DIR, cls.BACKUP_DIR):
            directory.mkdir(parents=True, exist_ok=True)

    # =========================================================================
    # Environment Checks
    # =========================================================================

    @classmethod
    def is_production(cls) -> bool:
        """Check if running in production environment."""
        return cls.ENVIRONMENT.lower() == "production"

    @classmethod
    def is_development(cls) -> bool:
        """Check if running in development environment."""
        return cls.ENVIRONMENT.lower() == "development"

    @classmethod
    def is_testing(cls) -> bool:
        """Check if running in testing environment."""
        return cls.ENVIRONMENT.lower() == "testing"

    # =========================================================================
    # Metrics & Summary
    # =========================================================================

    @classmethod
    def get_metrics(cls) -> Optional[_ConfigLoadMetrics]:
        """Get configuration loading metrics."""
        return cls._metrics

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """
        Get configuration summary for debugging.

        Returns
        -------
        Dict[str, Any]
            Dictionary with configuration values safe to log.
        """
        return {
            "environment": cls.ENVIRONMENT,
            "debug": cls.DEBUG,
            "log_level": cls.LOG_LEVEL,
            "database_url": cls.DATABASE_URL,
            "backup_dir": str(cls.BACKUP_DIR),
            "storage_key": cls.STORAGE_KEY,
            "schema_version": cls.SCHEMA_VERSION,
            "reset_timezone": cls.RESET_TIMEZONE,
            "reset_cutover_hour": cls.RESET_CUTOVER_HOUR,
        }


# Auto-validate on import
Config.validate()
