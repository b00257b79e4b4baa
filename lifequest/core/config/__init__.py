"""
Configuration management subsystem for LifeQuest.

Static vs Content Configuration
-------------------------------
**Static (Config):**
- Loaded from environment variables at startup (.env support)
- Includes: database URL, backup directory, storage key, reset timezone
- Changes require a restart

**Content (ConfigManager, in `lifequest.core.config.manager`):**
- Loaded from `config/*.yaml`
- Includes: per-step XP, level table and rewards, quest catalog

The manager is not re-exported here because it depends on the logging
subsystem, which itself reads `Config`.
"""

from lifequest.core.config.config import Config, Environment

__all__ = [
    "Config",
    "Environment",
]
