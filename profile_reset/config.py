"""
Configuration management for profile_reset.

Supports:
- TOML config files
- Environment variables
- Command-line overrides
- Sensible defaults

Priority (highest to lowest):
1. Command-line arguments
2. Environment variables
3. Config file
4. Defaults
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Backport for older Python

from .errors import ConfigError, InvalidPolicyError
from .paths import normalize_relative_path


CONFIG_ENV_VAR = "PROFILE_RESET_CONFIG"

# Default config file locations (searched in order)
CONFIG_SEARCH_PATHS = [
    Path("/etc/profile_reset/config.toml"),
    Path.home() / ".config" / "profile_reset" / "config.toml",
    Path.cwd() / "config.toml",
]

DEFAULT_CLEAN_ALWAYS = [
    ".cache",
    ".local/share/Trash",
    ".thumbnails",
    "tmp",
]


@dataclass
class StorageConfig:
    """Snapshot storage root."""
    root: str = "/var/lib/.profile_reset"


@dataclass
class ProfilesConfig:
    """Where live profiles live: <root>/<username>."""
    root: str = "/home"


@dataclass
class PolicyDefaults:
    """Values written into a user's first policy record."""
    default_clean_after_days: int = 1
    default_clean_always: List[str] = field(default_factory=lambda: list(DEFAULT_CLEAN_ALWAYS))


@dataclass
class MirrorConfig:
    """Mirror primitive configuration."""
    tool: str = "rsync"
    rsync_path: str = "rsync"
    extra_args: List[str] = field(default_factory=list)
    timeout: Optional[int] = None


@dataclass
class LogConfig:
    """Run log (used with --log)."""
    path: str = "/var/log/profile_reset.log"
    max_bytes: int = 8 * 1024


@dataclass
class Config:
    """Main configuration container."""
    storage: StorageConfig = field(default_factory=StorageConfig)
    profiles: ProfilesConfig = field(default_factory=ProfilesConfig)
    policy: PolicyDefaults = field(default_factory=PolicyDefaults)
    mirror: MirrorConfig = field(default_factory=MirrorConfig)
    log: LogConfig = field(default_factory=LogConfig)

    # Source tracking
    _config_file: Optional[Path] = None

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """
        Load configuration from file and environment.

        Args:
            config_path: Explicit path to config file. If None, uses
                $PROFILE_RESET_CONFIG or searches default locations.

        Returns:
            Config instance with loaded values

        Raises:
            ConfigError: Explicit file missing or not valid TOML
        """
        config = cls()

        explicit = config_path or os.environ.get(CONFIG_ENV_VAR)
        if explicit:
            path = Path(explicit)
            if not path.is_file():
                raise ConfigError(f"Config file not found: {explicit}")
        else:
            path = cls._find_config_file()

        if path:
            config = cls._load_from_file(path)
            config._config_file = path

        config.override_from_env(os.environ)
        return config

    @classmethod
    def _find_config_file(cls) -> Optional[Path]:
        """Find config file in default locations."""
        for path in CONFIG_SEARCH_PATHS:
            if path.is_file():
                return path
        return None

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load config from TOML file."""
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {path}: {e}")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        config = cls()

        if "storage" in data:
            st = data["storage"]
            config.storage = StorageConfig(
                root=st.get("root", config.storage.root),
            )

        if "profiles" in data:
            pr = data["profiles"]
            config.profiles = ProfilesConfig(
                root=pr.get("root", config.profiles.root),
            )

        if "policy" in data:
            pol = data["policy"]
            config.policy = PolicyDefaults(
                default_clean_after_days=pol.get(
                    "default_clean_after_days", config.policy.default_clean_after_days
                ),
                default_clean_always=list(pol.get(
                    "default_clean_always", config.policy.default_clean_always
                )),
            )

        if "mirror" in data:
            mir = data["mirror"]
            config.mirror = MirrorConfig(
                tool=mir.get("tool", config.mirror.tool),
                rsync_path=mir.get("rsync_path", config.mirror.rsync_path),
                extra_args=list(mir.get("extra_args", config.mirror.extra_args)),
                timeout=mir.get("timeout") or None,
            )

        if "log" in data:
            lg = data["log"]
            config.log = LogConfig(
                path=lg.get("path", config.log.path),
                max_bytes=lg.get("max_bytes", config.log.max_bytes),
            )

        return config

    def override_from_env(self, environ) -> "Config":
        """Apply PROFILE_RESET_* environment overrides."""
        if environ.get("PROFILE_RESET_STORAGE_ROOT"):
            self.storage.root = environ["PROFILE_RESET_STORAGE_ROOT"]
        if environ.get("PROFILE_RESET_PROFILES_ROOT"):
            self.profiles.root = environ["PROFILE_RESET_PROFILES_ROOT"]
        return self

    def override_from_args(self, args) -> "Config":
        """
        Override config values from argparse namespace.

        Args with value None are ignored (keeping config file values).
        """
        if getattr(args, "storage_root", None):
            self.storage.root = args.storage_root
        if getattr(args, "profiles_root", None):
            self.profiles.root = args.profiles_root
        if getattr(args, "mirror_tool", None):
            self.mirror.tool = args.mirror_tool

        log_arg = getattr(args, "log", None)
        if isinstance(log_arg, str) and log_arg:
            self.log.path = log_arg

        return self

    def validate(self) -> list:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.storage.root:
            errors.append("Storage root is required")
        if not self.profiles.root:
            errors.append("Profiles root is required")
        if self.storage.root and self.profiles.root:
            storage = Path(self.storage.root).resolve()
            profiles = Path(self.profiles.root).resolve()
            if storage == profiles or profiles in storage.parents or storage in profiles.parents:
                errors.append("Storage root and profiles root must not contain each other")

        days = self.policy.default_clean_after_days
        if isinstance(days, bool) or not isinstance(days, int) or days < 0:
            errors.append("policy.default_clean_after_days must be a non-negative integer")
        for entry in self.policy.default_clean_always:
            try:
                normalize_relative_path(entry)
            except InvalidPolicyError as e:
                errors.append(f"policy.default_clean_always: {e}")

        if self.mirror.tool not in ("rsync", "copytree"):
            errors.append(f"mirror.tool must be 'rsync' or 'copytree', got {self.mirror.tool!r}")
        if self.mirror.timeout is not None and self.mirror.timeout <= 0:
            errors.append("mirror.timeout must be positive")

        if self.log.max_bytes <= 0:
            errors.append("log.max_bytes must be positive")

        return errors

    def summary(self, include_config_path: bool = True) -> str:
        """Generate human-readable config summary."""
        lines = []

        if include_config_path:
            if self._config_file:
                lines.append(f"Config: {self._config_file}")
            else:
                lines.append("Config: (defaults)")

        lines.append(f"Storage: {self.storage.root}")
        lines.append(f"Profiles: {self.profiles.root}")
        lines.append(f"Mirror: {self.mirror.tool}")
        lines.append(
            f"New policies: cleanAfterDays={self.policy.default_clean_after_days}, "
            f"cleanAllways={', '.join(self.policy.default_clean_always) or '(none)'}"
        )

        return "\n".join(lines)
