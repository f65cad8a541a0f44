"""
Configuration loader with priority: CLI > env > TOML > defaults
"""
import os
import tomllib
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional

from ...core.constants import DEFAULT_CONFIG_PATH, ENV_PREFIX
from ...core.exceptions import ConfigError
from ...domain.install.models import InstallConfig

# TOML table holding install options
INSTALL_SECTION = "install"

_TRUE = ("true", "yes", "on", "1")
_FALSE = ("false", "no", "off", "0")


class ConfigLoader:
    """Configuration loader with priority support"""

    def __init__(self, env_prefix: str = ENV_PREFIX):
        self._env_prefix = env_prefix

    def load_toml(self, path: Path) -> Dict[str, Any]:
        """Load TOML configuration file"""
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            return tomllib.loads(path.read_text(encoding="utf-8"))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
            raise ConfigError(f"Failed to parse TOML configuration: {e}") from e

    def load_env(self) -> Dict[str, Any]:
        """Load install options from SVZ_* environment variables"""
        env_mappings = {
            "SSH_KEY": "key_path",
            "SSH_PORT": "port",
            "TIMEOUT": "timeout",
            "KNOWN_HOSTS": "known_hosts_path",
            "SKIP_HOST_KEY_CHECK": "skip_host_key_check",
            "ACCEPT_NEW_HOST_KEY": "accept_new_host_key",
            "FORCE": "force",
            "PASSWORD_FALLBACK": "password_fallback",
        }

        section: Dict[str, Any] = {}
        for suffix, config_key in env_mappings.items():
            value = os.getenv(f"{self._env_prefix}{suffix}")
            if value:
                section[config_key] = value

        return {INSTALL_SECTION: section} if section else {}

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configurations with priority.
        Later configs override earlier ones.
        """
        result: Dict[str, Any] = {}

        for config in configs:
            result = self._deep_merge(result, config)

        return result

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries"""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def load(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> Dict[str, Any]:
        """
        Load configuration with priority: CLI > env > TOML > defaults

        Args:
            toml_path: Path to TOML configuration file; the default location
                is read only if it exists
            cli_overrides: Install options given on the command line; None
                values are treated as not given
            use_env: Whether to load from environment variables

        Returns:
            Merged configuration dictionary
        """
        configs = []

        # 1. TOML file
        if toml_path:
            configs.append(self.load_toml(Path(toml_path).expanduser()))
        else:
            default_path = Path(DEFAULT_CONFIG_PATH).expanduser()
            if default_path.exists():
                configs.append(self.load_toml(default_path))

        # 2. Environment variables
        if use_env:
            env_config = self.load_env()
            if env_config:
                configs.append(env_config)

        # 3. CLI overrides (highest priority)
        if cli_overrides:
            given = {k: v for k, v in cli_overrides.items() if v is not None}
            if given:
                configs.append({INSTALL_SECTION: given})

        return self.merge_configs(*configs)

    def to_install_config(self, cfg: Dict[str, Any]) -> InstallConfig:
        """
        Build an InstallConfig from the [install] table, coercing each value
        to the type of its field.

        Raises:
            ConfigError: unknown option or a value that cannot be coerced
        """
        section = cfg.get(INSTALL_SECTION, {})
        if not isinstance(section, dict):
            raise ConfigError(f"[{INSTALL_SECTION}] must be a table")

        known = {f.name: f.type for f in fields(InstallConfig)}
        config = InstallConfig()
        for key, value in section.items():
            if key not in known:
                raise ConfigError(f"Unknown install option: {key}")
            setattr(config, key, self._coerce(key, value, known[key]))
        return config

    def _coerce(self, key: str, value: Any, field_type: Any) -> Any:
        """Convert value to the declared field type"""
        try:
            if field_type is bool:
                return self._to_bool(value)
            if field_type is int:
                return int(value)
            if field_type is float:
                return float(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value for {key}: {value!r}") from e
        return str(value) if value is not None else None

    def _to_bool(self, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ValueError(f"not a boolean: {value!r}")
