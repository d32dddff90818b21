# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Extension Registry Configuration - Single source of truth.
YAML is king. Env vars only override locations and log level.

- ALL configuration in plain text (YAML)
- NO hidden state - everything inspectable via `cat`, `grep`, `jq`
"""

import os
import yaml
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from extregistry.core.errors import ConfigurationError
from extregistry.models.registry_models import RuntimeTarget

DEFAULT_CONFIG_PATH = "/etc/extregistry/config.yaml"


# =============================================================================
# CONFIGURATION DATACLASS
# =============================================================================

@dataclass(frozen=True)
class Config:
    """
    Immutable registry configuration.
    All values from YAML. No hidden state.
    """

    # -- Paths --
    ext_dir: str = "vendor/ext"
    registry_file: str = "packages.json"
    load_config_file: str = "extensions.ini"
    transactions_file: str = "transactions.jsonl"

    # -- Runtime --
    runtime: RuntimeTarget = RuntimeTarget.PHP
    library_suffix: str = ".so"

    # -- System packages --
    use_sudo: bool = True

    # -- Logging --
    log_level: str = "INFO"
    log_format: str = "json"

    # -- Derived paths --
    @property
    def ext_path(self) -> Path:
        return Path(self.ext_dir)

    @property
    def registry_path(self) -> Path:
        return self.ext_path / self.registry_file

    @property
    def load_config_path(self) -> Path:
        return self.ext_path / self.load_config_file

    @property
    def transactions_path(self) -> Path:
        return self.ext_path / self.transactions_file

    def with_overrides(self, **overrides) -> "Config":
        """Return a copy with the non-None overrides applied"""
        values = {k: v for k, v in overrides.items() if v is not None}
        if "runtime" in values:
            values["runtime"] = _parse_runtime(values["runtime"])
        return replace(self, **values)


def _parse_runtime(value) -> RuntimeTarget:
    try:
        return RuntimeTarget(str(value).lower())
    except ValueError:
        allowed = ", ".join(t.value for t in RuntimeTarget)
        raise ConfigurationError(f"Unknown runtime '{value}' (expected one of: {allowed})")


# =============================================================================
# LOADER
# =============================================================================

def load_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    """
    Load configuration from YAML.
    Returns defaults if file doesn't exist.
    """
    y = {}
    if Path(path).exists():
        try:
            with open(path) as f:
                y = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}", config_file=path)

        if not isinstance(y, dict):
            raise ConfigurationError(f"Config root must be a mapping: {path}", config_file=path)

    # Helper to safely navigate nested dicts
    def get(d: dict, *keys, default=None):
        for k in keys:
            if not isinstance(d, dict):
                return default
            d = d.get(k, {})
        return d if d != {} else default

    defaults = Config()
    use_sudo = get(y, "system_packages", "use_sudo")

    return Config(
        # Paths
        ext_dir=os.getenv("EXTREGISTRY_EXT_DIR") or get(y, "paths", "ext_dir") or defaults.ext_dir,
        registry_file=get(y, "paths", "registry_file") or defaults.registry_file,
        load_config_file=get(y, "paths", "load_config_file") or defaults.load_config_file,
        transactions_file=get(y, "paths", "transactions_file") or defaults.transactions_file,

        # Runtime
        runtime=_parse_runtime(
            os.getenv("EXTREGISTRY_RUNTIME") or get(y, "runtime", "target") or defaults.runtime.value
        ),
        library_suffix=get(y, "runtime", "library_suffix") or defaults.library_suffix,

        # System packages
        use_sudo=defaults.use_sudo if use_sudo is None else bool(use_sudo),

        # Logging
        log_level=os.getenv("LOG_LEVEL") or get(y, "logging", "level") or defaults.log_level,
        log_format=get(y, "logging", "format") or defaults.log_format,
    )


# =============================================================================
# GLOBAL INSTANCE
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global config instance."""
    global _config
    if _config is None:
        config_path = os.getenv("EXTREGISTRY_CONFIG_PATH", DEFAULT_CONFIG_PATH)
        _config = load_config(config_path)
    return _config


def reload_config() -> Config:
    """Force reload configuration."""
    global _config
    _config = None
    return get_config()
